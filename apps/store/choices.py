from django.db import models
from django.utils.translation import gettext_lazy as _


class OrderStatus(models.TextChoices):
    PENDING = "PENDING", _("Pending")
    PROCESSING = "PROCESSING", _("Processing")
    SHIPPED = "SHIPPED", _("Shipped")
    DELIVERED = "DELIVERED", _("Delivered")
    CANCELLED = "CANCELLED", _("Cancelled")


# Alternative spellings accepted from status inputs.
ORDER_STATUS_ALIASES = {
    "TRANSIT": OrderStatus.SHIPPED,
    "IN_TRANSIT": OrderStatus.SHIPPED,
}


class VariantType(models.TextChoices):
    SIZE = "SIZE", _("Size")
    CAPACITY = "CAPACITY", _("Capacity")
    DIMENSIONS = "DIMENSIONS", _("Dimensions")


class PaymentMethod(models.TextChoices):
    CARD = "CARD", _("Card")
    YAPE = "YAPE", _("Yape")
    PLIN = "PLIN", _("Plin")
    TRANSFER = "TRANSFER", _("Bank transfer")
    CASH = "CASH", _("Cash on delivery")
