from django.db import models
from django.utils.translation import gettext_lazy as _


class DiscountType(models.TextChoices):
    PERCENTAGE = "PERCENTAGE", _("Percentage")
    FIXED = "FIXED", _("Fixed Amount")


class AppliesTo(models.TextChoices):
    PRODUCT = "PRODUCT", _("Product")
    CATEGORY = "CATEGORY", _("Category")
    CART_VALUE = "CART_VALUE", _("Cart value")
    CART = "CART", _("Whole cart")
