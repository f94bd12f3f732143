from django.db import models
from django.utils.translation import gettext_lazy as _


class DeletionReason(models.TextChoices):
    MANUAL = "MANUAL", _("Manual")
    EXPIRED = "EXPIRED", _("Expired")
