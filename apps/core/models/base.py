import logging
import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils.translation import gettext_lazy as _
from simple_history.models import HistoricalRecords

from ..choices import DeletionReason
from ..deleters import SYSTEM, AdminDeleter
from ..managers import BaseManager

logger = logging.getLogger(__name__)


class User(AbstractUser):
    id = models.UUIDField(
        _("ID"), primary_key=True, default=uuid.uuid4, editable=False
    )
    phone = models.CharField(_("Phone"), max_length=20, blank=True)

    class Meta:
        verbose_name = _("User")
        verbose_name_plural = _("Users")
        indexes = [
            models.Index(fields=["username"]),
            models.Index(fields=["email"]),
        ]

    def __str__(self):
        return self.username


class BaseModel(models.Model):
    """
    Abstract base model with UUID key, timestamps and soft delete.
    """

    id = models.UUIDField(
        _("ID"), primary_key=True, default=uuid.uuid4, editable=False
    )
    created_at = models.DateTimeField(_("Created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("Updated at"), auto_now=True)
    deleted_at = models.DateTimeField(_("Deleted at"), null=True, blank=True)

    objects = BaseManager()
    history = HistoricalRecords(inherit=True)

    def is_deleted(self):
        """
        Returns True if the object is soft-deleted, False otherwise.
        """
        return self.deleted_at is not None

    class Meta:
        abstract = True
        ordering = ["-created_at"]


class AuditModel(BaseModel):
    """
    Abstract model that adds audit fields to derived models.

    A soft-deleted row records who deleted it: either a staff user
    (``deleted_by``) or the system (``deleted_by_system``), never both.
    """

    created_by = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name="%(class)s_created",
        limit_choices_to={"is_staff": True},
        null=True,
        blank=True,
        verbose_name=_("Created by"),
    )
    updated_by = models.ForeignKey(
        User,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="%(class)s_updated",
        limit_choices_to={"is_staff": True},
        verbose_name=_("Updated by"),
    )
    deleted_by = models.ForeignKey(
        User,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="%(class)s_deleted",
        limit_choices_to={"is_staff": True},
        verbose_name=_("Deleted by"),
    )
    deleted_by_system = models.BooleanField(
        _("Deleted by system"), default=False
    )
    deletion_reason = models.CharField(
        _("Deletion reason"),
        max_length=20,
        choices=DeletionReason.choices,
        blank=True,
        default="",
    )

    class Meta:
        abstract = True
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(deleted_by__isnull=True)
                | models.Q(deleted_by_system=False),
                name="%(app_label)s_%(class)s_single_deleter",
            ),
        ]

    @property
    def deleter(self):
        """Who soft-deleted the row, or None while it is live."""
        if self.deleted_by_system:
            return SYSTEM
        if self.deleted_by_id is not None:
            return AdminDeleter(self.deleted_by_id)
        return None
