from django.db import models
from django.utils import timezone

from .choices import DeletionReason


class BaseQuerySet(models.QuerySet):
    """
    A base QuerySet that includes logic for soft-deletion.
    """

    def soft_delete(
        self, deleter, reason=DeletionReason.MANUAL, at=None, **fields
    ):
        """Marks objects in the QuerySet as logically deleted."""
        return self.update(
            deleted_at=at or timezone.now(),
            deletion_reason=reason,
            **deleter.as_fields(),
            **fields,
        )

    def restore(self):
        """Restores objects in the QuerySet."""
        return self.update(
            deleted_at=None,
            deleted_by=None,
            deleted_by_system=False,
            deletion_reason="",
        )

    def not_deleted(self):
        """
        Filters to include only non-deleted records.
        """
        return self.filter(deleted_at__isnull=True)

    def deleted(self):
        """
        Filters to include only logically deleted records.
        """
        return self.filter(deleted_at__isnull=False)

