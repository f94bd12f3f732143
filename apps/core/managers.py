from django.db import models

from .choices import DeletionReason
from .querysets import BaseQuerySet


class BaseManager(models.Manager):
    """
    Manager that uses the BaseQuerySet to enforce soft-delete logic by default.

    Subclasses point ``queryset_class`` at their own QuerySet.
    """

    queryset_class = BaseQuerySet

    def get_queryset(self):
        return self.queryset_class(self.model, using=self._db).not_deleted()

    def all_with_deleted(self):
        """
        Returns all objects, including logically deleted ones.
        """
        return self.queryset_class(self.model, using=self._db)

    def deleted(self):
        """
        Returns only logically deleted objects.
        """
        return self.all_with_deleted().deleted()

    def soft_delete(self, deleter, reason=DeletionReason.MANUAL):
        """
        Marks objects in the QuerySet as logically deleted.
        """
        return self.get_queryset().soft_delete(deleter, reason)
