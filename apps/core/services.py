from django.db import models, transaction

from .choices import DeletionReason
from .models import BaseModel


@transaction.atomic
def soft_delete_instance(
    instance: BaseModel, deleter, reason=DeletionReason.MANUAL
) -> BaseModel:
    """
    Performs a soft delete on a single model instance.
    """
    if instance.is_deleted():
        return instance

    instance_queryset = instance.__class__.objects.all_with_deleted().filter(
        pk=instance.pk
    )
    instance_queryset.soft_delete(deleter, reason)

    instance.refresh_from_db()
    return instance


@transaction.atomic
def restore_instance(instance: BaseModel) -> BaseModel:
    """
    Restores a single logically deleted model instance.
    """
    if not instance.is_deleted():
        return instance

    instance_queryset = instance.__class__.objects.all_with_deleted().filter(
        pk=instance.pk
    )
    instance_queryset.restore()

    instance.refresh_from_db()
    return instance


@transaction.atomic
def bulk_soft_delete(
    queryset: models.QuerySet, deleter, reason=DeletionReason.MANUAL
) -> int:
    """
    Performs a bulk soft delete operation on a QuerySet.
    """
    return queryset.not_deleted().soft_delete(deleter, reason)


@transaction.atomic
def bulk_restore(queryset: models.QuerySet) -> int:
    """
    Performs a bulk restore operation on a QuerySet.
    """
    return queryset.deleted().restore()
