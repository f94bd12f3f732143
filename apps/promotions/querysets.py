from django.db import models

from apps.core.choices import DeletionReason
from apps.core.querysets import BaseQuerySet


class PromotionQuerySet(BaseQuerySet):
    """
    Shared filters for discounts and coupons.

    Soft-deleting a promotion also switches it off.
    """

    def active(self):
        return self.filter(active=True)

    def soft_delete(
        self, deleter, reason=DeletionReason.MANUAL, at=None, **fields
    ):
        fields.setdefault("active", False)
        return super().soft_delete(deleter, reason, at, **fields)


class DiscountQuerySet(PromotionQuerySet):
    def current(self, on_date):
        """Active discounts whose date range contains ``on_date``."""
        return self.active().filter(
            models.Q(start_date__isnull=True) | models.Q(start_date__lte=on_date),
            models.Q(end_date__isnull=True) | models.Q(end_date__gte=on_date),
        )

    def ended_before(self, on_date):
        return self.filter(end_date__lt=on_date)


class CouponQuerySet(PromotionQuerySet):
    def by_code(self, code: str):
        return self.filter(code=code.strip().upper())

    def expired_before(self, moment):
        return self.filter(expires_at__lt=moment)
