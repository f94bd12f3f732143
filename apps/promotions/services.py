import logging
from dataclasses import dataclass

from django.db import DatabaseError, transaction

from apps.core.choices import DeletionReason
from apps.core.clock import StoreClock
from apps.core.deleters import SYSTEM

from .models import Coupon, Discount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExpiryReport:
    expired_coupons: int
    expired_discounts: int

    @property
    def total(self) -> int:
        return self.expired_coupons + self.expired_discounts


def _expire_rows(model, queryset, now) -> int:
    expired = 0
    for pk in queryset.values_list("pk", flat=True):
        try:
            with transaction.atomic():
                expired += model.objects.filter(pk=pk).soft_delete(
                    SYSTEM, DeletionReason.EXPIRED, at=now
                )
        except DatabaseError:
            logger.exception(
                "Could not expire %s %s", model._meta.verbose_name, pk
            )
    return expired


def expire_promotions(now=None, clock=None) -> ExpiryReport:
    """
    Soft-delete coupons past ``expires_at`` and discounts past ``end_date``.

    Rows are handled one by one so a failing row is logged and skipped.
    Already-deleted rows are ignored, so repeated runs are harmless.
    """
    clock = clock or StoreClock()
    now = now or clock.now()
    today = clock.local_date(now)

    report = ExpiryReport(
        expired_coupons=_expire_rows(
            Coupon, Coupon.objects.get_queryset().expired_before(now), now
        ),
        expired_discounts=_expire_rows(
            Discount, Discount.objects.get_queryset().ended_before(today), now
        ),
    )
    logger.info(
        "Promotion expiry: %d coupon(s), %d discount(s)",
        report.expired_coupons,
        report.expired_discounts,
    )
    return report
