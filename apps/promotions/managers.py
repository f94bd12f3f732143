from apps.core.managers import BaseManager

from .querysets import CouponQuerySet, DiscountQuerySet


class DiscountManager(BaseManager):
    queryset_class = DiscountQuerySet

    def active(self):
        return self.get_queryset().active()

    def current(self, on_date):
        """Discounts running on ``on_date`` (store-local calendar day)."""
        return self.get_queryset().current(on_date)


class CouponManager(BaseManager):
    """
    Custom manager for Coupon model with validation queries.
    """

    queryset_class = CouponQuerySet

    def active(self):
        """Return only active coupons."""
        return self.get_queryset().active()

    def by_code(self, code: str):
        return self.get_queryset().by_code(code)
