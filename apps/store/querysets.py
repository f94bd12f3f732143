from django.db import models

from apps.core.querysets import BaseQuerySet

from .choices import OrderStatus


class CategoryQuerySet(BaseQuerySet):
    pass


class ProductQuerySet(BaseQuerySet):
    """
    Custom QuerySet for Product model with stock bookkeeping.
    """

    def deduct_stock(self, quantity: int) -> int:
        """
        Take ``quantity`` units out of stock and count them as sold.

        Rows without enough stock are left untouched; the number of rows
        updated tells the caller whether the deduction happened.
        """
        return self.filter(stock__gte=quantity).update(
            stock=models.F("stock") - quantity,
            total_sold=models.F("total_sold") + quantity,
        )

    def restore_stock(self, quantity: int) -> int:
        """
        Put ``quantity`` units back and take them off the sold counter.

        ``total_sold`` is not floored, so a counter that has drifted below
        the restored quantity fails the column constraint instead.
        """
        return self.update(
            stock=models.F("stock") + quantity,
            total_sold=models.F("total_sold") - quantity,
        )


class ProductVariantQuerySet(BaseQuerySet):
    pass


class OrderQuerySet(BaseQuerySet):
    """
    Custom QuerySet for Order model with business logic queries.
    """

    def not_cancelled(self):
        return self.exclude(status=OrderStatus.CANCELLED)

    def for_customer(self, identity):
        """Orders placed by a user, or by a guest email when anonymous."""
        return self.filter(identity.order_filter())

    def with_coupon(self, code: str):
        return self.filter(coupon_code=code.strip().upper())

    def with_code_prefix(self, prefix: str):
        return self.filter(code__startswith=prefix)
