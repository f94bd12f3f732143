from django.db.models.functions import Length

from apps.core.managers import BaseManager

from .querysets import (
    CategoryQuerySet,
    OrderQuerySet,
    ProductQuerySet,
    ProductVariantQuerySet,
)


class CategoryManager(BaseManager):
    queryset_class = CategoryQuerySet


class ProductManager(BaseManager):
    queryset_class = ProductQuerySet


class ProductVariantManager(BaseManager):
    queryset_class = ProductVariantQuerySet


class OrderManager(BaseManager):
    """
    Custom manager for Order model with business logic queries.
    """

    queryset_class = OrderQuerySet

    def not_cancelled(self):
        return self.get_queryset().not_cancelled()

    def for_customer(self, identity):
        return self.get_queryset().for_customer(identity)

    def last_code(self, prefix: str) -> str | None:
        """
        Highest order code issued with ``prefix``, deleted orders included.

        Longer codes sort first so sequences past the padding width keep
        their numeric order.
        """
        return (
            self.all_with_deleted()
            .with_code_prefix(prefix)
            .order_by(Length("code").desc(), "-code")
            .values_list("code", flat=True)
            .first()
        )
