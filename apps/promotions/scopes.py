"""
What a discount or coupon applies to.

``applies_to`` plus its target column is turned into one of these objects
so callers never have to guess what a bare target id means.
"""

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Union

from django.utils.translation import gettext_lazy as _

from apps.core.money import format_money


@dataclass(frozen=True)
class ProductScope:
    product_id: uuid.UUID
    label: str = field(default="", compare=False)

    def targets_product(self, product) -> bool:
        return product.pk == self.product_id

    def applicable_lines(self, cart):
        return [line for line in cart if line.product_id == self.product_id]

    def describe(self) -> str:
        return _("This coupon only applies to the product %(name)s.") % {
            "name": self.label or self.product_id
        }


@dataclass(frozen=True)
class CategoryScope:
    category_id: uuid.UUID
    label: str = field(default="", compare=False)

    def targets_product(self, product) -> bool:
        return (
            product.category_id is not None
            and product.category_id == self.category_id
        )

    def applicable_lines(self, cart):
        return [line for line in cart if line.category_id == self.category_id]

    def describe(self) -> str:
        return _(
            "This coupon only applies to products in the %(name)s category."
        ) % {"name": self.label or self.category_id}


@dataclass(frozen=True)
class CartValueScope:
    threshold: Decimal

    def targets_product(self, product) -> bool:
        return False

    def applicable_lines(self, cart):
        return list(cart) if cart.subtotal >= self.threshold else []

    def describe(self) -> str:
        return _("This coupon requires a cart of at least %(amount)s.") % {
            "amount": format_money(self.threshold)
        }


@dataclass(frozen=True)
class CartScope:
    def targets_product(self, product) -> bool:
        return False

    def applicable_lines(self, cart):
        return list(cart)

    def describe(self) -> str:
        return _("This coupon applies to the whole cart.")


Scope = Union[ProductScope, CategoryScope, CartValueScope, CartScope]
