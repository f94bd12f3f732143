"""
Value objects passed between pricing, coupon validation and checkout.

A cart is assembled by the storefront; nothing here touches the database.
"""

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Sequence

from django.db.models import Q

from apps.core.money import ZERO, quantize_money


@dataclass(frozen=True)
class CustomerIdentity:
    """Either a registered user or a guest identified by email."""

    user_id: Optional[uuid.UUID] = None
    guest_email: str = ""
    guest_name: str = ""
    guest_phone: str = ""

    @classmethod
    def for_user(cls, user) -> "CustomerIdentity":
        return cls(user_id=user.pk)

    @classmethod
    def guest(cls, email: str, name: str = "", phone: str = ""):
        return cls(guest_email=email.strip().lower(), guest_name=name, guest_phone=phone)

    @property
    def is_known(self) -> bool:
        return self.user_id is not None or bool(self.guest_email)

    def order_filter(self) -> Q:
        if self.user_id is not None:
            return Q(user_id=self.user_id)
        return Q(user__isnull=True, guest_email__iexact=self.guest_email)


@dataclass(frozen=True)
class CartLine:
    product_id: uuid.UUID
    name: str
    unit_price: Decimal
    quantity: int
    category_id: Optional[uuid.UUID] = None
    variant_id: Optional[uuid.UUID] = None
    variant_label: str = ""

    @classmethod
    def for_product(cls, product, quantity, unit_price=None, variant=None):
        if unit_price is None:
            unit_price = variant.price if variant else product.price
        return cls(
            product_id=product.pk,
            name=product.name,
            unit_price=quantize_money(unit_price),
            quantity=quantity,
            category_id=product.category_id,
            variant_id=variant.pk if variant else None,
            variant_label=variant.label if variant else "",
        )

    @property
    def line_total(self) -> Decimal:
        return quantize_money(self.unit_price * self.quantity)


@dataclass(frozen=True)
class Cart:
    lines: Sequence[CartLine] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "lines", tuple(self.lines))

    def __iter__(self):
        return iter(self.lines)

    def __len__(self):
        return len(self.lines)

    @property
    def subtotal(self) -> Decimal:
        return quantize_money(sum((line.line_total for line in self.lines), ZERO))

    @property
    def is_empty(self) -> bool:
        return not self.lines
