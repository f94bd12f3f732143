import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from apps.core.clock import StoreClock
from apps.core.money import HUNDRED, ZERO, quantize_money
from apps.store.cart import Cart, CartLine

from .choices import AppliesTo
from .models import Discount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceEvaluation:
    original_price: Decimal
    final_price: Decimal
    applied_discount: Optional[Discount]
    discount_percentage_label: int

    @property
    def is_on_sale(self) -> bool:
        return self.final_price < self.original_price

    @property
    def uses_inline_discount(self) -> bool:
        return self.is_on_sale and self.applied_discount is None


@dataclass(frozen=True)
class Offer:
    product: object
    evaluation: PriceEvaluation
    label: str


@dataclass(frozen=True)
class CartDiscount:
    discount: Discount
    amount: Decimal


def _percentage_label(price: Decimal, final_price: Decimal) -> int:
    if price <= 0 or final_price >= price:
        return 0
    ratio = HUNDRED * (price - final_price) / price
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def evaluate(product, discounts: Iterable[Discount], now=None, clock=None):
    """
    Best price for ``product`` given the inline discount and the catalog.

    Every candidate is priced from the original price; discounts never
    stack. A campaign discount replaces the current best when it is
    strictly cheaper, or when it ties a campaign discount already chosen.
    """
    clock = clock or StoreClock()
    now = now or clock.now()
    price = quantize_money(product.price)
    final_price = price
    applied = None

    if product.discount_percentage and product.discount_percentage > 0:
        final_price = quantize_money(
            price * (HUNDRED - Decimal(product.discount_percentage)) / HUNDRED
        )

    for discount in discounts:
        if discount.applies_to not in (AppliesTo.PRODUCT, AppliesTo.CATEGORY):
            continue
        if not discount.scope.targets_product(product):
            continue
        if not discount.is_active_at(now, clock):
            continue
        candidate = discount.discounted_price(price)
        if candidate < final_price or (
            applied is not None and candidate == final_price
        ):
            final_price = candidate
            applied = discount

    return PriceEvaluation(
        original_price=price,
        final_price=final_price,
        applied_discount=applied,
        discount_percentage_label=_percentage_label(price, final_price),
    )


def variant_price(evaluation: PriceEvaluation, variant) -> Decimal:
    """Variant price with the parent's displayed discount percentage."""
    percentage = Decimal(evaluation.discount_percentage_label)
    return quantize_money(variant.price * (HUNDRED - percentage) / HUNDRED)


def offers(products, discounts: Iterable[Discount], now=None, clock=None):
    """Products currently on sale, with their evaluation and a banner label."""
    clock = clock or StoreClock()
    now = now or clock.now()
    discounts = list(discounts)
    result = []
    for product in products:
        evaluation = evaluate(product, discounts, now, clock)
        if not evaluation.is_on_sale:
            continue
        if evaluation.applied_discount is not None:
            label = evaluation.applied_discount.name
        else:
            label = f"{product.discount_percentage.normalize():f}% OFF"
        result.append(Offer(product, evaluation, label))
    return result


def best_cart_discount(
    subtotal, discounts: Iterable[Discount], now=None, clock=None
) -> Optional[CartDiscount]:
    """Largest active cart-value discount whose threshold ``subtotal`` meets."""
    clock = clock or StoreClock()
    now = now or clock.now()
    subtotal = quantize_money(subtotal)
    best = None
    for discount in discounts:
        if discount.applies_to != AppliesTo.CART_VALUE:
            continue
        if not discount.is_active_at(now, clock):
            continue
        if subtotal < (discount.min_cart_value or ZERO):
            continue
        amount = discount.amount_off(subtotal)
        if best is None or amount > best.amount:
            best = CartDiscount(discount, amount)
    return best


def current_discounts(clock=None):
    """Discounts running today, with targets loaded for scope checks."""
    clock = clock or StoreClock()
    return list(
        Discount.objects.current(clock.local_date()).select_related(
            "target_product", "target_category"
        )
    )


def price_cart(entries, discounts=None, now=None, clock=None) -> Cart:
    """
    Build a cart from ``(product, quantity)`` or ``(product, quantity,
    variant)`` entries, each line priced at its evaluated sale price.
    """
    clock = clock or StoreClock()
    now = now or clock.now()
    if discounts is None:
        discounts = current_discounts(clock)
    lines = []
    for entry in entries:
        product, quantity, *rest = entry
        variant = rest[0] if rest else None
        evaluation = evaluate(product, discounts, now, clock)
        unit_price = (
            variant_price(evaluation, variant) if variant else evaluation.final_price
        )
        lines.append(CartLine.for_product(product, quantity, unit_price, variant))
    logger.debug("Priced cart with %d line(s)", len(lines))
    return Cart(lines)
