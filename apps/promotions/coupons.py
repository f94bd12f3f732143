import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from constance import config
from django.utils.translation import gettext_lazy as _

from apps.core.clock import StoreClock
from apps.core.exceptions import (
    Expired,
    Inactive,
    InvalidInput,
    LimitExceeded,
    NotApplicable,
    NotFound,
    StoreError,
)
from apps.core.money import ZERO, format_money, quantize_money
from apps.store.cart import Cart, CartLine, CustomerIdentity
from apps.store.models import Order

from .models import Coupon

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CouponValidation:
    coupon: Coupon
    discount_amount: Decimal
    applicable_lines: Tuple[CartLine, ...]

    @property
    def code(self) -> str:
        return self.coupon.code

    @property
    def affected_items(self):
        return [line.name for line in self.applicable_lines]

    def as_dict(self) -> dict:
        return {
            "code": self.coupon.code,
            "name": self.coupon.name,
            "discount_type": self.coupon.discount_type,
            "discount_value": self.coupon.discount_value,
            "applies_to": self.coupon.applies_to,
            "discount_amount": self.discount_amount,
            "affected_items": self.affected_items,
        }


def max_discount_ratio() -> Decimal:
    return Decimal(str(config.COUPON_MAX_DISCOUNT_RATIO))


def _check_window(coupon: Coupon, now) -> None:
    if coupon.expires_at is not None and coupon.expires_at < now:
        raise Expired(
            _("Coupon %(code)s has expired."), params={"code": coupon.code}
        )
    if coupon.starts_at is not None and coupon.starts_at > now:
        raise Inactive(
            _("Coupon %(code)s is not active yet."),
            code="not_started",
            params={"code": coupon.code},
        )


def _check_usage(coupon: Coupon, identity: Optional[CustomerIdentity]) -> None:
    if coupon.is_exhausted:
        raise LimitExceeded(
            _("Coupon %(code)s has reached its usage limit."),
            code="coupon_exhausted",
            params={"code": coupon.code},
        )
    if coupon.usage_limit_per_user is None:
        return
    if identity is None or not identity.is_known:
        raise InvalidInput(
            _("Sign in or enter your email to use coupon %(code)s."),
            code="missing_identity",
            params={"code": coupon.code},
        )
    redeemed = (
        Order.objects.not_cancelled()
        .for_customer(identity)
        .with_coupon(coupon.code)
        .count()
    )
    if redeemed >= coupon.usage_limit_per_user:
        raise LimitExceeded(
            _("You have already used coupon %(code)s the maximum number of times."),
            code="per_customer_limit",
            params={"code": coupon.code},
        )


def _check_purchase(coupon: Coupon, cart: Cart):
    lines = tuple(coupon.scope.applicable_lines(cart))
    if not lines:
        raise NotApplicable(coupon.scope.describe(), code="scope_mismatch")
    if cart.subtotal < coupon.min_purchase:
        raise NotApplicable(
            _("A minimum purchase of %(amount)s is required."),
            code="min_purchase",
            params={"amount": format_money(coupon.min_purchase)},
        )
    return lines


def _check_ceiling(discount: Decimal, subtotal: Decimal) -> None:
    ratio = max_discount_ratio()
    ceiling = subtotal * ratio
    if discount > 0 and discount >= ceiling:
        raise LimitExceeded(
            _(
                "The discount cannot reach %(percent)s%% of the total "
                "(maximum %(amount)s)."
            ),
            code="discount_ceiling",
            params={
                "percent": int(ratio * 100),
                "amount": format_money(ceiling),
            },
        )


def validate_coupon(
    code: str,
    cart: Cart,
    identity: Optional[CustomerIdentity] = None,
    now=None,
    clock=None,
) -> CouponValidation:
    """
    Check ``code`` against ``cart`` and work out its discount.

    Gates run in a fixed order and the first failure is raised: lookup,
    activity window, global cap, per-customer cap, scope, minimum purchase
    and the discount ceiling.
    """
    clock = clock or StoreClock()
    now = now or clock.now()
    normalized = (code or "").strip().upper()
    if not normalized:
        raise InvalidInput(_("Enter a coupon code."), code="missing_code")
    if cart.is_empty:
        raise InvalidInput(_("The cart is empty."), code="empty_cart")

    try:
        coupon = (
            Coupon.objects.active()
            .by_code(normalized)
            .select_related("target_product", "target_category")
            .get()
        )
    except Coupon.DoesNotExist:
        logger.info("Coupon %s rejected: not found", normalized)
        raise NotFound(
            _("Coupon %(code)s is not valid or was not found."),
            code="coupon_not_found",
            params={"code": normalized},
        )

    try:
        _check_window(coupon, now)
        _check_usage(coupon, identity)
        lines = _check_purchase(coupon, cart)
        applicable_subtotal = quantize_money(
            sum((line.line_total for line in lines), ZERO)
        )
        discount = coupon.amount_off(applicable_subtotal)
        _check_ceiling(discount, cart.subtotal)
    except StoreError as exc:
        logger.info("Coupon %s rejected: %s", normalized, exc.reason)
        raise

    return CouponValidation(
        coupon=coupon, discount_amount=discount, applicable_lines=lines
    )
