import logging
from collections import Counter
from decimal import Decimal
from typing import Iterable, Optional

from constance import config
from django.db import transaction
from django.db.models import F, Q
from django.utils.translation import gettext_lazy as _

from apps.core.clock import StoreClock
from apps.core.exceptions import (
    InsufficientStock,
    InvalidInput,
    LimitExceeded,
    NotFound,
    StoreError,
)
from apps.core.money import ZERO, quantize_money
from apps.promotions.models import Coupon

from .cart import Cart, CartLine, CustomerIdentity
from .choices import ORDER_STATUS_ALIASES, OrderStatus
from .models import Order, OrderItem, OrderSequence, Product

logger = logging.getLogger(__name__)

ORDER_SEQUENCE_DIGITS = 5


@transaction.atomic
def next_order_code(year: int, prefix: Optional[str] = None) -> str:
    """
    Take the next code in the ``<prefix><year><sequence>`` series, e.g.
    MAE202600001.

    The counter row stays locked until the surrounding transaction ends.
    A new series continues from the highest code already issued.
    """
    stem = f"{prefix or config.ORDER_CODE_PREFIX}{year}"
    sequence, created = OrderSequence.objects.select_for_update().get_or_create(
        stem=stem
    )
    if created:
        last = Order.objects.last_code(stem)
        sequence.last_value = int(last[len(stem):]) if last else 0
    sequence.last_value += 1
    sequence.save(update_fields=["last_value"])
    return f"{stem}{sequence.last_value:0{ORDER_SEQUENCE_DIGITS}d}"


def parse_status(value) -> str:
    """Normalize a status input, accepting lower case and aliases."""
    normalized = str(value or "").strip().upper()
    normalized = ORDER_STATUS_ALIASES.get(normalized, normalized)
    if normalized not in OrderStatus.values:
        raise InvalidInput(
            _("Unknown order status: %(status)s."),
            code="invalid_status",
            params={"status": value},
        )
    return normalized


def _validate_checkout(identity, lines, shipping_address, payment_method):
    if identity is None or not identity.is_known:
        raise InvalidInput(
            _("A customer account or a guest email is required."),
            code="missing_identity",
        )
    if not lines:
        raise InvalidInput(_("The cart is empty."), code="empty_cart")
    if not (shipping_address or "").strip():
        raise InvalidInput(
            _("A shipping address is required."), code="missing_address"
        )
    if not payment_method:
        raise InvalidInput(
            _("A payment method is required."), code="missing_payment_method"
        )
    for line in lines:
        if line.quantity < 1:
            raise InvalidInput(
                _("Quantity for %(name)s must be at least 1."),
                code="invalid_quantity",
                params={"name": line.name},
            )


def _insufficient_stock(product, requested):
    return InsufficientStock(
        _(
            'Insufficient stock for "%(name)s". '
            "Available: %(available)d, requested: %(requested)d."
        ),
        params={
            "name": product.name,
            "available": product.stock,
            "requested": requested,
        },
    )


def _reserve_stock(lines: Iterable[CartLine]) -> dict:
    """
    Lock every product in the cart and take the requested units out of stock.

    Rows are locked in primary key order so concurrent checkouts sharing
    products cannot deadlock.
    """
    requested = Counter()
    for line in lines:
        requested[line.product_id] += line.quantity

    products = {
        product.pk: product
        for product in Product.objects.select_for_update()
        .filter(pk__in=requested)
        .order_by("pk")
    }

    for product_id in sorted(requested, key=str):
        product = products.get(product_id)
        if product is None:
            raise NotFound(
                _("Product %(product)s was not found."),
                params={"product": product_id},
            )
        quantity = requested[product_id]
        if product.stock < quantity:
            raise _insufficient_stock(product, quantity)
        if not Product.objects.filter(pk=product_id).deduct_stock(quantity):
            product.refresh_from_db(fields=["stock"])
            raise _insufficient_stock(product, quantity)

    return products


def redeem_coupon(code: str) -> Coupon:
    """
    Count one use of ``code``, refusing once its global cap is reached.

    The check and the increment are a single conditional update, so two
    checkouts cannot both take the last use.
    """
    updated = (
        Coupon.objects.active()
        .filter(code=code)
        .filter(Q(max_uses__isnull=True) | Q(uses__lt=F("max_uses")))
        .update(uses=F("uses") + 1)
    )
    if not updated:
        if Coupon.objects.active().filter(code=code).exists():
            raise LimitExceeded(
                _("Coupon %(code)s has reached its usage limit."),
                code="coupon_exhausted",
                params={"code": code},
            )
        raise NotFound(
            _("Coupon %(code)s is not valid or was not found."),
            code="coupon_not_found",
            params={"code": code},
        )
    return Coupon.objects.get(code=code)


def create_order(
    identity: CustomerIdentity,
    lines: Iterable[CartLine],
    shipping_address: str,
    payment_method: str,
    coupon_code: Optional[str] = None,
    coupon_discount: Decimal = ZERO,
    cart_discount: Decimal = ZERO,
    actor=None,
    clock: Optional[StoreClock] = None,
) -> Order:
    """
    Place an order atomically.

    Stock is re-checked under row locks at commit time, line prices are
    stored as given, and the coupon (if any) is redeemed in the same
    transaction. Any failure rolls everything back.
    """
    clock = clock or StoreClock()
    cart = lines if isinstance(lines, Cart) else Cart(lines)

    try:
        _validate_checkout(identity, cart.lines, shipping_address, payment_method)

        coupon_code = (coupon_code or "").strip().upper()
        coupon_discount = quantize_money(coupon_discount if coupon_code else ZERO)
        discount = quantize_money(coupon_discount + Decimal(cart_discount))
        subtotal = cart.subtotal
        if discount < 0 or discount > subtotal:
            raise InvalidInput(
                _("The discount cannot be negative or exceed the subtotal."),
                code="invalid_discount",
            )

        with transaction.atomic():
            _reserve_stock(cart.lines)

            order = Order.objects.create(
                code=next_order_code(clock.local_date().year),
                user_id=identity.user_id,
                guest_name=identity.guest_name if identity.user_id is None else "",
                guest_email=identity.guest_email if identity.user_id is None else "",
                guest_phone=identity.guest_phone,
                shipping_address=shipping_address.strip(),
                payment_method=payment_method,
                status=OrderStatus.PENDING,
                subtotal=subtotal,
                discount_amount=discount,
                total_amount=subtotal - discount,
                coupon_code=coupon_code,
                coupon_discount_amount=coupon_discount,
                created_by=actor,
            )
            OrderItem.objects.bulk_create(
                [
                    OrderItem(
                        order=order,
                        product_id=line.product_id,
                        variant_id=line.variant_id,
                        product_name=line.name,
                        variant_label=line.variant_label,
                        price_at_purchase=line.unit_price,
                        quantity=line.quantity,
                    )
                    for line in cart.lines
                ]
            )

            if coupon_code:
                redeem_coupon(coupon_code)
    except StoreError as exc:
        logger.warning("Order rejected: %s", exc.reason)
        raise

    logger.info(
        "Order %s created with %d line(s), total %s",
        order.code,
        len(cart),
        order.total_amount,
    )
    return order


@transaction.atomic
def update_order_status(order_id, status, actor=None) -> Order:
    """
    Move an order to ``status``.

    Entering CANCELLED restores stock and the sold counters; leaving it
    takes the units out again and fails if they are no longer available.
    """
    target = parse_status(status)

    try:
        order = Order.objects.select_for_update().get(pk=order_id)
    except Order.DoesNotExist:
        raise NotFound(
            _("Order %(order)s was not found."), params={"order": order_id}
        )

    previous = order.status
    if previous == target:
        return order

    quantities = Counter()
    for item in order.items.all():
        quantities[item.product_id] += item.quantity

    products = Product.objects.all_with_deleted()
    if target == OrderStatus.CANCELLED:
        for product_id, quantity in quantities.items():
            products.filter(pk=product_id).restore_stock(quantity)
    elif previous == OrderStatus.CANCELLED:
        locked = {
            product.pk: product
            for product in products.select_for_update()
            .filter(pk__in=quantities)
            .order_by("pk")
        }
        for product_id in sorted(quantities, key=str):
            quantity = quantities[product_id]
            if not products.filter(pk=product_id).deduct_stock(quantity):
                product = locked[product_id]
                product.refresh_from_db(fields=["stock"])
                logger.warning(
                    "Cannot reactivate order %s: %s short of stock",
                    order.code,
                    product.name,
                )
                raise _insufficient_stock(product, quantity)

    order.status = target
    order.updated_by = actor
    order.save(update_fields=["status", "updated_by", "updated_at"])
    logger.info("Order %s moved from %s to %s", order.code, previous, target)
    return order
