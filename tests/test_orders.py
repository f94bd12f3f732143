import logging
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest
from constance.test import override_config
from django.db import IntegrityError, connection

from apps.core.clock import FrozenClock
from apps.core.exceptions import (
    InsufficientStock,
    InvalidInput,
    LimitExceeded,
    NotFound,
)
from apps.promotions.models import Coupon
from apps.store.cart import Cart, CartLine, CustomerIdentity
from apps.store.choices import OrderStatus, PaymentMethod, VariantType
from apps.store.models import (
    Order,
    OrderItem,
    OrderSequence,
    Product,
    ProductVariant,
)
from apps.store.services import (
    create_order,
    next_order_code,
    parse_status,
    update_order_status,
)

from .utils import lima

ADDRESS = "Av. Arequipa 1234, Lince"


def place(identity, lines, **kwargs):
    kwargs.setdefault("clock", FrozenClock(lima(2026, 3, 10)))
    return create_order(identity, lines, ADDRESS, PaymentMethod.YAPE, **kwargs)


def test_create_order_deducts_stock_and_snapshots_prices(mug, customer):
    identity = CustomerIdentity.for_user(customer)
    line = CartLine.for_product(mug, 3, unit_price=Decimal("85.00"))

    order = place(identity, [line])

    mug.refresh_from_db()
    assert mug.stock == 7
    assert mug.total_sold == 3
    assert order.status == OrderStatus.PENDING
    assert order.user == customer
    assert order.subtotal == Decimal("255.00")
    assert order.total_amount == Decimal("255.00")
    item = order.items.get()
    assert item.price_at_purchase == Decimal("85.00")
    assert item.product_name == "Taza mágica"


def test_line_price_is_not_recomputed_from_product(mug, guest):
    order = place(guest, [CartLine.for_product(mug, 1)])
    Product.objects.filter(pk=mug.pk).update(price=Decimal("150.00"))

    assert order.items.get().price_at_purchase == Decimal("100.00")
    assert Order.objects.get(pk=order.pk).total_amount == Decimal("100.00")


def test_guest_order_keeps_contact_details(mug, guest):
    order = place(guest, [CartLine.for_product(mug, 1)])

    assert order.user is None
    assert order.guest_email == "cliente@example.com"
    assert order.guest_name == "Cliente"
    assert order.guest_phone == "999888777"


def test_order_codes_follow_yearly_sequence(mug, guest):
    first = place(guest, [CartLine.for_product(mug, 1)])
    second = place(guest, [CartLine.for_product(mug, 1)])

    assert first.code == "MAE202600001"
    assert second.code == "MAE202600002"
    assert next_order_code(2027) == "MAE202700001"


def test_order_codes_keep_counting_past_five_digits(db):
    for code in ["MAE202699999", "MAE2026100000"]:
        Order.objects.create(
            code=code,
            guest_email="antiguo@example.com",
            shipping_address=ADDRESS,
            payment_method=PaymentMethod.CASH,
        )

    assert next_order_code(2026) == "MAE2026100001"
    assert next_order_code(2026) == "MAE2026100002"


def test_order_code_counter_is_kept_per_series(mug, guest):
    place(guest, [CartLine.for_product(mug, 1)])
    place(guest, [CartLine.for_product(mug, 1)])

    assert OrderSequence.objects.get(stem="MAE2026").last_value == 2
    assert not OrderSequence.objects.filter(stem="MAE2027").exists()


def test_order_code_prefix_is_configurable(mug, guest):
    with override_config(ORDER_CODE_PREFIX="TST"):
        order = place(guest, [CartLine.for_product(mug, 1)])

    assert order.code == "TST202600001"


def test_totals_include_coupon_and_cart_discounts(mug, guest, make_coupon):
    coupon = make_coupon(max_uses=5)

    order = place(
        guest,
        [CartLine.for_product(mug, 2)],
        coupon_code="promo10",
        coupon_discount=Decimal("20.00"),
        cart_discount=Decimal("5.00"),
    )

    coupon.refresh_from_db()
    assert coupon.uses == 1
    assert order.coupon_code == "PROMO10"
    assert order.coupon_discount_amount == Decimal("20.00")
    assert order.discount_amount == Decimal("25.00")
    assert order.total_amount == order.subtotal - order.discount_amount


def test_insufficient_stock_rolls_back_everything(mug, make_product, guest, make_coupon):
    coupon = make_coupon()
    scarce = make_product(name="Polo edición limitada", stock=1)
    lines = [CartLine.for_product(mug, 2), CartLine.for_product(scarce, 2)]

    with pytest.raises(InsufficientStock) as excinfo:
        place(guest, lines, coupon_code="PROMO10")

    assert "Polo edición limitada" in excinfo.value.reason
    assert "Available: 1, requested: 2" in excinfo.value.reason
    mug.refresh_from_db()
    scarce.refresh_from_db()
    coupon.refresh_from_db()
    assert (mug.stock, mug.total_sold) == (10, 0)
    assert scarce.stock == 1
    assert coupon.uses == 0
    assert not Order.objects.exists()
    assert not OrderItem.objects.exists()


def test_repeated_product_lines_are_checked_together(mug, guest):
    lines = [CartLine.for_product(mug, 6), CartLine.for_product(mug, 6)]

    with pytest.raises(InsufficientStock):
        place(guest, lines)

    mug.refresh_from_db()
    assert mug.stock == 10


def test_missing_product_aborts_order(mug, guest):
    ghost = CartLine(product_id=uuid.uuid4(), name="Fantasma", unit_price=Decimal("1"), quantity=1)

    with pytest.raises(NotFound):
        place(guest, [CartLine.for_product(mug, 1), ghost])

    mug.refresh_from_db()
    assert mug.stock == 10


def test_last_unit_goes_to_only_one_checkout(make_product, guest, customer):
    last = make_product(name="Taza única", stock=1)
    line = CartLine.for_product(last, 1)

    place(guest, [line])
    with pytest.raises(InsufficientStock):
        place(CustomerIdentity.for_user(customer), [line])

    last.refresh_from_db()
    assert last.stock == 0
    assert Order.objects.count() == 1


@pytest.mark.django_db(transaction=True)
def test_concurrent_checkouts_for_last_unit(make_product, guest, customer):
    last = make_product(name="Taza única", stock=1)
    line = CartLine.for_product(last, 1)
    identities = [guest, CustomerIdentity.for_user(customer)]
    start = threading.Barrier(len(identities))

    def checkout(identity):
        start.wait()
        try:
            return place(identity, [line])
        except InsufficientStock as exc:
            return exc
        finally:
            connection.close()

    with ThreadPoolExecutor(max_workers=len(identities)) as pool:
        results = list(pool.map(checkout, identities))

    orders = [result for result in results if isinstance(result, Order)]
    rejected = [result for result in results if isinstance(result, InsufficientStock)]
    assert len(orders) == 1
    assert len(rejected) == 1
    last.refresh_from_db()
    assert (last.stock, last.total_sold) == (0, 1)
    assert Order.objects.count() == 1


def test_conditional_deduction_refuses_stale_stock(mug):
    assert Product.objects.filter(pk=mug.pk).deduct_stock(11) == 0
    assert Product.objects.filter(pk=mug.pk).deduct_stock(10) == 1

    mug.refresh_from_db()
    assert (mug.stock, mug.total_sold) == (0, 10)


def test_coupon_cap_allows_exactly_max_uses_orders(mug, guest, make_coupon):
    coupon = make_coupon(max_uses=2)
    line = CartLine.for_product(mug, 1)

    place(guest, [line], coupon_code="PROMO10")
    place(guest, [line], coupon_code="PROMO10")
    with pytest.raises(LimitExceeded):
        place(guest, [line], coupon_code="PROMO10")

    coupon.refresh_from_db()
    mug.refresh_from_db()
    assert coupon.uses == 2
    assert mug.stock == 8
    assert Order.objects.count() == 2


def test_unknown_coupon_code_aborts_order(mug, guest):
    with pytest.raises(NotFound):
        place(guest, [CartLine.for_product(mug, 1)], coupon_code="NOEXISTE")

    mug.refresh_from_db()
    assert mug.stock == 10
    assert not Coupon.objects.exists()


@pytest.mark.parametrize(
    "identity, lines, address, code",
    [
        (CustomerIdentity(), None, ADDRESS, "missing_identity"),
        (CustomerIdentity.guest("a@b.pe"), [], ADDRESS, "empty_cart"),
        (CustomerIdentity.guest("a@b.pe"), None, "  ", "missing_address"),
    ],
)
def test_malformed_checkout_is_rejected(mug, identity, lines, address, code):
    if lines is None:
        lines = [CartLine.for_product(mug, 1)]

    with pytest.raises(InvalidInput) as excinfo:
        create_order(identity, lines, address, PaymentMethod.CARD)
    assert excinfo.value.code == code


def test_zero_quantity_is_rejected(mug, guest):
    with pytest.raises(InvalidInput):
        place(guest, [CartLine.for_product(mug, 0)])


def test_discount_above_subtotal_is_rejected(mug, guest):
    with pytest.raises(InvalidInput):
        place(guest, [CartLine.for_product(mug, 1)], cart_discount=Decimal("150"))


def test_rejected_checkout_is_logged(mug, caplog):
    with caplog.at_level(logging.WARNING, logger="apps.store.services"):
        with pytest.raises(InvalidInput):
            place(CustomerIdentity(), [CartLine.for_product(mug, 1)])

    assert "Order rejected" in caplog.text
    assert "guest email is required" in caplog.text


def test_cancel_and_reactivate_restore_counters(mug, guest, admin_user):
    Product.objects.filter(pk=mug.pk).update(stock=10, total_sold=50)
    order = place(guest, [CartLine.for_product(mug, 2)])
    mug.refresh_from_db()
    assert (mug.stock, mug.total_sold) == (8, 52)

    update_order_status(order.pk, OrderStatus.CANCELLED, actor=admin_user)
    mug.refresh_from_db()
    assert (mug.stock, mug.total_sold) == (10, 50)

    order = update_order_status(order.pk, "processing", actor=admin_user)
    mug.refresh_from_db()
    assert (mug.stock, mug.total_sold) == (8, 52)
    assert order.status == OrderStatus.PROCESSING
    assert order.updated_by == admin_user


def test_cancel_surfaces_drifted_sold_counter(mug, guest):
    order = place(guest, [CartLine.for_product(mug, 2)])
    Product.objects.filter(pk=mug.pk).update(total_sold=1)

    with pytest.raises(IntegrityError):
        update_order_status(order.pk, "cancelled")

    order.refresh_from_db()
    mug.refresh_from_db()
    assert order.status == OrderStatus.PENDING
    assert (mug.stock, mug.total_sold) == (8, 1)


def test_forward_transitions_do_not_touch_stock(mug, guest):
    order = place(guest, [CartLine.for_product(mug, 2)])

    for status in ["processing", "transit", "delivered"]:
        update_order_status(order.pk, status)

    mug.refresh_from_db()
    order.refresh_from_db()
    assert mug.stock == 8
    assert order.status == OrderStatus.DELIVERED


def test_cancelling_twice_restores_once(mug, guest):
    order = place(guest, [CartLine.for_product(mug, 2)])

    update_order_status(order.pk, "cancelled")
    update_order_status(order.pk, "CANCELLED")

    mug.refresh_from_db()
    assert mug.stock == 10


def test_reactivation_fails_without_stock(mug, guest):
    order = place(guest, [CartLine.for_product(mug, 4)])
    update_order_status(order.pk, "cancelled")
    Product.objects.filter(pk=mug.pk).update(stock=3)

    with pytest.raises(InsufficientStock):
        update_order_status(order.pk, "pending")

    order.refresh_from_db()
    mug.refresh_from_db()
    assert order.status == OrderStatus.CANCELLED
    assert mug.stock == 3


def test_unknown_status_is_rejected_before_any_change(mug, guest):
    order = place(guest, [CartLine.for_product(mug, 1)])

    with pytest.raises(InvalidInput):
        update_order_status(order.pk, "refunded")

    order.refresh_from_db()
    assert order.status == OrderStatus.PENDING


def test_status_update_for_missing_order(db):
    with pytest.raises(NotFound):
        update_order_status(uuid.uuid4(), "processing")


def test_parse_status_accepts_aliases():
    assert parse_status("Transit") == OrderStatus.SHIPPED
    assert parse_status(" delivered ") == OrderStatus.DELIVERED


def test_cart_subtotal(mug, make_product):
    shirt = make_product(name="Polo", price="39.90")
    cart = Cart([CartLine.for_product(mug, 1), CartLine.for_product(shirt, 3)])

    assert cart.subtotal == Decimal("219.70")


def test_marking_a_variant_default_clears_its_siblings(mug, make_product):
    other = ProductVariant.objects.create(
        product=make_product(name="Polo"), label="M", price=Decimal("40.00"), is_default=True
    )
    small = ProductVariant.objects.create(
        product=mug, label="11oz", price=Decimal("100.00"), is_default=True
    )
    large = ProductVariant.objects.create(
        product=mug,
        variant_type=VariantType.CAPACITY,
        label="15oz",
        price=Decimal("120.00"),
        is_default=True,
    )

    small.refresh_from_db()
    other.refresh_from_db()
    assert not small.is_default
    assert other.is_default
    assert mug.default_variant == large


def test_default_variant_falls_back_to_first_variant(mug):
    assert mug.default_variant is None

    ProductVariant.objects.create(product=mug, label="15oz", price=Decimal("120.00"))
    cheaper = ProductVariant.objects.create(product=mug, label="11oz", price=Decimal("90.00"))

    assert mug.default_variant == cheaper
