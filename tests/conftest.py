from decimal import Decimal

import pytest

from apps.core.clock import FrozenClock, StoreClock
from apps.promotions.choices import AppliesTo, DiscountType
from apps.promotions.models import Coupon, Discount
from apps.store.cart import CustomerIdentity
from apps.store.models import Category, Product

from .utils import lima


@pytest.fixture
def now():
    return lima(2026, 3, 10)


@pytest.fixture
def clock(now):
    return FrozenClock(now)


@pytest.fixture
def store_clock():
    return StoreClock("America/Lima")


@pytest.fixture
def admin_user(db, django_user_model):
    return django_user_model.objects.create_user(
        username="admin", password="secret", is_staff=True, is_superuser=True
    )


@pytest.fixture
def customer(db, django_user_model):
    return django_user_model.objects.create_user(
        username="maria", email="maria@example.com", password="secret"
    )


@pytest.fixture
def mugs(db):
    return Category.objects.create(name="Tazas", slug="tazas")


@pytest.fixture
def shirts(db):
    return Category.objects.create(name="Polos", slug="polos")


@pytest.fixture
def make_product(db, mugs):
    def _make(name="Taza mágica", price="100.00", stock=10, **kwargs):
        kwargs.setdefault("category", mugs)
        return Product.objects.create(
            name=name, price=Decimal(price), stock=stock, **kwargs
        )

    return _make


@pytest.fixture
def mug(make_product):
    return make_product()


@pytest.fixture
def make_discount(db):
    def _make(
        name="Campaña",
        value="10",
        discount_type=DiscountType.PERCENTAGE,
        applies_to=AppliesTo.PRODUCT,
        **kwargs,
    ):
        return Discount.objects.create(
            name=name,
            discount_type=discount_type,
            discount_value=Decimal(value),
            applies_to=applies_to,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_coupon(db):
    def _make(
        code="PROMO10",
        value="10",
        discount_type=DiscountType.PERCENTAGE,
        applies_to=AppliesTo.CART,
        **kwargs,
    ):
        return Coupon.objects.create(
            code=code,
            name=kwargs.pop("name", code),
            discount_type=discount_type,
            discount_value=Decimal(value),
            applies_to=applies_to,
            **kwargs,
        )

    return _make


@pytest.fixture
def guest():
    return CustomerIdentity.guest("cliente@example.com", name="Cliente", phone="999888777")
