from decimal import Decimal

import pytest
from django.contrib import admin
from django.contrib.messages import get_messages
from django.contrib.messages.storage.fallback import FallbackStorage
from django.test import RequestFactory

from apps.core.choices import DeletionReason
from apps.core.deleters import AdminDeleter
from apps.promotions.admin import CouponAdmin
from apps.promotions.models import Coupon
from apps.store.admin import OrderAdmin
from apps.store.cart import CartLine
from apps.store.choices import OrderStatus, PaymentMethod
from apps.store.models import Order
from apps.store.services import create_order


@pytest.fixture
def admin_request(admin_user):
    request = RequestFactory().post("/admin/")
    request.user = admin_user
    request.session = "session"
    request._messages = FallbackStorage(request)
    return request


@pytest.fixture
def order(mug, guest):
    return create_order(guest, [CartLine.for_product(mug, 2)], "Calle Lima 1", PaymentMethod.PLIN)


def test_soft_delete_action_records_admin(admin_request, admin_user, make_coupon):
    coupon = make_coupon()
    model_admin = CouponAdmin(Coupon, admin.site)

    model_admin.soft_delete_selected(admin_request, Coupon.objects.all())

    coupon = Coupon.objects.all_with_deleted().get(pk=coupon.pk)
    assert coupon.deleter == AdminDeleter(admin_user.pk)
    assert coupon.deletion_reason == DeletionReason.MANUAL
    assert coupon.active is False


def test_restore_action(admin_request, make_coupon):
    coupon = make_coupon()
    model_admin = CouponAdmin(Coupon, admin.site)
    model_admin.soft_delete_selected(admin_request, Coupon.objects.all())

    model_admin.restore_selected(admin_request, Coupon.objects.all_with_deleted())

    coupon.refresh_from_db()
    assert coupon.deleter is None


def test_admin_lists_deleted_rows(admin_request, make_coupon, now):
    make_coupon(code="BORRADO", deleted_at=now)
    model_admin = CouponAdmin(Coupon, admin.site)

    assert model_admin.get_queryset(admin_request).filter(code="BORRADO").exists()


def test_cancel_action_restores_stock(admin_request, admin_user, order, mug):
    model_admin = OrderAdmin(Order, admin.site)

    model_admin.mark_cancelled(admin_request, Order.objects.filter(pk=order.pk))

    order.refresh_from_db()
    mug.refresh_from_db()
    assert order.status == OrderStatus.CANCELLED
    assert order.updated_by == admin_user
    assert mug.stock == 10


def test_status_action_reports_failures(admin_request, order, mug):
    model_admin = OrderAdmin(Order, admin.site)
    model_admin.mark_cancelled(admin_request, Order.objects.filter(pk=order.pk))
    mug.stock = 1
    mug.save()

    model_admin.mark_processing(admin_request, Order.objects.filter(pk=order.pk))

    order.refresh_from_db()
    assert order.status == OrderStatus.CANCELLED
    texts = [str(message) for message in get_messages(admin_request)]
    assert any(order.code in text for text in texts)


def test_order_admin_shows_customer(order):
    model_admin = OrderAdmin(Order, admin.site)

    assert model_admin.customer(order) == "Cliente"
    assert order.total_amount == Decimal("200.00")
