from django.contrib import admin, messages
from django.db.models import QuerySet
from django.http import HttpRequest
from django.utils.translation import gettext_lazy as _
from django.utils.translation import ngettext
from unfold.admin import TabularInline
from unfold.decorators import action

from apps.core.admin import BaseAuditAdmin
from apps.core.exceptions import StoreError

from .choices import OrderStatus
from .models import Category, Order, OrderItem, Product, ProductVariant
from .services import update_order_status


@admin.register(Category)
class CategoryAdmin(BaseAuditAdmin):
    list_display = ("name", "slug", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}


class ProductVariantInline(TabularInline):
    model = ProductVariant
    fields = ("variant_type", "label", "price", "stock", "is_default")
    extra = 0


@admin.register(Product)
class ProductAdmin(BaseAuditAdmin):
    list_display = (
        "name",
        "category",
        "price",
        "discount_percentage",
        "stock",
        "total_sold",
        "is_active",
    )
    list_filter = ("is_active", "has_variants", "category")
    search_fields = ("name", "description")
    readonly_fields = BaseAuditAdmin.readonly_fields + ["total_sold"]
    inlines = [ProductVariantInline]


class OrderItemInline(TabularInline):
    model = OrderItem
    fields = (
        "product",
        "product_name",
        "variant_label",
        "quantity",
        "price_at_purchase",
    )
    readonly_fields = fields
    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(BaseAuditAdmin):
    list_display = (
        "code",
        "customer",
        "status",
        "subtotal",
        "discount_amount",
        "total_amount",
        "coupon_code",
        "created_at",
    )
    list_filter = ("status", "payment_method")
    search_fields = ("code", "guest_email", "guest_name", "user__username")
    readonly_fields = BaseAuditAdmin.readonly_fields + [
        "code",
        "status",
        "subtotal",
        "discount_amount",
        "total_amount",
        "coupon_code",
        "coupon_discount_amount",
    ]
    inlines = [OrderItemInline]
    actions = BaseAuditAdmin.actions + [
        "mark_processing",
        "mark_shipped",
        "mark_delivered",
        "mark_cancelled",
    ]

    @admin.display(description=_("Customer"))
    def customer(self, obj: Order) -> str:
        return obj.customer_name or obj.guest_email

    def _change_status(
        self, request: HttpRequest, queryset: QuerySet, status: str
    ) -> None:
        changed = 0
        for order in queryset:
            try:
                update_order_status(order.pk, status, actor=request.user)
            except StoreError as exc:
                self.message_user(
                    request, f"{order.code}: {exc.reason}", messages.ERROR
                )
            else:
                changed += 1
        if changed:
            message = ngettext(
                "%(count)d order was updated.",
                "%(count)d orders were updated.",
                changed,
            ) % {"count": changed}
            self.message_user(request, message, messages.SUCCESS)

    @action(description=_("Mark as processing"))
    def mark_processing(self, request: HttpRequest, queryset: QuerySet):
        self._change_status(request, queryset, OrderStatus.PROCESSING)

    @action(description=_("Mark as shipped"))
    def mark_shipped(self, request: HttpRequest, queryset: QuerySet):
        self._change_status(request, queryset, OrderStatus.SHIPPED)

    @action(description=_("Mark as delivered"))
    def mark_delivered(self, request: HttpRequest, queryset: QuerySet):
        self._change_status(request, queryset, OrderStatus.DELIVERED)

    @action(description=_("Cancel orders"))
    def mark_cancelled(self, request: HttpRequest, queryset: QuerySet):
        self._change_status(request, queryset, OrderStatus.CANCELLED)
