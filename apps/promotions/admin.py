from django.contrib import admin, messages
from django.db.models import QuerySet
from django.http import HttpRequest
from django.utils.translation import gettext_lazy as _
from unfold.decorators import action

from apps.core.admin import BaseAuditAdmin

from .models import Coupon, Discount
from .services import expire_promotions


class PromotionAdmin(BaseAuditAdmin):
    list_filter = ("active", "discount_type", "applies_to")
    search_fields = ("name",)
    autocomplete_fields = ("target_product", "target_category")
    actions = BaseAuditAdmin.actions + ["expire_now"]

    @action(description=_("Expire overdue promotions now"))
    def expire_now(self, request: HttpRequest, queryset: QuerySet) -> None:
        report = expire_promotions()
        self.message_user(
            request,
            _("Expired %(coupons)d coupon(s) and %(discounts)d discount(s).")
            % {
                "coupons": report.expired_coupons,
                "discounts": report.expired_discounts,
            },
            messages.SUCCESS,
        )


@admin.register(Discount)
class DiscountAdmin(PromotionAdmin):
    list_display = (
        "name",
        "discount_type",
        "discount_value",
        "applies_to",
        "start_date",
        "end_date",
        "active",
        "deleted_at",
    )


@admin.register(Coupon)
class CouponAdmin(PromotionAdmin):
    list_display = (
        "code",
        "name",
        "discount_type",
        "discount_value",
        "uses",
        "max_uses",
        "expires_at",
        "active",
        "deleted_at",
    )
    search_fields = ("code", "name")
    readonly_fields = BaseAuditAdmin.readonly_fields + ["uses"]
