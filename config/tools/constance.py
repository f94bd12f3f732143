from decimal import Decimal

from django.utils.translation import gettext_lazy as _

CONSTANCE_CONFIG = {
    "COUPON_MAX_DISCOUNT_RATIO": (
        Decimal("0.80"),
        _("Largest share of the cart subtotal a coupon may discount"),
        Decimal,
    ),
    "ORDER_CODE_PREFIX": (
        "MAE",
        _("Prefix for order codes, followed by the year and a sequence"),
        str,
    ),
}

CONSTANCE_CONFIG_FIELDSETS = {
    "Coupons": ("COUPON_MAX_DISCOUNT_RATIO",),
    "Orders": ("ORDER_CODE_PREFIX",),
}
