from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def quantize_money(value) -> Decimal:
    """Round an amount to cents, half up."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def percentage_of(amount, percentage) -> Decimal:
    return quantize_money(Decimal(amount) * Decimal(percentage) / HUNDRED)


def format_money(amount) -> str:
    return f"{settings.STORE_CURRENCY_SYMBOL} {quantize_money(amount)}"
