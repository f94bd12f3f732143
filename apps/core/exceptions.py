"""
Typed rejections raised by the pricing, coupon and order services.

Each one is a ``ValidationError`` so forms and the admin can surface the
message unchanged. ``reason`` holds the formatted, user-facing text.
"""

from django.core.exceptions import ValidationError


class StoreError(ValidationError):
    default_code = "invalid"

    def __init__(self, message, code=None, params=None):
        super().__init__(message, code=code or self.default_code, params=params)

    @property
    def reason(self) -> str:
        return self.messages[0]


class NotFound(StoreError):
    default_code = "not_found"


class Inactive(StoreError):
    default_code = "inactive"


class Expired(Inactive):
    default_code = "expired"


class LimitExceeded(StoreError):
    default_code = "limit_exceeded"


class NotApplicable(StoreError):
    default_code = "not_applicable"


class InsufficientStock(StoreError):
    default_code = "insufficient_stock"


class InvalidInput(StoreError):
    default_code = "invalid_input"
