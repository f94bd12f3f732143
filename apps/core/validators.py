from django.core.exceptions import ValidationError
from django.utils.deconstruct import deconstructible
from django.utils.translation import gettext_lazy as _


@deconstructible
class CodeValidator:
    """
    Validador genérico para códigos con reglas específicas.
    """

    def __init__(
        self,
        uppercase=False,
        min_length=None,
        max_length=None,
        alphanumeric_only=False,
        allowed_symbols="",
        error_message=None,
    ):
        self.uppercase = uppercase
        self.min_length = min_length
        self.max_length = max_length
        self.alphanumeric_only = alphanumeric_only
        self.allowed_symbols = allowed_symbols
        self.error_message = error_message

    def __call__(self, value):
        if self.uppercase and value != value.upper():
            raise ValidationError(
                self.error_message or _("Code must be in uppercase."),
                code="invalid_case",
            )

        if self.alphanumeric_only:
            stripped = "".join(
                char for char in value if char not in self.allowed_symbols
            )
            if not stripped.isalnum():
                raise ValidationError(
                    self.error_message
                    or _("Code must contain only alphanumeric characters."),
                    code="invalid_alphanumeric",
                )

        length = len(value)

        if self.min_length is not None and length < self.min_length:
            raise ValidationError(
                self.error_message
                or _("Code must be at least %(length)d characters."),
                params={"length": self.min_length},
                code="invalid_min_length",
            )

        if self.max_length is not None and length > self.max_length:
            raise ValidationError(
                self.error_message
                or _("Code must be at most %(length)d characters."),
                params={"length": self.max_length},
                code="invalid_max_length",
            )

    def __eq__(self, other):
        return (
            isinstance(other, self.__class__)
            and self.uppercase == other.uppercase
            and self.min_length == other.min_length
            and self.max_length == other.max_length
            and self.alphanumeric_only == other.alphanumeric_only
            and self.allowed_symbols == other.allowed_symbols
        )


coupon_code_validator = CodeValidator(
    uppercase=True,
    min_length=3,
    max_length=50,
    alphanumeric_only=True,
    allowed_symbols="-_",
)


@deconstructible
class PercentageValidator:
    """Rejects percentages outside 0..100."""

    def __call__(self, value):
        if value is not None and not 0 <= value <= 100:
            raise ValidationError(
                _("Percentage must be between 0 and 100."),
                code="invalid_percentage",
            )

    def __eq__(self, other):
        return isinstance(other, self.__class__)


percentage_validator = PercentageValidator()
