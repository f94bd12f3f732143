from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.core.clock import StoreClock
from apps.core.models import AuditModel
from apps.core.money import ZERO, percentage_of, quantize_money
from apps.core.validators import coupon_code_validator
from apps.store.models import Category, Product

from .choices import AppliesTo, DiscountType
from .managers import CouponManager, DiscountManager
from .scopes import CartScope, CartValueScope, CategoryScope, ProductScope


class PromotionBase(AuditModel):
    """
    Fields and arithmetic shared by campaign discounts and coupons.
    """

    name = models.CharField(max_length=150, verbose_name=_("Name"))
    discount_type = models.CharField(
        max_length=20,
        choices=DiscountType.choices,
        default=DiscountType.PERCENTAGE,
        verbose_name=_("Discount Type"),
    )
    discount_value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
        verbose_name=_("Discount Value"),
        help_text=_("Percentage or fixed amount, depending on the type"),
    )
    applies_to = models.CharField(
        max_length=20,
        choices=AppliesTo.choices,
        verbose_name=_("Applies To"),
    )
    target_product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        blank=True,
        null=True,
        related_name="targeted_%(class)ss",
        verbose_name=_("Target Product"),
    )
    target_category = models.ForeignKey(
        Category,
        on_delete=models.CASCADE,
        blank=True,
        null=True,
        related_name="targeted_%(class)ss",
        verbose_name=_("Target Category"),
    )
    min_cart_value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        blank=True,
        null=True,
        validators=[MinValueValidator(Decimal("0.00"))],
        verbose_name=_("Minimum Cart Value"),
        help_text=_("Threshold for cart value promotions"),
    )
    active = models.BooleanField(default=True, verbose_name=_("Active"))

    class Meta(AuditModel.Meta):
        abstract = True

    def __str__(self):
        return self.name

    def clean(self):
        super().clean()
        if (
            self.discount_type == DiscountType.PERCENTAGE
            and self.discount_value is not None
            and self.discount_value > 100
        ):
            raise ValidationError(
                {
                    "discount_value": _(
                        "Percentage discount cannot exceed 100%."
                    )
                }
            )
        required = {
            AppliesTo.PRODUCT: ("target_product", self.target_product_id),
            AppliesTo.CATEGORY: ("target_category", self.target_category_id),
            AppliesTo.CART_VALUE: ("min_cart_value", self.min_cart_value),
        }
        if self.applies_to in required:
            field_name, value = required[self.applies_to]
            if value is None:
                raise ValidationError(
                    {field_name: _("This field is required for this scope.")}
                )

    @property
    def scope(self):
        if self.applies_to == AppliesTo.PRODUCT:
            return ProductScope(
                self.target_product_id,
                label=self.target_product.name if self.target_product_id else "",
            )
        if self.applies_to == AppliesTo.CATEGORY:
            return CategoryScope(
                self.target_category_id,
                label=self.target_category.name if self.target_category_id else "",
            )
        if self.applies_to == AppliesTo.CART_VALUE:
            return CartValueScope(self.min_cart_value or ZERO)
        return CartScope()

    def amount_off(self, base) -> Decimal:
        """Discount on ``base``; a fixed amount never exceeds the base."""
        base = Decimal(base)
        if self.discount_type == DiscountType.PERCENTAGE:
            amount = percentage_of(base, self.discount_value)
        else:
            amount = quantize_money(self.discount_value)
        return min(amount, quantize_money(base))

    def discounted_price(self, price) -> Decimal:
        return max(quantize_money(price) - self.amount_off(price), ZERO)


class Discount(PromotionBase):
    """
    Campaign discount applied automatically to a product, a category or
    carts above a value. Dates are store-local calendar days.
    """

    start_date = models.DateField(
        blank=True, null=True, verbose_name=_("Start Date")
    )
    end_date = models.DateField(blank=True, null=True, verbose_name=_("End Date"))

    objects = DiscountManager()

    class Meta(PromotionBase.Meta):
        verbose_name = _("Discount")
        verbose_name_plural = _("Discounts")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["applies_to", "active"]),
            models.Index(fields=["end_date"]),
        ]
        constraints = [
            *AuditModel.Meta.constraints,
            models.CheckConstraint(
                condition=models.Q(start_date__isnull=True)
                | models.Q(end_date__isnull=True)
                | models.Q(start_date__lte=models.F("end_date")),
                name="discount_dates_order",
            ),
            models.CheckConstraint(
                condition=~models.Q(applies_to=AppliesTo.CART),
                name="discount_scope_not_whole_cart",
            ),
        ]

    def clean(self):
        super().clean()
        if self.applies_to == AppliesTo.CART:
            raise ValidationError(
                {"applies_to": _("Use a cart value scope for cart discounts.")}
            )
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError(
                {"end_date": _("End date must not be before the start date.")}
            )

    def is_active_at(self, moment=None, clock=None) -> bool:
        """Active, not deleted, and inside its date range at ``moment``."""
        clock = clock or StoreClock()
        return (
            self.active
            and not self.is_deleted()
            and clock.within(self.start_date, self.end_date, moment)
        )


class Coupon(PromotionBase):
    """
    Model representing discount coupons for the e-commerce system.
    """

    code = models.CharField(
        max_length=50,
        unique=True,
        validators=[coupon_code_validator],
        verbose_name=_("Code"),
        help_text=_("Unique coupon code, stored in uppercase"),
    )
    min_purchase = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        verbose_name=_("Minimum Purchase"),
        help_text=_("Minimum cart subtotal required"),
    )
    max_uses = models.PositiveIntegerField(
        blank=True,
        null=True,
        verbose_name=_("Max Uses"),
        help_text=_("Maximum number of uses (blank for unlimited)"),
    )
    uses = models.PositiveIntegerField(
        default=0,
        verbose_name=_("Uses"),
        help_text=_("Number of times coupon has been used"),
    )
    usage_limit_per_user = models.PositiveIntegerField(
        blank=True,
        null=True,
        verbose_name=_("Usage Limit per Customer"),
    )
    starts_at = models.DateTimeField(
        blank=True, null=True, verbose_name=_("Starts At")
    )
    expires_at = models.DateTimeField(
        blank=True, null=True, verbose_name=_("Expires At")
    )

    objects = CouponManager()

    class Meta(PromotionBase.Meta):
        verbose_name = _("Coupon")
        verbose_name_plural = _("Coupons")
        ordering = ["code"]
        indexes = [
            models.Index(fields=["code"]),
            models.Index(fields=["active"]),
            models.Index(fields=["expires_at"]),
        ]
        constraints = [
            *AuditModel.Meta.constraints,
            models.CheckConstraint(
                condition=models.Q(max_uses__isnull=True)
                | models.Q(uses__lte=models.F("max_uses")),
                name="coupon_uses_within_max",
            ),
        ]

    def __str__(self):
        """Return the coupon code as string representation."""
        return self.code

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().upper()
        if not self.applies_to:
            self.applies_to = AppliesTo.CART
        super().save(*args, **kwargs)

    @property
    def is_exhausted(self) -> bool:
        return self.max_uses is not None and self.uses >= self.max_uses
