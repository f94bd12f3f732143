from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models, transaction
from django.utils.translation import gettext_lazy as _

from apps.core.models import AuditModel, BaseModel
from apps.core.validators import percentage_validator

from .choices import OrderStatus, PaymentMethod, VariantType
from .managers import (
    CategoryManager,
    OrderManager,
    ProductManager,
    ProductVariantManager,
)

User = settings.AUTH_USER_MODEL


class Category(AuditModel):
    """
    Model representing product categories in the e-commerce store.
    """

    name = models.CharField(
        max_length=100,
        verbose_name=_("Name"),
        help_text=_("Category display name (max 100 characters)"),
    )
    description = models.TextField(
        blank=True,
        null=True,
        verbose_name=_("Description"),
        help_text=_("Optional category description"),
    )
    slug = models.SlugField(
        unique=True,
        verbose_name=_("Slug"),
        help_text=_("URL-friendly identifier for the category"),
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name=_("Active"),
        help_text=_("Whether the category is visible to customers"),
    )

    objects = CategoryManager()

    class Meta(AuditModel.Meta):
        verbose_name = _("Category")
        verbose_name_plural = _("Categories")
        ordering = ["name"]
        indexes = [
            models.Index(fields=["slug"]),
            models.Index(fields=["is_active"]),
        ]

    def __str__(self):
        """Return the category name as string representation."""
        return self.name


class Product(AuditModel):
    """
    Model representing products in the e-commerce store.

    ``discount_percentage`` is an inline promotion stored on the row; the
    end date only drives the countdown shown to customers.
    """

    name = models.CharField(
        max_length=200,
        verbose_name=_("Name"),
        help_text=_("Product display name (max 200 characters)"),
    )
    description = models.TextField(
        blank=True,
        null=True,
        verbose_name=_("Description"),
        help_text=_("Detailed product description"),
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        verbose_name=_("Price"),
        help_text=_("Base selling price"),
    )
    discount_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[percentage_validator],
        verbose_name=_("Discount Percentage"),
        help_text=_("Inline discount applied to the base price"),
    )
    discount_end_date = models.DateTimeField(
        blank=True,
        null=True,
        verbose_name=_("Discount End Date"),
        help_text=_("Shown to customers as the end of the inline discount"),
    )
    stock = models.PositiveIntegerField(
        default=0,
        verbose_name=_("Stock"),
        help_text=_("Available quantity in inventory"),
    )
    total_sold = models.PositiveIntegerField(
        default=0,
        verbose_name=_("Total Sold"),
        help_text=_("Units sold across non-cancelled orders"),
    )
    category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        blank=True,
        null=True,
        related_name="products",
        verbose_name=_("Category"),
        help_text=_("Product category"),
    )
    has_variants = models.BooleanField(
        default=False,
        verbose_name=_("Has Variants"),
        help_text=_("Whether the product is sold in several variants"),
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name=_("Active"),
        help_text=_("Whether product is available for purchase"),
    )

    objects = ProductManager()

    class Meta(AuditModel.Meta):
        verbose_name = _("Product")
        verbose_name_plural = _("Products")
        ordering = ["name"]
        indexes = [
            models.Index(fields=["category", "name"]),
            models.Index(fields=["price"]),
            models.Index(fields=["is_active", "stock"]),
            models.Index(fields=["-total_sold"]),
        ]
        constraints = [
            *AuditModel.Meta.constraints,
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="product_price_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(discount_percentage__gte=0)
                & models.Q(discount_percentage__lte=100),
                name="product_discount_percentage_range",
            ),
        ]

    def __str__(self):
        """Return the product name as string representation."""
        return self.name

    @property
    def default_variant(self):
        """The flagged default variant, falling back to the first one."""
        variants = list(self.variants.all())
        for variant in variants:
            if variant.is_default:
                return variant
        return variants[0] if variants else None


class ProductVariant(AuditModel):
    """
    A purchasable variation of a product (size, capacity or dimensions).
    """

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="variants",
        verbose_name=_("Product"),
    )
    variant_type = models.CharField(
        max_length=20,
        choices=VariantType.choices,
        default=VariantType.SIZE,
        verbose_name=_("Variant Type"),
    )
    label = models.CharField(
        max_length=100,
        verbose_name=_("Label"),
        help_text=_("Value shown to customers, e.g. 11oz or XL"),
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        verbose_name=_("Price"),
    )
    stock = models.PositiveIntegerField(default=0, verbose_name=_("Stock"))
    is_default = models.BooleanField(
        default=False,
        verbose_name=_("Default"),
        help_text=_("Variant preselected on the product page"),
    )

    objects = ProductVariantManager()

    class Meta(AuditModel.Meta):
        verbose_name = _("Product Variant")
        verbose_name_plural = _("Product Variants")
        ordering = ["product", "price"]
        constraints = [
            *AuditModel.Meta.constraints,
            models.UniqueConstraint(
                fields=["product"],
                condition=models.Q(is_default=True, deleted_at__isnull=True),
                name="unique_default_variant_per_product",
            ),
        ]

    def __str__(self):
        return f"{self.product.name} - {self.label}"

    def save(self, *args, **kwargs):
        """Keep a single default variant per product."""
        with transaction.atomic():
            if self.is_default:
                ProductVariant.objects.filter(
                    product_id=self.product_id, is_default=True
                ).exclude(pk=self.pk).update(is_default=False)
            super().save(*args, **kwargs)


class OrderSequence(models.Model):
    """
    Last number issued for an order code stem (prefix plus year).

    Checkouts lock this row while taking a number, so concurrent orders
    never share a code.
    """

    stem = models.CharField(max_length=20, unique=True, verbose_name=_("Stem"))
    last_value = models.PositiveIntegerField(
        default=0, verbose_name=_("Last Value")
    )

    class Meta:
        verbose_name = _("Order Sequence")
        verbose_name_plural = _("Order Sequences")

    def __str__(self):
        return f"{self.stem}:{self.last_value}"


class Order(AuditModel):
    """
    Model representing customer orders in the e-commerce system.

    An order belongs either to a registered user or to a guest identified
    by email. Totals are snapshotted at creation time.
    """

    code = models.CharField(
        max_length=20,
        unique=True,
        verbose_name=_("Code"),
        help_text=_("Human-readable order number"),
    )
    user = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        blank=True,
        null=True,
        related_name="orders",
        verbose_name=_("User"),
        help_text=_("Customer who placed the order"),
    )
    guest_name = models.CharField(
        max_length=150, blank=True, verbose_name=_("Guest Name")
    )
    guest_email = models.EmailField(blank=True, verbose_name=_("Guest Email"))
    guest_phone = models.CharField(
        max_length=20, blank=True, verbose_name=_("Guest Phone")
    )
    shipping_address = models.TextField(
        verbose_name=_("Shipping Address"),
        help_text=_("Delivery address as entered at checkout"),
    )
    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        verbose_name=_("Payment Method"),
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        verbose_name=_("Status"),
        help_text=_("Current order status"),
    )
    subtotal = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        verbose_name=_("Subtotal"),
        help_text=_("Sum of line items before discounts"),
    )
    discount_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        verbose_name=_("Discount Amount"),
        help_text=_("Total discount applied to the order"),
    )
    total_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        verbose_name=_("Total Amount"),
        help_text=_("Subtotal minus discounts"),
    )
    coupon_code = models.CharField(
        max_length=50, blank=True, verbose_name=_("Coupon Code")
    )
    coupon_discount_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        verbose_name=_("Coupon Discount Amount"),
    )

    objects = OrderManager()

    class Meta(AuditModel.Meta):
        verbose_name = _("Order")
        verbose_name_plural = _("Orders")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "-created_at"]),
            models.Index(fields=["status"]),
            models.Index(fields=["guest_email"]),
            models.Index(fields=["coupon_code"]),
        ]
        constraints = [
            *AuditModel.Meta.constraints,
            models.CheckConstraint(
                condition=models.Q(subtotal__gte=0),
                name="order_subtotal_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=0),
                name="order_total_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(user__isnull=False)
                | ~models.Q(guest_email=""),
                name="order_has_customer",
            ),
        ]

    def __str__(self):
        """Return formatted order identifier."""
        return self.code

    def clean(self):
        super().clean()
        if self.user_id is None and not self.guest_email:
            raise ValidationError(
                {"guest_email": _("Guest orders need a contact email.")}
            )
        if self.total_amount != self.subtotal - self.discount_amount:
            raise ValidationError(
                {"total_amount": _("Total must equal subtotal minus discount.")}
            )

    @property
    def customer_name(self) -> str:
        if self.user_id:
            return self.user.get_full_name() or self.user.username
        return self.guest_name


class OrderItem(BaseModel):
    """
    Model representing individual items within an order.
    """

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="items",
        verbose_name=_("Order"),
        help_text=_("Order this item belongs to"),
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="order_items",
        verbose_name=_("Product"),
        help_text=_("Product in this order item"),
    )
    variant = models.ForeignKey(
        ProductVariant,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="order_items",
        verbose_name=_("Variant"),
    )
    product_name = models.CharField(
        max_length=200,
        verbose_name=_("Product Name"),
        help_text=_("Product name at time of purchase"),
    )
    variant_label = models.CharField(
        max_length=100,
        blank=True,
        verbose_name=_("Variant Label"),
        help_text=_("Variant label at time of purchase"),
    )
    price_at_purchase = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        verbose_name=_("Price at Purchase"),
        help_text=_("Unit price charged, never recomputed"),
    )
    quantity = models.PositiveIntegerField(
        default=1,
        verbose_name=_("Quantity"),
        help_text=_("Number of units ordered"),
    )

    class Meta(BaseModel.Meta):
        verbose_name = _("Order Item")
        verbose_name_plural = _("Order Items")
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["order"]),
            models.Index(fields=["product"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price_at_purchase__gte=0),
                name="order_item_price_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_item_quantity_positive",
            ),
        ]

    def __str__(self):
        """Return formatted item description."""
        return f"{self.product_name} (x{self.quantity})"

    def save(self, *args, **kwargs):
        """Snapshot product and variant names on first save."""
        if not self.product_name:
            self.product_name = self.product.name
        if self.variant_id and not self.variant_label:
            self.variant_label = self.variant.label
        super().save(*args, **kwargs)
