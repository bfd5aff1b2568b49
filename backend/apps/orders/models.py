# apps/orders/models.py

import uuid
from decimal import Decimal
from django.db import models
from django.core.validators import MinValueValidator
from django.db.models.functions import Lower
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from apps.core.models import User
from apps.products.models import Product


def generate_order_reference():
    """Generate a unique, human readable order reference."""
    year = timezone.now().year
    random_part = uuid.uuid4().hex[:6].upper()
    return f"GN-{year}-{random_part}"


class Cart(models.Model):
    """Shopping cart; one per customer."""
    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='cart'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'carts'
        verbose_name = _('Cart')
        verbose_name_plural = _('Carts')

    def __str__(self):
        return f"Cart of {self.user.email}"

    @property
    def subtotal(self):
        return sum(
            (item.line_total for item in self.items.all()),
            Decimal('0.00')
        )

    @property
    def items_count(self):
        return sum(item.quantity for item in self.items.all())


class CartItem(models.Model):
    cart = models.ForeignKey(
        Cart,
        on_delete=models.CASCADE,
        related_name='items'
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name='cart_items'
    )
    seller = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='+'
    )
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)]
    )
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Unit price when the item was last added"
    )
    added_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'cart_items'
        ordering = ['added_at']
        constraints = [
            models.UniqueConstraint(
                fields=['cart', 'product'],
                name='unique_cart_product'
            ),
        ]

    def __str__(self):
        return f"{self.quantity}x {self.product.name}"

    @property
    def line_total(self):
        return self.price * self.quantity


class Order(models.Model):
    """
    Customer order across one or more sellers.
    Line prices are snapshotted at purchase time.
    """
    STATUS_PENDING = 'PENDING'
    STATUS_PAID = 'PAID'
    STATUS_SHIPPED = 'SHIPPED'
    STATUS_DELIVERED = 'DELIVERED'
    STATUS_CANCELLED = 'CANCELLED'
    ORDER_STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_PAID, 'Paid'),
        (STATUS_SHIPPED, 'Shipped'),
        (STATUS_DELIVERED, 'Delivered'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    PAYMENT_PENDING = 'PENDING'
    PAYMENT_PAID = 'PAID'
    PAYMENT_FAILED = 'FAILED'
    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, 'Pending'),
        (PAYMENT_PAID, 'Paid'),
        (PAYMENT_FAILED, 'Failed'),
    ]

    METHOD_MOMO = 'MoMo'
    METHOD_CARD = 'Card'
    METHOD_PAYPAL = 'PayPal'
    PAYMENT_METHOD_CHOICES = [
        (METHOD_MOMO, 'MTN Mobile Money'),
        (METHOD_CARD, 'Card'),
        (METHOD_PAYPAL, 'PayPal'),
    ]

    SHIPPING_NOT_SHIPPED = 'NOT_SHIPPED'
    SHIPPING_IN_TRANSIT = 'IN_TRANSIT'
    SHIPPING_DELIVERED = 'DELIVERED'
    SHIPPING_STATUS_CHOICES = [
        (SHIPPING_NOT_SHIPPED, 'Not shipped'),
        (SHIPPING_IN_TRANSIT, 'In transit'),
        (SHIPPING_DELIVERED, 'Delivered'),
    ]

    reference_number = models.CharField(
        max_length=20,
        unique=True,
        default=generate_order_reference,
        editable=False
    )
    customer = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name='orders'
    )

    # Amounts
    subtotal = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    shipping_fee = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    total_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )

    # Payment
    payment_method = models.CharField(
        max_length=10,
        choices=PAYMENT_METHOD_CHOICES
    )
    payment_status = models.CharField(
        max_length=10,
        choices=PAYMENT_STATUS_CHOICES,
        default=PAYMENT_PENDING
    )
    transaction_id = models.CharField(
        max_length=100,
        blank=True,
        db_index=True,
        help_text="MoMo reference id or Stripe payment intent id"
    )
    payment_requested_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the current MoMo request to pay was sent"
    )
    payment_date = models.DateTimeField(null=True, blank=True)
    payment_info = models.JSONField(default=dict, blank=True)

    # Status
    order_status = models.CharField(
        max_length=10,
        choices=ORDER_STATUS_CHOICES,
        default=STATUS_PENDING
    )

    # Shipping
    shipping_full_name = models.CharField(max_length=100)
    shipping_phone = models.CharField(max_length=20)
    shipping_city = models.CharField(max_length=100)
    shipping_address_line = models.CharField(max_length=255)
    shipping_status = models.CharField(
        max_length=12,
        choices=SHIPPING_STATUS_CHOICES,
        default=SHIPPING_NOT_SHIPPED
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'orders'
        verbose_name = _('Order')
        verbose_name_plural = _('Orders')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['customer', 'created_at']),
            models.Index(fields=['order_status', 'created_at']),
            models.Index(fields=['payment_status', 'payment_method']),
        ]

    def __str__(self):
        return f"Order {self.reference_number}"

    @property
    def is_paid(self):
        return self.payment_status == self.PAYMENT_PAID

    @property
    def can_cancel(self):
        return self.order_status in [self.STATUS_PENDING, self.STATUS_PAID]

    def seller_ids(self):
        return set(self.items.values_list('seller_id', flat=True))


class OrderItem(models.Model):
    """Line of an order, frozen at purchase time."""
    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='items'
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.SET_NULL,
        null=True,
        related_name='order_items'
    )
    seller = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name='sold_items'
    )
    product_name = models.CharField(max_length=200)
    quantity = models.PositiveIntegerField(
        validators=[MinValueValidator(1)]
    )
    price_at_purchase = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )

    class Meta:
        db_table = 'order_items'
        verbose_name = _('Order Item')
        verbose_name_plural = _('Order Items')
        indexes = [
            models.Index(fields=['order', 'seller']),
        ]

    def __str__(self):
        return f"{self.quantity}x {self.product_name}"

    @property
    def line_total(self):
        return self.price_at_purchase * self.quantity


class ShippingSetting(models.Model):
    """
    Delivery fee per city.
    City names are unique regardless of case; one row may be the default.
    """
    city = models.CharField(max_length=100)
    fee = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    is_default = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'shipping_settings'
        verbose_name = _('Shipping Setting')
        verbose_name_plural = _('Shipping Settings')
        ordering = ['city']
        constraints = [
            models.UniqueConstraint(
                Lower('city'),
                name='unique_shipping_city_ci'
            ),
        ]

    def __str__(self):
        return f"{self.city}: {self.fee}"

    def save(self, *args, **kwargs):
        self.city = self.city.strip()
        if self.is_default:
            ShippingSetting.objects.filter(
                is_default=True
            ).exclude(pk=self.pk).update(is_default=False)
        super().save(*args, **kwargs)
