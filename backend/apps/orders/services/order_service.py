"""
Order service for the GuraNeza marketplace.
Handles checkout from the cart, status changes, payment settlement and
seller views of multi-seller orders.
"""
from typing import Optional, List, Dict, Any
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.core.services.base import (
    BaseService, ServiceResult, BusinessRuleViolation
)
from apps.orders.models import Cart, Order, OrderItem
from apps.orders.services.shipping_service import ShippingService
from apps.products.models import Product
from apps.core.models import User


class OrderService(BaseService):
    """
    Service for managing order operations.
    Handles order lifecycle from checkout through delivery.
    """

    SHIPPING_FIELDS = ['full_name', 'phone', 'city', 'address_line']

    # Status transition rules
    VALID_STATUS_TRANSITIONS = {
        Order.STATUS_PENDING: [Order.STATUS_PAID, Order.STATUS_CANCELLED],
        Order.STATUS_PAID: [Order.STATUS_SHIPPED, Order.STATUS_CANCELLED],
        Order.STATUS_SHIPPED: [Order.STATUS_DELIVERED],
        Order.STATUS_DELIVERED: [],
        Order.STATUS_CANCELLED: [],
    }

    SHIPPING_STATUSES = [
        Order.SHIPPING_NOT_SHIPPED,
        Order.SHIPPING_IN_TRANSIT,
        Order.SHIPPING_DELIVERED,
    ]

    def __init__(self):
        super().__init__()
        self.shipping_service = ShippingService()

    # ==================== Checkout ====================

    def create_order(
        self,
        customer: User,
        shipping_info: Dict[str, Any],
        payment_method: Optional[str] = None
    ) -> ServiceResult:
        """
        Turn the customer's cart into an order.

        Args:
            customer: User placing the order
            shipping_info: full_name, phone, city and address_line
            payment_method: MoMo, Card or PayPal (defaults to MoMo)

        Returns:
            ServiceResult containing created Order or error
        """
        shipping_info = shipping_info or {}
        if not all(str(shipping_info.get(f) or '').strip() for f in self.SHIPPING_FIELDS):
            return ServiceResult.fail(
                "Complete shipping information is required",
                error_code="INCOMPLETE_SHIPPING"
            )

        payment_method = payment_method or Order.METHOD_MOMO
        if payment_method not in dict(Order.PAYMENT_METHOD_CHOICES):
            return ServiceResult.fail(
                f"Unsupported payment method: {payment_method}",
                error_code="INVALID_PAYMENT_METHOD"
            )

        cart = Cart.objects.filter(user=customer).first()
        if not cart or not cart.items.exists():
            return ServiceResult.fail(
                "Cart is empty",
                error_code="CART_EMPTY"
            )

        try:
            with transaction.atomic():
                order = self._checkout(customer, cart, shipping_info, payment_method)
        except BusinessRuleViolation as e:
            return ServiceResult.fail(e.message, error_code=e.code)

        self.log_info(
            f"Created order {order.reference_number}",
            order_id=order.id,
            customer_id=customer.id,
            total=float(order.total_price)
        )
        return ServiceResult.ok(order)

    def _checkout(self, customer, cart, shipping_info, payment_method) -> Order:
        """Create the order rows. Raises BusinessRuleViolation to roll back."""
        lines = []
        subtotal = Decimal('0.00')

        for item in cart.items.select_related('product'):
            product = Product.objects.select_for_update().filter(
                id=item.product_id
            ).first()

            if product is None:
                raise BusinessRuleViolation(
                    "A product in your cart no longer exists",
                    code="PRODUCT_NOT_FOUND"
                )
            if not product.is_active:
                raise BusinessRuleViolation(
                    f"{product.name} is no longer available",
                    code="PRODUCT_UNAVAILABLE"
                )
            if product.stock < item.quantity:
                raise BusinessRuleViolation(
                    f"Insufficient stock for {product.name}. Only {product.stock} available",
                    code="INSUFFICIENT_STOCK"
                )

            lines.append((product, item.quantity))
            subtotal += product.price * item.quantity

        city = shipping_info['city'].strip()
        shipping_fee = self.shipping_service.resolve_fee(city)['fee']

        order = Order.objects.create(
            customer=customer,
            subtotal=subtotal,
            shipping_fee=shipping_fee,
            total_price=subtotal + shipping_fee,
            payment_method=payment_method,
            payment_status=Order.PAYMENT_PENDING,
            order_status=Order.STATUS_PENDING,
            shipping_full_name=shipping_info['full_name'].strip(),
            shipping_phone=str(shipping_info['phone']).strip(),
            shipping_city=city,
            shipping_address_line=shipping_info['address_line'].strip(),
            shipping_status=Order.SHIPPING_NOT_SHIPPED
        )

        for product, quantity in lines:
            OrderItem.objects.create(
                order=order,
                product=product,
                seller_id=product.seller_id,
                product_name=product.name,
                quantity=quantity,
                price_at_purchase=product.price
            )
            Product.objects.filter(id=product.id).update(
                stock=F('stock') - quantity
            )

        cart.items.all().delete()
        return order

    # ==================== Status ====================

    def update_status(
        self,
        order: Order,
        order_status: Optional[str] = None,
        shipping_status: Optional[str] = None,
        user: Optional[User] = None
    ) -> ServiceResult:
        """
        Apply an order and/or shipping status change.

        Returns:
            ServiceResult containing the updated Order
        """
        if not order_status and not shipping_status:
            return ServiceResult.fail(
                "order_status or shipping_status is required",
                error_code="NOTHING_TO_UPDATE"
            )

        if shipping_status and shipping_status not in self.SHIPPING_STATUSES:
            return ServiceResult.fail(
                f"Invalid shipping status: {shipping_status}",
                error_code="INVALID_SHIPPING_STATUS"
            )

        old_status = order.order_status

        if order_status and order_status != old_status:
            if order_status not in self.VALID_STATUS_TRANSITIONS:
                return ServiceResult.fail(
                    f"Invalid order status: {order_status}",
                    error_code="INVALID_STATUS"
                )
            if order_status == Order.STATUS_CANCELLED and not order.can_cancel:
                return ServiceResult.fail(
                    f"Order in {old_status} status cannot be cancelled",
                    error_code="INVALID_TRANSITION"
                )
            if order_status not in self.VALID_STATUS_TRANSITIONS[old_status]:
                return ServiceResult.fail(
                    f"Cannot transition from {old_status} to {order_status}",
                    error_code="INVALID_TRANSITION"
                )

        with transaction.atomic():
            if order_status and order_status != old_status:
                order.order_status = order_status

                if order_status == Order.STATUS_CANCELLED:
                    self._restore_stock(order)
                elif order_status == Order.STATUS_SHIPPED:
                    if order.shipping_status == Order.SHIPPING_NOT_SHIPPED:
                        order.shipping_status = Order.SHIPPING_IN_TRANSIT
                elif order_status == Order.STATUS_DELIVERED:
                    order.shipping_status = Order.SHIPPING_DELIVERED
                    order.delivered_at = timezone.now()

            if shipping_status:
                order.shipping_status = shipping_status

            order.save()

        if order_status == Order.STATUS_DELIVERED and old_status != Order.STATUS_DELIVERED:
            from apps.notifications.tasks import send_order_delivered_email
            send_order_delivered_email.delay(order.id)

        self.log_info(
            f"Updated order {order.reference_number} status",
            order_id=order.id,
            old_status=old_status,
            new_status=order.order_status,
            shipping_status=order.shipping_status,
            user_id=user.id if user else None
        )
        return ServiceResult.ok(order)

    def update_shipping_status(self, order: Order, seller: User,
                               shipping_status: str) -> ServiceResult:
        """Seller-side shipping update for an order holding their items."""
        if seller.id not in order.seller_ids():
            return ServiceResult.fail(
                "Order not found",
                error_code="ORDER_NOT_FOUND"
            )

        if order.order_status == Order.STATUS_CANCELLED:
            return ServiceResult.fail(
                "Cannot update shipping for a cancelled order",
                error_code="ORDER_CANCELLED"
            )

        return self.update_status(order, shipping_status=shipping_status, user=seller)

    def _restore_stock(self, order: Order) -> None:
        for item in order.items.exclude(product__isnull=True):
            Product.objects.filter(id=item.product_id).update(
                stock=F('stock') + item.quantity
            )

        self.log_info(
            f"Restored stock for cancelled order {order.reference_number}",
            order_id=order.id
        )

    # ==================== Payment ====================

    @transaction.atomic
    def mark_paid(
        self,
        order_id: int,
        transaction_id: Optional[str] = None,
        payment_info: Optional[Dict[str, Any]] = None
    ) -> ServiceResult:
        """
        Record a successful payment. Safe to call more than once.

        Returns:
            ServiceResult containing the Order
        """
        try:
            order = Order.objects.select_for_update().get(id=order_id)
        except Order.DoesNotExist:
            return ServiceResult.fail(
                f"Order {order_id} not found",
                error_code="ORDER_NOT_FOUND"
            )

        if order.is_paid:
            return ServiceResult.ok(order)

        if order.order_status == Order.STATUS_CANCELLED:
            self.log_warning(
                f"Payment confirmed for cancelled order {order.reference_number}",
                order_id=order.id,
                transaction_id=transaction_id
            )
            return ServiceResult.ok(order)

        order.payment_status = Order.PAYMENT_PAID
        order.payment_date = timezone.now()
        if transaction_id:
            order.transaction_id = transaction_id
        if payment_info:
            order.payment_info = {**(order.payment_info or {}), **payment_info}
        if order.order_status == Order.STATUS_PENDING:
            order.order_status = Order.STATUS_PAID
        order.save()

        self._record_sales(order)

        from apps.notifications.tasks import send_order_confirmation_email
        send_order_confirmation_email.delay(order.id)

        self.log_info(
            f"Order {order.reference_number} paid",
            order_id=order.id,
            payment_method=order.payment_method,
            transaction_id=order.transaction_id
        )
        return ServiceResult.ok(order)

    def mark_payment_failed(self, order: Order,
                            payment_info: Optional[Dict[str, Any]] = None) -> ServiceResult:
        if order.is_paid:
            return ServiceResult.fail(
                "Order is already paid",
                error_code="ALREADY_PAID"
            )

        order.payment_status = Order.PAYMENT_FAILED
        if payment_info:
            order.payment_info = {**(order.payment_info or {}), **payment_info}
        order.save(update_fields=['payment_status', 'payment_info', 'updated_at'])

        self.log_warning(
            f"Payment failed for order {order.reference_number}",
            order_id=order.id,
            payment_method=order.payment_method
        )
        return ServiceResult.ok(order)

    def _record_sales(self, order: Order) -> None:
        from apps.sellers.models import SellerProfile

        sold = {}
        for item in order.items.all():
            sold[item.seller_id] = sold.get(item.seller_id, 0) + item.quantity

        for seller_id, quantity in sold.items():
            SellerProfile.objects.filter(user_id=seller_id).update(
                total_sales=F('total_sales') + quantity
            )

    # ==================== Queries ====================

    def can_view(self, order: Order, user: User) -> bool:
        if user.is_admin or order.customer_id == user.id:
            return True
        return user.is_seller and user.id in order.seller_ids()

    def seller_lines(self, order: Order, seller: User) -> List[OrderItem]:
        return [item for item in order.items.all() if item.seller_id == seller.id]

    def get_seller_orders(self, seller: User, limit: Optional[int] = None):
        """
        Orders holding at least one of the seller's items, newest first.
        """
        queryset = Order.objects.filter(
            items__seller=seller
        ).distinct().select_related('customer').prefetch_related(
            'items__product'
        ).order_by('-created_at')

        if limit:
            queryset = queryset[:limit]
        return queryset
