"""
Unit tests for OrderService.
Tests checkout, status transitions, payment settlement and seller views.
"""
import pytest
from decimal import Decimal

from apps.orders.models import Order
from apps.sellers.models import SellerProfile
from tests.conftest import (
    OrderFactory, OrderItemFactory, ProductFactory, UserFactory, make_seller
)


SHIPPING = {
    'full_name': 'Aline Uwase',
    'phone': '250788123456',
    'city': 'Kigali',
    'address_line': 'KG 11 Ave'
}


@pytest.mark.django_db
class TestCheckout:
    """Test turning a cart into an order."""

    def test_multi_seller_cart(self, order_service, cart_service, customer, kigali_rate):
        # Arrange
        first = ProductFactory(price=Decimal('4500.00'))
        second = ProductFactory(price=Decimal('12000.00'))
        cart_service.add_item(customer, first.id, 2)
        cart_service.add_item(customer, second.id, 1)

        # Act
        result = order_service.create_order(customer, SHIPPING, 'Card')

        # Assert
        assert result.success
        order = result.data
        assert order.subtotal == Decimal('21000.00')
        assert order.shipping_fee == Decimal('2000.00')
        assert order.total_price == Decimal('23000.00')
        assert order.payment_method == Order.METHOD_CARD
        assert order.seller_ids() == {first.seller_id, second.seller_id}

        line = order.items.get(product=first)
        assert line.product_name == first.name
        assert line.price_at_purchase == Decimal('4500.00')

    def test_unknown_city_uses_default_fee(self, order_service, cart_service, customer,
                                           product, kigali_rate):
        cart_service.add_item(customer, product.id, 1)

        result = order_service.create_order(customer, {**SHIPPING, 'city': 'Rusizi'})

        assert result.data.shipping_fee == Decimal('2000.00')
        assert result.data.payment_method == Order.METHOD_MOMO

    def test_price_is_read_at_checkout(self, order_service, cart_service, customer, product):
        cart_service.add_item(customer, product.id, 1)
        product.price = Decimal('8000.00')
        product.save()

        result = order_service.create_order(customer, SHIPPING)

        assert result.data.subtotal == Decimal('8000.00')

    def test_inactive_product_aborts(self, order_service, cart_service, customer, product):
        cart_service.add_item(customer, product.id, 1)
        product.is_active = False
        product.save()

        result = order_service.create_order(customer, SHIPPING)

        assert result.error_code == 'PRODUCT_UNAVAILABLE'
        assert Order.objects.count() == 0

    def test_failure_on_second_line_rolls_back_first(self, order_service, cart_service,
                                                     customer):
        # Arrange
        plenty = ProductFactory(stock=10)
        scarce = ProductFactory(stock=5)
        cart_service.add_item(customer, plenty.id, 2)
        cart_service.add_item(customer, scarce.id, 3)
        scarce.stock = 1
        scarce.save()

        # Act
        result = order_service.create_order(customer, SHIPPING)

        # Assert
        assert result.error_code == 'INSUFFICIENT_STOCK'
        plenty.refresh_from_db()
        assert plenty.stock == 10
        assert Order.objects.count() == 0

    def test_incomplete_shipping(self, order_service, customer):
        result = order_service.create_order(customer, {**SHIPPING, 'phone': '  '})

        assert result.error_code == 'INCOMPLETE_SHIPPING'


@pytest.mark.django_db
class TestStatusTransitions:

    @pytest.mark.parametrize('current,target', [
        (Order.STATUS_PENDING, Order.STATUS_PAID),
        (Order.STATUS_PENDING, Order.STATUS_CANCELLED),
        (Order.STATUS_PAID, Order.STATUS_SHIPPED),
        (Order.STATUS_SHIPPED, Order.STATUS_DELIVERED),
    ])
    def test_allowed(self, order_service, current, target):
        order = OrderFactory(order_status=current)

        result = order_service.update_status(order, order_status=target)

        assert result.success
        assert result.data.order_status == target

    @pytest.mark.parametrize('current,target', [
        (Order.STATUS_PENDING, Order.STATUS_SHIPPED),
        (Order.STATUS_SHIPPED, Order.STATUS_CANCELLED),
        (Order.STATUS_DELIVERED, Order.STATUS_PENDING),
        (Order.STATUS_CANCELLED, Order.STATUS_PAID),
    ])
    def test_rejected(self, order_service, current, target):
        order = OrderFactory(order_status=current)

        result = order_service.update_status(order, order_status=target)

        assert result.error_code == 'INVALID_TRANSITION'

    @pytest.mark.parametrize('current,cancellable', [
        (Order.STATUS_PENDING, True),
        (Order.STATUS_PAID, True),
        (Order.STATUS_SHIPPED, False),
        (Order.STATUS_DELIVERED, False),
    ])
    def test_cancel_follows_order_rule(self, order_service, product, current, cancellable):
        order = OrderFactory(order_status=current)
        OrderItemFactory(order=order, product=product, quantity=2)
        assert order.can_cancel is cancellable

        result = order_service.update_status(order, order_status=Order.STATUS_CANCELLED)

        product.refresh_from_db()
        if cancellable:
            assert result.success
            assert product.stock == 12
        else:
            assert result.error_code == 'INVALID_TRANSITION'
            assert 'cannot be cancelled' in result.error
            assert product.stock == 10

    def test_same_status_is_a_no_op(self, order_service):
        order = OrderFactory(order_status=Order.STATUS_DELIVERED)

        result = order_service.update_status(order, order_status=Order.STATUS_DELIVERED)

        assert result.success

    def test_unknown_shipping_status(self, order_service):
        order = OrderFactory()

        result = order_service.update_status(order, shipping_status='LOST')

        assert result.error_code == 'INVALID_SHIPPING_STATUS'

    def test_delivered_queues_email(self, order_service, mocker):
        task = mocker.patch('apps.notifications.tasks.send_order_delivered_email.delay')
        order = OrderFactory(order_status=Order.STATUS_SHIPPED)

        order_service.update_status(order, order_status=Order.STATUS_DELIVERED)

        task.assert_called_once_with(order.id)
        assert order.shipping_status == Order.SHIPPING_DELIVERED
        assert order.delivered_at is not None

    def test_seller_shipping_update_only_for_own_orders(self, order_service):
        seller = make_seller()
        order = OrderFactory()
        OrderItemFactory(order=order)

        result = order_service.update_shipping_status(
            order, seller, Order.SHIPPING_IN_TRANSIT)

        assert result.error_code == 'ORDER_NOT_FOUND'


@pytest.mark.django_db
class TestPaymentSettlement:

    def test_mark_paid_records_sales_once(self, order_service, mocker):
        # Arrange
        task = mocker.patch('apps.notifications.tasks.send_order_confirmation_email.delay')
        seller = make_seller()
        order = OrderFactory()
        OrderItemFactory(order=order, product=ProductFactory(seller=seller), quantity=3)
        OrderItemFactory(order=order, product=ProductFactory(seller=seller), quantity=1)

        # Act
        first = order_service.mark_paid(order.id, transaction_id='tx-1',
                                        payment_info={'provider': 'momo'})
        second = order_service.mark_paid(order.id, transaction_id='tx-2')

        # Assert
        assert first.success and second.success
        order.refresh_from_db()
        assert order.payment_status == Order.PAYMENT_PAID
        assert order.order_status == Order.STATUS_PAID
        assert order.transaction_id == 'tx-1'
        assert order.payment_date is not None
        assert SellerProfile.objects.get(user=seller).total_sales == 4
        task.assert_called_once_with(order.id)

    def test_mark_paid_keeps_later_status(self, order_service, mocker):
        mocker.patch('apps.notifications.tasks.send_order_confirmation_email.delay')
        order = OrderFactory(order_status=Order.STATUS_SHIPPED)

        order_service.mark_paid(order.id)

        order.refresh_from_db()
        assert order.order_status == Order.STATUS_SHIPPED

    def test_mark_paid_ignores_cancelled_order(self, order_service, mocker):
        # Arrange
        task = mocker.patch('apps.notifications.tasks.send_order_confirmation_email.delay')
        seller = make_seller()
        order = OrderFactory(order_status=Order.STATUS_CANCELLED)
        OrderItemFactory(order=order, product=ProductFactory(seller=seller), quantity=2)

        # Act
        result = order_service.mark_paid(order.id, transaction_id='tx-late')

        # Assert
        assert result.success
        order.refresh_from_db()
        assert order.order_status == Order.STATUS_CANCELLED
        assert order.payment_status == Order.PAYMENT_PENDING
        assert order.transaction_id != 'tx-late'
        assert SellerProfile.objects.get(user=seller).total_sales == 0
        task.assert_not_called()

    def test_mark_paid_unknown_order(self, order_service):
        result = order_service.mark_paid(987654)

        assert result.error_code == 'ORDER_NOT_FOUND'

    def test_failed_payment_does_not_override_paid(self, order_service):
        order = OrderFactory(payment_status=Order.PAYMENT_PAID)

        result = order_service.mark_payment_failed(order)

        assert result.error_code == 'ALREADY_PAID'

    def test_failed_payment(self, order_service):
        order = OrderFactory()

        order_service.mark_payment_failed(order, payment_info={'reason': 'DECLINED'})

        order.refresh_from_db()
        assert order.payment_status == Order.PAYMENT_FAILED
        assert order.payment_info['reason'] == 'DECLINED'


@pytest.mark.django_db
class TestSellerViews:

    def test_seller_orders_are_distinct(self, order_service):
        seller = make_seller()
        order = OrderFactory()
        OrderItemFactory.create_batch(2, order=order, product=ProductFactory(seller=seller))
        OrderFactory()

        orders = list(order_service.get_seller_orders(seller))

        assert orders == [order]

    def test_can_view(self, order_service):
        seller = make_seller()
        order = OrderFactory()
        OrderItemFactory(order=order, product=ProductFactory(seller=seller))

        assert order_service.can_view(order, order.customer)
        assert order_service.can_view(order, seller)
        assert order_service.can_view(order, UserFactory(role='admin'))
        assert not order_service.can_view(order, UserFactory())
        assert not order_service.can_view(order, make_seller())
