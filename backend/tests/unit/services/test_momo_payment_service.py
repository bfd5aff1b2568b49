"""
Unit tests for MoMoPaymentService.
The MoMo client is replaced with a double; orders are real rows.
"""
import pytest
from datetime import timedelta

from django.utils import timezone

from apps.core.services.base import ExternalServiceError
from apps.orders.models import Order
from apps.payments.services.momo_payment_service import MoMoPaymentService
from tests.conftest import OrderFactory, OrderItemFactory


@pytest.fixture
def momo_payments(momo_client):
    return MoMoPaymentService(client=momo_client)


def pending_momo_order(reference, **kwargs):
    kwargs.setdefault('payment_requested_at', timezone.now())
    order = OrderFactory(transaction_id=reference, **kwargs)
    OrderItemFactory(order=order)
    return order


@pytest.mark.django_db
class TestInitiate:

    def test_request_to_pay_for_order_total(self, momo_payments, momo_client):
        # Arrange
        order = OrderFactory(payment_method=Order.METHOD_CARD)

        # Act
        result = momo_payments.initiate(order, '250788123456')

        # Assert
        assert result.success
        assert result.data == {'reference_id': 'ref-0001', 'status': 'PENDING',
                               'order_id': order.id}

        kwargs = momo_client.request_to_pay.call_args.kwargs
        assert kwargs['amount'] == order.total_price
        assert kwargs['external_id'] == str(order.id)

        order.refresh_from_db()
        assert order.payment_method == Order.METHOD_MOMO
        assert order.payment_info['currency'] == 'EUR'
        assert order.payment_requested_at is not None

    def test_provider_error(self, momo_payments, momo_client):
        momo_client.request_to_pay.side_effect = ExternalServiceError('boom', code='HTTP_500')
        order = OrderFactory()

        result = momo_payments.initiate(order, '250788123456')

        assert result.error_code == 'EXTERNAL_SERVICE_ERROR'
        order.refresh_from_db()
        assert order.transaction_id == ''


@pytest.mark.django_db
class TestStatusAndCallbacks:

    def test_check_status_successful(self, momo_payments, momo_client, mocker):
        mocker.patch('apps.notifications.tasks.send_order_confirmation_email.delay')
        momo_client.get_transaction_status.return_value = {
            'status': 'SUCCESSFUL', 'financialTransactionId': '555'
        }
        order = pending_momo_order('ref-1')

        result = momo_payments.check_status('ref-1')

        assert result.data['status'] == 'SUCCESSFUL'
        assert result.data['order'].is_paid
        assert result.data['order'].payment_info['financial_transaction_id'] == '555'

    def test_check_status_failed(self, momo_payments, momo_client):
        momo_client.get_transaction_status.return_value = {
            'status': 'FAILED', 'reason': 'PAYER_NOT_FOUND'
        }
        order = pending_momo_order('ref-2')

        momo_payments.check_status('ref-2')

        order.refresh_from_db()
        assert order.payment_status == Order.PAYMENT_FAILED
        assert order.payment_info['reason'] == 'PAYER_NOT_FOUND'

    def test_check_status_lookup_error(self, momo_payments, momo_client):
        momo_client.get_transaction_status.side_effect = ExternalServiceError('down')
        pending_momo_order('ref-3')

        assert momo_payments.check_status('ref-3').error_code == 'EXTERNAL_SERVICE_ERROR'

    def test_late_failure_does_not_unpay(self, momo_payments):
        order = pending_momo_order('ref-4', payment_status=Order.PAYMENT_PAID)

        momo_payments.handle_callback('ref-4', 'FAILED', {'reason': 'LATE'})

        order.refresh_from_db()
        assert order.payment_status == Order.PAYMENT_PAID

    def test_missing_reference(self, momo_payments):
        assert momo_payments.handle_callback(None, 'SUCCESSFUL').data == {'processed': False}


@pytest.mark.django_db
class TestReconciliation:

    def test_poll_settles_recent_orders_only(self, momo_payments, momo_client, mocker):
        # Arrange
        mocker.patch('apps.notifications.tasks.send_order_confirmation_email.delay')
        momo_client.get_transaction_status.side_effect = [
            {'status': 'SUCCESSFUL'},
            {'status': 'PENDING'},
        ]
        pending_momo_order('ref-a')
        pending_momo_order('ref-b')
        pending_momo_order('ref-old',
                           payment_requested_at=timezone.now() - timedelta(hours=30))
        OrderFactory(transaction_id='pi_card', payment_method=Order.METHOD_CARD)

        # Act
        summary = momo_payments.poll_pending()

        # Assert
        assert summary == {'checked': 2, 'settled': 1}
        assert Order.objects.filter(payment_status=Order.PAYMENT_PAID).count() == 1

    def test_poll_survives_lookup_errors(self, momo_payments, momo_client):
        momo_client.get_transaction_status.side_effect = ExternalServiceError('timeout')
        pending_momo_order('ref-a')

        assert momo_payments.poll_pending() == {'checked': 1, 'settled': 0}

    def test_expire_stale(self, momo_payments):
        stale = pending_momo_order('ref-old',
                                   payment_requested_at=timezone.now() - timedelta(hours=25))
        fresh = pending_momo_order('ref-new')

        expired = momo_payments.expire_stale()

        assert expired == 1
        stale.refresh_from_db()
        fresh.refresh_from_db()
        assert stale.payment_status == Order.PAYMENT_FAILED
        assert stale.payment_info['reason'] == 'EXPIRED'
        assert fresh.payment_status == Order.PAYMENT_PENDING

    def test_window_starts_at_payment_request(self, momo_payments, momo_client):
        # Arrange: order placed yesterday, paid for with MoMo just now
        order = OrderFactory(created_at=timezone.now() - timedelta(hours=25))
        momo_payments.initiate(order, '250788123456')

        # Act
        expired = momo_payments.expire_stale()
        summary = momo_payments.poll_pending()

        # Assert
        assert expired == 0
        assert summary == {'checked': 1, 'settled': 0}
        order.refresh_from_db()
        assert order.payment_status == Order.PAYMENT_PENDING

    def test_retried_request_restarts_window(self, momo_payments, momo_client):
        order = pending_momo_order('ref-first',
                                   payment_requested_at=timezone.now() - timedelta(hours=30))
        momo_client.request_to_pay.return_value = {
            'reference_id': 'ref-second', 'currency': 'EUR'
        }

        momo_payments.initiate(order, '250788123456')

        assert momo_payments.expire_stale() == 0
        order.refresh_from_db()
        assert order.transaction_id == 'ref-second'
