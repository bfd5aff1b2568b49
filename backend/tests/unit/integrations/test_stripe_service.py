"""
Unit tests for StripeService and StripeWebhookHandler.
Tests payment intents for orders and webhook event processing.
"""
import pytest
from decimal import Decimal
from unittest.mock import MagicMock, patch
import stripe

from django.test import override_settings

from apps.integrations.services.stripe_service import StripeService
from apps.integrations.services.stripe_webhook_handler import StripeWebhookHandler
from apps.orders.models import Order
from tests.conftest import OrderFactory, OrderItemFactory


def intent(status='succeeded', order_id=None, **extra):
    mock = MagicMock()
    mock.id = extra.pop('id', 'pi_test_1')
    mock.status = status
    mock.metadata = {'order_id': str(order_id)} if order_id else {}
    mock.amount_received = extra.pop('amount_received', 22000)
    mock.currency = 'rwf'
    return mock


class TestMinorUnits:

    def test_rwf_has_no_minor_unit(self, stripe_service):
        assert stripe_service.to_minor_units(Decimal('22000.00')) == 22000

    @override_settings(STRIPE_CURRENCY='USD')
    def test_usd_in_cents(self):
        assert StripeService().to_minor_units(Decimal('12.50')) == 1250


@pytest.mark.django_db
class TestPaymentIntents:

    def test_create_intent(self, stripe_service, mock_stripe_payment_intent):
        # Arrange
        order = OrderFactory()

        # Act
        result = stripe_service.create_payment_intent(order)

        # Assert
        assert result.success
        assert result.data['payment_intent_id'] == 'pi_test_123456789'
        assert result.data['publishable_key']
        kwargs = mock_stripe_payment_intent.call_args.kwargs
        assert kwargs['amount'] == 22000
        assert kwargs['currency'] == 'rwf'
        assert kwargs['receipt_email'] == order.customer.email
        assert kwargs['metadata']['order_reference'] == order.reference_number

    def test_create_intent_for_paid_order(self, stripe_service, mock_stripe_payment_intent):
        order = OrderFactory(payment_status=Order.PAYMENT_PAID)

        result = stripe_service.create_payment_intent(order)

        assert result.error_code == 'ALREADY_PAID'
        mock_stripe_payment_intent.assert_not_called()

    def test_create_intent_stripe_error(self, stripe_service):
        order = OrderFactory()

        with patch('stripe.PaymentIntent.create',
                   side_effect=stripe.InvalidRequestError('Amount too small', 'amount')):
            result = stripe_service.create_payment_intent(order)

        assert result.error_code == 'PAYMENT_FAILED'
        order.refresh_from_db()
        assert order.transaction_id == ''

    def test_confirm_for_other_order(self, stripe_service):
        order = OrderFactory()
        other = OrderFactory()

        with patch('stripe.PaymentIntent.retrieve', return_value=intent(order_id=other.id)):
            result = stripe_service.confirm_payment(order, 'pi_test_1')

        assert result.error_code == 'ORDER_MISMATCH'
        order.refresh_from_db()
        assert not order.is_paid

    def test_confirm_processing_leaves_order(self, stripe_service):
        order = OrderFactory()

        with patch('stripe.PaymentIntent.retrieve',
                   return_value=intent(status='processing', order_id=order.id)):
            result = stripe_service.confirm_payment(order, 'pi_test_1')

        assert result.data['status'] == 'processing'
        assert not result.data['order'].is_paid

    def test_confirm_retrieve_error(self, stripe_service):
        order = OrderFactory()

        with patch('stripe.PaymentIntent.retrieve',
                   side_effect=stripe.APIConnectionError('network down')):
            result = stripe_service.confirm_payment(order, 'pi_test_1')

        assert result.error_code == 'STRIPE_ERROR'


class TestWebhookSignature:

    def test_invalid_signature(self, stripe_service):
        with patch('stripe.Webhook.construct_event',
                   side_effect=stripe.SignatureVerificationError('bad', 'sig')):
            result = stripe_service.verify_webhook_signature(b'{}', 'sig')

        assert result.error_code == 'INVALID_SIGNATURE'

    def test_invalid_payload(self, stripe_service):
        with patch('stripe.Webhook.construct_event', side_effect=ValueError('not json')):
            result = stripe_service.verify_webhook_signature(b'nope', 'sig')

        assert result.error_code == 'INVALID_PAYLOAD'

    def test_valid_signature_uses_secret(self, stripe_service):
        with patch('stripe.Webhook.construct_event', return_value={'id': 'evt_1'}) as mock:
            result = stripe_service.verify_webhook_signature(b'{}', 'sig')

        assert result.success
        mock.assert_called_once_with(b'{}', 'sig', 'whsec_test_guraneza')


@pytest.mark.django_db
class TestWebhookHandler:

    def event(self, event_type, payment_intent):
        return {
            'id': 'evt_test',
            'type': event_type,
            'data': {'object': payment_intent}
        }

    def test_succeeded_falls_back_to_transaction_id(self, mocker):
        # Arrange
        mocker.patch('apps.notifications.tasks.send_order_confirmation_email.delay')
        order = OrderFactory(transaction_id='pi_known', payment_method=Order.METHOD_CARD)
        OrderItemFactory(order=order)

        # Act
        result = StripeWebhookHandler().handle_event(self.event(
            'payment_intent.succeeded',
            {'id': 'pi_known', 'status': 'succeeded', 'metadata': {}}
        ))

        # Assert
        assert result.success
        order.refresh_from_db()
        assert order.is_paid
        assert order.payment_info['event_id'] == 'evt_test'

    def test_succeeded_without_order(self):
        result = StripeWebhookHandler().handle_event(self.event(
            'payment_intent.succeeded', {'id': 'pi_orphan', 'metadata': {}}
        ))

        assert result.error_code == 'ORDER_NOT_FOUND'

    def test_failed_marks_payment_failed(self):
        order = OrderFactory()

        StripeWebhookHandler().handle_event(self.event(
            'payment_intent.payment_failed',
            {
                'id': 'pi_x',
                'metadata': {'order_id': str(order.id)},
                'last_payment_error': {'message': 'Your card was declined.'}
            }
        ))

        order.refresh_from_db()
        assert order.payment_status == Order.PAYMENT_FAILED
        assert order.payment_info['failure_message'] == 'Your card was declined.'

    def test_failed_after_paid_is_skipped(self):
        order = OrderFactory(payment_status=Order.PAYMENT_PAID)

        result = StripeWebhookHandler().handle_event(self.event(
            'payment_intent.payment_failed',
            {'id': 'pi_x', 'metadata': {'order_id': str(order.id)}}
        ))

        assert result.data['skipped'] is True
        order.refresh_from_db()
        assert order.is_paid

    def test_unhandled_event(self):
        result = StripeWebhookHandler().handle_event(self.event('charge.refunded', {}))

        assert result.success
        assert 'not handled' in result.data['message']
