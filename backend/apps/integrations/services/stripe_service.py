"""
Stripe integration service for card payments.
Creates and confirms PaymentIntents for marketplace orders and verifies
webhook signatures.
"""
import stripe
from decimal import Decimal
from typing import Dict, Any

from django.conf import settings

from apps.core.services.base import BaseService, ServiceResult
from apps.orders.models import Order


class StripeService(BaseService):
    """
    Service for Stripe PaymentIntents.

    Stripe Documentation: https://stripe.com/docs/payments/payment-intents
    """

    # Currencies Stripe expects in whole units rather than cents
    ZERO_DECIMAL_CURRENCIES = {
        'bif', 'clp', 'djf', 'gnf', 'jpy', 'kmf', 'krw', 'mga',
        'pyg', 'rwf', 'ugx', 'vnd', 'vuv', 'xaf', 'xof', 'xpf',
    }

    def __init__(self):
        """Initialize Stripe service with API key."""
        super().__init__()
        stripe.api_key = settings.STRIPE_SECRET_KEY
        self.webhook_secret = settings.STRIPE_WEBHOOK_SECRET
        self.publishable_key = settings.STRIPE_PUBLISHABLE_KEY
        self.currency = settings.STRIPE_CURRENCY.lower()

    def to_minor_units(self, amount: Decimal) -> int:
        if self.currency in self.ZERO_DECIMAL_CURRENCIES:
            return int(amount)
        return int(amount * 100)

    def create_payment_intent(self, order: Order) -> ServiceResult:
        """
        Create a PaymentIntent for the full order total.

        Args:
            order: Order instance

        Returns:
            ServiceResult containing client secret and intent id
        """
        if order.is_paid:
            return ServiceResult.fail(
                "Order is already paid",
                error_code="ALREADY_PAID"
            )

        amount = self.to_minor_units(order.total_price)

        try:
            payment_intent = stripe.PaymentIntent.create(
                amount=amount,
                currency=self.currency,
                metadata={
                    'order_id': str(order.id),
                    'order_reference': order.reference_number,
                    'customer_id': str(order.customer_id),
                    'platform': 'guraneza'
                },
                description=f"Order {order.reference_number}",
                receipt_email=order.customer.email,
                automatic_payment_methods={'enabled': True}
            )
        except stripe.StripeError as e:
            self.log_error(
                "Stripe error creating payment intent",
                exception=e,
                order_id=order.id
            )
            return ServiceResult.fail(
                f"Payment processing failed: {str(e)}",
                error_code="PAYMENT_FAILED"
            )

        order.payment_method = Order.METHOD_CARD
        order.transaction_id = payment_intent.id
        order.save(update_fields=['payment_method', 'transaction_id', 'updated_at'])

        self.log_info(
            f"Created payment intent for order {order.id}",
            order_id=order.id,
            payment_intent_id=payment_intent.id,
            amount=amount
        )

        return ServiceResult.ok({
            'client_secret': payment_intent.client_secret,
            'publishable_key': self.publishable_key,
            'payment_intent_id': payment_intent.id,
            'amount': amount,
            'currency': self.currency
        })

    def confirm_payment(self, order: Order, payment_intent_id: str) -> ServiceResult:
        """
        Check a PaymentIntent with Stripe and settle the order if it succeeded.

        Returns:
            ServiceResult containing the intent status and the Order
        """
        from apps.orders.services.order_service import OrderService

        try:
            payment_intent = stripe.PaymentIntent.retrieve(payment_intent_id)
        except stripe.StripeError as e:
            self.log_error(
                "Stripe error retrieving payment intent",
                exception=e,
                payment_intent_id=payment_intent_id
            )
            return ServiceResult.fail(
                f"Could not verify payment: {str(e)}",
                error_code="STRIPE_ERROR"
            )

        metadata = payment_intent.metadata or {}
        metadata_order_id = metadata['order_id'] if 'order_id' in metadata else None
        if metadata_order_id and metadata_order_id != str(order.id):
            return ServiceResult.fail(
                "Payment does not belong to this order",
                error_code="ORDER_MISMATCH"
            )

        intent_status = payment_intent.status

        if intent_status == 'succeeded':
            result = OrderService().mark_paid(
                order.id,
                transaction_id=payment_intent.id,
                payment_info={
                    'provider': 'stripe',
                    'status': intent_status,
                    'amount_received': payment_intent.amount_received,
                    'currency': payment_intent.currency,
                }
            )
            if not result.success:
                return result
            order = result.data

        return ServiceResult.ok({'status': intent_status, 'order': order})

    def verify_webhook_signature(
        self,
        payload: bytes,
        signature: str
    ) -> ServiceResult:
        """
        Verify Stripe webhook signature.

        Args:
            payload: Raw request body
            signature: Stripe signature header

        Returns:
            ServiceResult containing event or error
        """
        try:
            event = stripe.Webhook.construct_event(
                payload,
                signature,
                self.webhook_secret
            )

            return ServiceResult.ok(event)

        except ValueError:
            self.log_error("Invalid webhook payload")
            return ServiceResult.fail(
                "Invalid payload",
                error_code="INVALID_PAYLOAD"
            )
        except stripe.SignatureVerificationError:
            self.log_error("Invalid webhook signature")
            return ServiceResult.fail(
                "Invalid signature",
                error_code="INVALID_SIGNATURE"
            )
