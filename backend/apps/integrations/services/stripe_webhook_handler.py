"""
Stripe webhook event handler service.
Processes different webhook events with specific handlers for each event type.
"""
from typing import Dict, Any, Optional

from apps.core.services.base import BaseService, ServiceResult
from apps.orders.models import Order
from apps.orders.services.order_service import OrderService


class StripeWebhookHandler(BaseService):
    """
    Handles Stripe webhook events with event-specific methods.
    Uses a handler registry pattern for clean event routing.

    Supported Events:
    - payment_intent.succeeded: Mark the order as paid
    - payment_intent.payment_failed: Mark the order payment as failed
    """

    def __init__(self):
        """Initialize handler with event registry."""
        super().__init__()
        self.order_service = OrderService()

        # Event handler registry
        self.handlers = {
            'payment_intent.succeeded': self.handle_payment_intent_succeeded,
            'payment_intent.payment_failed': self.handle_payment_intent_failed,
        }

    def handle_event(self, event: Dict[str, Any]) -> ServiceResult:
        """
        Main entry point for webhook events.
        Routes events to specific handlers based on event type.

        Args:
            event: Stripe event object (dict)

        Returns:
            ServiceResult indicating success or failure
        """
        event_type = event.get('type')
        event_id = event.get('id')

        self.log_info(
            f"Processing webhook event: {event_type}",
            event_id=event_id,
            event_type=event_type
        )

        handler = self.handlers.get(event_type)

        if not handler:
            self.log_info(
                f"Unhandled webhook event type: {event_type}",
                event_id=event_id
            )
            return ServiceResult.ok({
                'message': f'Event type {event_type} not handled',
                'event_id': event_id
            })

        try:
            event_data = event.get('data', {}).get('object', {})
            result = handler(event_data, event_id)

            if result.success:
                self.log_info(
                    f"Successfully handled {event_type}",
                    event_id=event_id
                )
            else:
                self.log_error(
                    f"Handler failed for {event_type}: {result.error}",
                    event_id=event_id,
                    error_code=result.error_code
                )

            return result

        except Exception as e:
            self.log_error(
                f"Exception handling {event_type}",
                exception=e,
                event_id=event_id
            )
            return ServiceResult.fail(
                f"Failed to process event: {str(e)}",
                error_code="HANDLER_EXCEPTION"
            )

    def _find_order(self, payment_intent: Dict[str, Any]) -> Optional[Order]:
        """Locate the order by metadata, then by the stored intent id."""
        metadata = payment_intent.get('metadata') or {}
        order_id = metadata.get('order_id')

        if order_id:
            try:
                return Order.objects.filter(id=int(order_id)).first()
            except (TypeError, ValueError):
                self.log_error(f"Invalid order_id in metadata: {order_id}")

        intent_id = payment_intent.get('id')
        if intent_id:
            return Order.objects.filter(transaction_id=intent_id).first()
        return None

    def handle_payment_intent_succeeded(
        self,
        payment_intent: Dict[str, Any],
        event_id: str
    ) -> ServiceResult:
        """
        Handle successful payment.

        Args:
            payment_intent: Stripe PaymentIntent object
            event_id: Webhook event ID

        Returns:
            ServiceResult with the settled order id
        """
        intent_id = payment_intent.get('id')
        order = self._find_order(payment_intent)

        if not order:
            self.log_warning(
                "Payment intent does not match any order",
                intent_id=intent_id
            )
            return ServiceResult.fail(
                "No order found for payment intent",
                error_code="ORDER_NOT_FOUND"
            )

        result = self.order_service.mark_paid(
            order.id,
            transaction_id=intent_id,
            payment_info={
                'provider': 'stripe',
                'status': payment_intent.get('status'),
                'amount_received': payment_intent.get('amount_received'),
                'currency': payment_intent.get('currency'),
                'event_id': event_id,
            }
        )
        if not result.success:
            return result

        return ServiceResult.ok({'order_id': order.id, 'payment_status': Order.PAYMENT_PAID})

    def handle_payment_intent_failed(
        self,
        payment_intent: Dict[str, Any],
        event_id: str
    ) -> ServiceResult:
        intent_id = payment_intent.get('id')
        order = self._find_order(payment_intent)

        error = payment_intent.get('last_payment_error') or {}
        failure_message = error.get('message', 'Unknown error')

        self.log_warning(
            f"Payment intent failed: {intent_id}",
            failure_message=failure_message
        )

        if not order:
            return ServiceResult.ok({'message': 'No order for failed payment'})

        if order.is_paid:
            return ServiceResult.ok({'order_id': order.id, 'skipped': True})

        self.order_service.mark_payment_failed(order, payment_info={
            'provider': 'stripe',
            'status': 'failed',
            'failure_message': failure_message,
            'event_id': event_id,
        })

        return ServiceResult.ok({'order_id': order.id, 'payment_status': Order.PAYMENT_FAILED})
