"""
MoMo payment orchestration.
Starts request-to-pay for orders and settles them from status lookups,
callbacks and the background reconciliation.
"""
from datetime import timedelta
from typing import Any, Dict, Optional

from django.utils import timezone

from apps.core.services.base import BaseService, ServiceResult, ExternalServiceError
from apps.integrations.services.momo_service import MoMoService
from apps.orders.models import Order
from apps.orders.services.order_service import OrderService


class MoMoPaymentService(BaseService):
    """
    Ties MoMo transactions to orders.
    The MoMo reference id is stored in the order's transaction_id.
    """

    STALE_AFTER = timedelta(hours=24)

    def __init__(self, client: Optional[MoMoService] = None):
        super().__init__()
        self.client = client or MoMoService()
        self.order_service = OrderService()

    def initiate(self, order: Order, phone_number: str) -> ServiceResult:
        """
        Send a request-to-pay for the order total to the customer's phone.

        Returns:
            ServiceResult with reference_id and PENDING status
        """
        if order.is_paid:
            return ServiceResult.fail(
                "Order is already paid",
                error_code="ALREADY_PAID"
            )

        try:
            momo = self.client.request_to_pay(
                amount=order.total_price,
                phone_number=phone_number,
                external_id=str(order.id),
                payee_note=f"GuraNeza order {order.reference_number}"
            )
        except ExternalServiceError as e:
            self.log_error(
                "MoMo request to pay failed",
                exception=e,
                order_id=order.id,
                code=e.code
            )
            return ServiceResult.fail(
                "Payment initiation failed. Please try again.",
                error_code="EXTERNAL_SERVICE_ERROR"
            )

        order.payment_method = Order.METHOD_MOMO
        order.payment_status = Order.PAYMENT_PENDING
        order.transaction_id = momo['reference_id']
        order.payment_info = {
            **(order.payment_info or {}),
            'provider': 'momo',
            'phone_number': phone_number,
            'currency': momo['currency'],
        }
        order.payment_requested_at = timezone.now()
        order.save(update_fields=[
            'payment_method', 'payment_status', 'transaction_id',
            'payment_requested_at', 'payment_info', 'updated_at'
        ])

        return ServiceResult.ok({
            'reference_id': momo['reference_id'],
            'status': MoMoService.STATUS_PENDING,
            'order_id': order.id,
        })

    def apply_status(self, order: Order, momo_status: str,
                     payload: Optional[Dict[str, Any]] = None) -> Order:
        """
        Settle an order from a MoMo transaction status.
        PENDING leaves the order untouched.
        """
        payload = payload or {}
        info = {
            'provider': 'momo',
            'status': momo_status,
            'financial_transaction_id': payload.get('financialTransactionId'),
        }

        if momo_status == MoMoService.STATUS_SUCCESSFUL:
            result = self.order_service.mark_paid(
                order.id,
                transaction_id=order.transaction_id,
                payment_info=info
            )
            return result.data
        if momo_status == MoMoService.STATUS_FAILED and not order.is_paid:
            info['reason'] = payload.get('reason')
            self.order_service.mark_payment_failed(order, payment_info=info)
        return order

    def check_status(self, reference_id: str) -> ServiceResult:
        """
        Ask MoMo for the current status and apply it to the matching order.
        """
        order = Order.objects.filter(transaction_id=reference_id).first()
        if not order:
            return ServiceResult.fail(
                "No order found for this payment reference",
                error_code="ORDER_NOT_FOUND"
            )

        try:
            payload = self.client.get_transaction_status(reference_id)
        except ExternalServiceError as e:
            self.log_error(
                "MoMo status lookup failed",
                exception=e,
                reference_id=reference_id
            )
            return ServiceResult.fail(
                "Could not check payment status",
                error_code="EXTERNAL_SERVICE_ERROR"
            )

        momo_status = payload['status']
        order = self.apply_status(order, momo_status, payload)
        return ServiceResult.ok({'status': momo_status, 'order': order})

    def handle_callback(self, reference_id: Optional[str], momo_status: Optional[str],
                        payload: Optional[Dict[str, Any]] = None) -> ServiceResult:
        """
        Process a MoMo callback. Unknown references are logged and ignored.
        """
        order = None
        if reference_id:
            order = Order.objects.filter(transaction_id=reference_id).first()

        if not order:
            self.log_warning("MoMo callback for unknown reference", reference_id=reference_id)
            return ServiceResult.ok({'processed': False})

        order = self.apply_status(order, momo_status, payload)
        self.log_info(
            "MoMo callback processed",
            reference_id=reference_id,
            status=momo_status,
            order_id=order.id
        )
        return ServiceResult.ok({'processed': True, 'order_id': order.id})

    # ==================== Reconciliation ====================

    def pending_orders(self):
        return Order.objects.filter(
            payment_method=Order.METHOD_MOMO,
            payment_status=Order.PAYMENT_PENDING
        ).exclude(transaction_id='')

    def poll_pending(self) -> Dict[str, int]:
        """
        Re-check MoMo payments started within the last 24 hours.
        """
        since = timezone.now() - self.STALE_AFTER
        checked = settled = 0

        for order in self.pending_orders().filter(payment_requested_at__gte=since):
            checked += 1
            try:
                payload = self.client.get_transaction_status(order.transaction_id)
            except ExternalServiceError as e:
                self.log_warning(
                    "Could not poll MoMo payment",
                    order_id=order.id,
                    code=e.code
                )
                continue

            if payload['status'] != MoMoService.STATUS_PENDING:
                self.apply_status(order, payload['status'], payload)
                settled += 1

        return {'checked': checked, 'settled': settled}

    def expire_stale(self) -> int:
        """Fail MoMo payments still pending after 24 hours."""
        cutoff = timezone.now() - self.STALE_AFTER
        expired = 0

        for order in self.pending_orders().filter(payment_requested_at__lt=cutoff):
            self.order_service.mark_payment_failed(order, payment_info={
                'provider': 'momo',
                'status': MoMoService.STATUS_FAILED,
                'reason': 'EXPIRED',
            })
            expired += 1

        if expired:
            self.log_info("Expired stale MoMo payments", count=expired)
        return expired
