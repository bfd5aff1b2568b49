"""
Celery tasks for outgoing e-mail.
Failed deliveries are retried and never surface in the HTTP request that
queued them.
"""
from celery import shared_task
import logging

from apps.core.services.base import ExternalServiceError

logger = logging.getLogger(__name__)


@shared_task(
    name='send_otp_email',
    bind=True,
    max_retries=3,
    default_retry_delay=60
)
def send_otp_email(self, email, otp, purpose='login'):
    """Send a login, signup or password reset code."""
    from apps.notifications.services.email_service import EmailService

    try:
        EmailService().send_otp_email(email, otp, purpose)
    except ExternalServiceError as exc:
        logger.warning(f"OTP email to {email} failed, retrying: {exc}")
        raise self.retry(exc=exc)


@shared_task(
    name='send_order_confirmation_email',
    bind=True,
    max_retries=3,
    default_retry_delay=60
)
def send_order_confirmation_email(self, order_id):
    from apps.orders.models import Order
    from apps.notifications.services.email_service import EmailService

    try:
        order = Order.objects.select_related('customer').get(id=order_id)
    except Order.DoesNotExist:
        logger.error(f"Order {order_id} not found for confirmation email")
        return

    try:
        EmailService().send_order_confirmation(order)
    except ExternalServiceError as exc:
        raise self.retry(exc=exc)


@shared_task(
    name='send_order_delivered_email',
    bind=True,
    max_retries=3,
    default_retry_delay=60
)
def send_order_delivered_email(self, order_id):
    from apps.orders.models import Order
    from apps.notifications.services.email_service import EmailService

    try:
        order = Order.objects.select_related('customer').get(id=order_id)
    except Order.DoesNotExist:
        logger.error(f"Order {order_id} not found for delivery email")
        return

    try:
        EmailService().send_order_delivered(order)
    except ExternalServiceError as exc:
        raise self.retry(exc=exc)
