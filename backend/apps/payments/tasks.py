"""
Celery tasks for MoMo payment reconciliation.
MoMo callbacks are not guaranteed, so pending payments are polled.
"""
from celery import shared_task
import logging

logger = logging.getLogger(__name__)


@shared_task(name='poll_pending_momo_payments')
def poll_pending_momo_payments():
    """
    Check MoMo payments started in the last 24 hours.
    Runs every 2 minutes via Celery Beat.
    """
    from apps.payments.services.momo_payment_service import MoMoPaymentService

    try:
        summary = MoMoPaymentService().poll_pending()
        logger.info(
            f"MoMo poll complete: {summary['checked']} checked, "
            f"{summary['settled']} settled"
        )
        return summary

    except Exception as e:
        logger.error(f"Error polling MoMo payments: {str(e)}")
        raise


@shared_task(name='expire_stale_momo_payments')
def expire_stale_momo_payments():
    """
    Fail MoMo payments that stayed pending for more than 24 hours.
    Runs hourly via Celery Beat.
    """
    from apps.payments.services.momo_payment_service import MoMoPaymentService

    expired = MoMoPaymentService().expire_stale()
    return {'expired': expired}
