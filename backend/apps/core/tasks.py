"""
Celery tasks for account housekeeping.
"""
from celery import shared_task
from django.utils import timezone
import logging

logger = logging.getLogger(__name__)


@shared_task(name='clear_expired_otps')
def clear_expired_otps():
    """
    Blank out OTPs whose expiry has passed.
    Runs hourly via Celery Beat.
    """
    from apps.core.models import User

    cleared = User.objects.filter(
        otp_expires_at__lt=timezone.now()
    ).update(otp_code='', otp_expires_at=None)

    logger.info(f"Cleared {cleared} expired OTPs")
    return {'cleared': cleared}
