"""
Transactional e-mail for GuraNeza.
Renders the HTML templates under notifications/ and sends them through
Django's configured mail backend.
"""
from typing import Any, Dict

from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string
from django.utils import timezone
from django.utils.html import strip_tags

from apps.core.services.base import BaseService, ExternalServiceError, ServiceResult


class EmailService(BaseService):
    """
    Builds and sends OTP, order confirmation and delivery e-mails.
    """

    OTP_SUBJECTS = {
        'login': 'Your GuraNeza login code',
        'signup': 'Verify your email - GuraNeza',
        'password_reset': 'Password Reset OTP - GuraNeza',
    }

    def _send(self, to_email: str, subject: str, template: str,
              context: Dict[str, Any]) -> None:
        context = {
            'site_name': 'GuraNeza',
            'frontend_url': settings.FRONTEND_URL,
            'year': timezone.now().year,
            **context
        }
        html = render_to_string(f"notifications/{template}", context)

        try:
            send_mail(
                subject=subject,
                message=strip_tags(html),
                from_email=settings.DEFAULT_FROM_EMAIL,
                recipient_list=[to_email],
                html_message=html,
                fail_silently=False
            )
        except Exception as e:
            self.log_error(
                f"Failed to send '{subject}'",
                exception=e,
                to_email=to_email
            )
            raise ExternalServiceError(
                f"Email delivery failed: {str(e)}",
                code="EMAIL_FAILED"
            )

        self.log_info(f"Sent '{subject}'", to_email=to_email)

    def send_otp_email(self, email: str, otp: str, purpose: str = 'login') -> ServiceResult:
        """
        Send a one-time code.

        Args:
            email: Recipient address
            otp: The 6 digit code
            purpose: 'login', 'signup' or 'password_reset'
        """
        if purpose not in self.OTP_SUBJECTS:
            return ServiceResult.fail(
                f"Unknown OTP purpose: {purpose}",
                error_code="INVALID_PURPOSE"
            )

        self._send(
            email,
            self.OTP_SUBJECTS[purpose],
            'otp_email.html',
            {
                'otp': otp,
                'purpose': purpose,
                'expiry_minutes': settings.OTP_EXPIRY_MINUTES,
            }
        )
        return ServiceResult.ok({'email': email, 'purpose': purpose})

    def send_order_confirmation(self, order) -> ServiceResult:
        self._send(
            order.customer.email,
            f"Order {order.reference_number} confirmed - GuraNeza",
            'order_confirmation.html',
            {
                'order': order,
                'items': list(order.items.all()),
                'currency': settings.MARKETPLACE_CURRENCY,
            }
        )
        return ServiceResult.ok({'order_id': order.id})

    def send_order_delivered(self, order) -> ServiceResult:
        self._send(
            order.customer.email,
            f"Order {order.reference_number} delivered - GuraNeza",
            'order_delivered.html',
            {
                'order': order,
                'review_url': f"{settings.FRONTEND_URL}/orders",
            }
        )
        return ServiceResult.ok({'order_id': order.id})
