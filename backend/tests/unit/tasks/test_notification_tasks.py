"""
Unit tests for e-mail Celery tasks and EmailService.
Mail goes to Django's locmem outbox.
"""
import pytest
from unittest.mock import patch

from django.core import mail

from apps.core.services.base import ExternalServiceError
from apps.notifications.services.email_service import EmailService
from apps.notifications.tasks import (
    send_order_confirmation_email,
    send_order_delivered_email,
    send_otp_email
)
from tests.conftest import OrderFactory, OrderItemFactory


class TestOTPEmail:

    @pytest.mark.parametrize('purpose,subject', [
        ('login', 'Your GuraNeza login code'),
        ('signup', 'Verify your email - GuraNeza'),
        ('password_reset', 'Password Reset OTP - GuraNeza'),
    ])
    def test_subject_per_purpose(self, purpose, subject):
        send_otp_email('aline@example.com', '482913', purpose)

        message = mail.outbox[-1]
        assert message.subject == subject
        assert message.to == ['aline@example.com']
        assert '482913' in message.body

    def test_html_alternative(self):
        send_otp_email('aline@example.com', '482913')

        html, mimetype = mail.outbox[-1].alternatives[0]
        assert mimetype == 'text/html'
        assert '482913' in html

    def test_unknown_purpose_sends_nothing(self):
        result = EmailService().send_otp_email('aline@example.com', '482913', 'newsletter')

        assert result.error_code == 'INVALID_PURPOSE'
        assert len(mail.outbox) == 0

    def test_delivery_failure_is_retried(self):
        with patch.object(EmailService, 'send_otp_email',
                          side_effect=ExternalServiceError('smtp down', code='EMAIL_FAILED')):
            with patch.object(send_otp_email, 'retry',
                              side_effect=ExternalServiceError('retry')) as mock_retry:
                with pytest.raises(ExternalServiceError):
                    send_otp_email('aline@example.com', '482913', 'login')

        mock_retry.assert_called_once()

    def test_smtp_error_becomes_external_error(self):
        with patch('apps.notifications.services.email_service.send_mail',
                   side_effect=OSError('connection refused')):
            with pytest.raises(ExternalServiceError) as exc_info:
                EmailService().send_otp_email('aline@example.com', '482913', 'login')

        assert exc_info.value.code == 'EMAIL_FAILED'


@pytest.mark.django_db
class TestOrderEmails:

    def test_confirmation_lists_items(self):
        # Arrange
        order = OrderFactory()
        item = OrderItemFactory(order=order)

        # Act
        send_order_confirmation_email(order.id)

        # Assert
        message = mail.outbox[-1]
        assert message.subject == f"Order {order.reference_number} confirmed - GuraNeza"
        assert message.to == [order.customer.email]
        assert item.product_name in message.body

    def test_delivered_email(self):
        order = OrderFactory()

        send_order_delivered_email(order.id)

        assert mail.outbox[-1].subject == \
            f"Order {order.reference_number} delivered - GuraNeza"

    def test_missing_order_is_skipped(self):
        send_order_confirmation_email(987654)
        send_order_delivered_email(987654)

        assert len(mail.outbox) == 0
