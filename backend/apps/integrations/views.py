"""
Webhook endpoints for external services.
"""
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.permissions import AllowAny
from django.views.decorators.csrf import csrf_exempt
from django.http import JsonResponse
import json
import logging

from drf_spectacular.utils import extend_schema, OpenApiExample

from .services.stripe_service import StripeService
from .services.stripe_webhook_handler import StripeWebhookHandler

logger = logging.getLogger(__name__)


@extend_schema(
    summary="Stripe webhook receiver",
    description="""
    Receives signed events from Stripe.

    **Handled events:**
    - `payment_intent.succeeded`: marks the order PAID and e-mails a confirmation
    - `payment_intent.payment_failed`: marks the order payment FAILED

    The `Stripe-Signature` header is verified with `STRIPE_WEBHOOK_SECRET`.
    Verified events always get a 200 so Stripe does not retry.

    **Permissions:** Stripe only (signature)
    """,
    request={'application/json': {'type': 'object'}},
    responses={
        200: {
            'description': 'Event received',
            'examples': [
                OpenApiExample(
                    'Received',
                    value={
                        'received': True,
                        'event_id': 'evt_xxxxx',
                        'event_type': 'payment_intent.succeeded'
                    }
                )
            ]
        },
        400: {'description': 'Invalid signature or malformed payload'}
    },
    tags=['Webhooks']
)
@api_view(['POST'])
@csrf_exempt
@authentication_classes([])
@permission_classes([AllowAny])
def stripe_webhook(request):
    """
    Handle Stripe webhooks.
    POST /api/v1/webhooks/stripe
    """
    payload = request.body
    sig_header = request.META.get('HTTP_STRIPE_SIGNATURE')

    logger.info("Stripe webhook received", extra={
        'content_length': len(payload),
        'has_signature': bool(sig_header)
    })

    if not sig_header:
        logger.error("Stripe webhook missing signature header")
        return JsonResponse({
            'error': 'Missing stripe signature'
        }, status=400)

    verify_result = StripeService().verify_webhook_signature(payload, sig_header)

    if not verify_result.success:
        logger.error(
            f"Stripe webhook signature verification failed: {verify_result.error}",
            extra={'error_code': verify_result.error_code}
        )
        return JsonResponse({
            'error': verify_result.error,
            'error_code': verify_result.error_code
        }, status=400)

    # Handlers work on the plain JSON body once the signature checks out
    event = json.loads(payload)
    event_id = event.get('id')
    event_type = event.get('type')

    result = StripeWebhookHandler().handle_event(event)

    if not result.success:
        logger.error(
            f"Webhook handler failed: {result.error}",
            extra={
                'event_id': event_id,
                'event_type': event_type,
                'error_code': result.error_code
            }
        )

    return JsonResponse({
        'received': True,
        'event_id': event_id,
        'event_type': event_type
    }, status=200)
