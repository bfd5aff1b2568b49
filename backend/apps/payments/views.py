"""
API views for payment operations.
Handles MTN MoMo request-to-pay and Stripe payment intents for orders.
"""
from rest_framework import views, status
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
import logging

from drf_spectacular.utils import extend_schema, OpenApiExample

from apps.core.api import error_response
from apps.integrations.services.stripe_service import StripeService
from apps.orders.models import Order
from apps.orders.serializers import OrderSerializer
from .serializers import (
    MoMoCallbackSerializer,
    MoMoInitiateResponseSerializer,
    MoMoInitiateSerializer,
    PaymentErrorSerializer,
    StripeConfirmSerializer,
    StripeCreateIntentSerializer,
    StripeIntentResponseSerializer
)
from .services.momo_payment_service import MoMoPaymentService

logger = logging.getLogger(__name__)


def get_customer_order(request, order_id):
    """
    Load an order that the caller placed.

    Returns:
        (order, None) or (None, error Response)
    """
    order = Order.objects.select_related('customer').filter(id=order_id).first()
    if not order:
        return None, Response(
            {'error': 'Order not found', 'error_code': 'ORDER_NOT_FOUND'},
            status=status.HTTP_404_NOT_FOUND
        )
    if order.customer_id != request.user.id:
        return None, Response(
            {'error': 'You can only pay for your own orders',
             'error_code': 'PERMISSION_DENIED'},
            status=status.HTTP_403_FORBIDDEN
        )
    return order, None


class MoMoInitiateView(views.APIView):
    """
    Start a MoMo payment.

    POST /api/v1/payment/momo/initiate
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Initiate MoMo payment",
        description="""
        Sends a request-to-pay for the order total to the customer's phone.
        The customer approves it on the handset; the result arrives through
        the callback, a status check, or the background poll.

        **Permissions:** The customer who placed the order
        """,
        request=MoMoInitiateSerializer,
        responses={
            200: MoMoInitiateResponseSerializer,
            400: PaymentErrorSerializer,
            403: PaymentErrorSerializer,
            404: PaymentErrorSerializer
        },
        examples=[
            OpenApiExample(
                'Initiate',
                value={'order_id': 12, 'phone_number': '250788123456'},
                request_only=True
            )
        ],
        tags=['Payments']
    )
    def post(self, request):
        serializer = MoMoInitiateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order, error = get_customer_order(request, serializer.validated_data['order_id'])
        if error:
            return error

        result = MoMoPaymentService().initiate(
            order, serializer.validated_data['phone_number'])
        if not result.success:
            return error_response(result)

        return Response({
            'message': 'Payment request sent. Approve it on your phone.',
            **result.data
        })


class MoMoStatusView(views.APIView):
    """
    Check a MoMo payment.

    GET /api/v1/payment/momo/status/<reference_id>
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="MoMo payment status",
        description="""
        Queries MoMo for the transaction. SUCCESSFUL marks the order paid and
        FAILED marks its payment failed.
        """,
        responses={200: OrderSerializer, 404: PaymentErrorSerializer},
        tags=['Payments']
    )
    def get(self, request, reference_id):
        order = Order.objects.filter(transaction_id=reference_id).first()
        if order and order.customer_id != request.user.id and not request.user.is_admin:
            return Response(
                {'error': 'You do not have access to this payment',
                 'error_code': 'PERMISSION_DENIED'},
                status=status.HTTP_403_FORBIDDEN
            )

        result = MoMoPaymentService().check_status(reference_id)
        if not result.success:
            return error_response(result)

        return Response({
            'reference_id': reference_id,
            'status': result.data['status'],
            'order': OrderSerializer(result.data['order']).data
        })


class MoMoWebhookView(views.APIView):
    """
    MoMo callback receiver.

    POST /api/v1/payment/webhook/momo
    """
    authentication_classes = []
    permission_classes = [AllowAny]

    @extend_schema(
        summary="MoMo callback",
        description="""
        Receives `{referenceId, status}` from MoMo. Always answers 200,
        including for unknown references.
        """,
        request=MoMoCallbackSerializer,
        responses={200: {'description': 'Callback received'}},
        tags=['Webhooks']
    )
    def post(self, request):
        serializer = MoMoCallbackSerializer(data=request.data)
        if not serializer.is_valid():
            logger.warning(f"Malformed MoMo callback: {serializer.errors}")
            return Response({'received': True})

        data = serializer.validated_data
        result = MoMoPaymentService().handle_callback(
            data.get('referenceId'),
            data.get('status'),
            payload=request.data
        )
        return Response({'received': True, **result.data})


class StripeCreateIntentView(views.APIView):
    """
    Create a Stripe payment intent for an order.

    POST /api/v1/payment/stripe/create-intent
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Create Stripe payment intent",
        description="""
        Creates a PaymentIntent for the order total and returns the client
        secret for the card form.

        **Permissions:** The customer who placed the order
        """,
        request=StripeCreateIntentSerializer,
        responses={
            200: StripeIntentResponseSerializer,
            400: PaymentErrorSerializer
        },
        tags=['Payments']
    )
    def post(self, request):
        serializer = StripeCreateIntentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order, error = get_customer_order(request, serializer.validated_data['order_id'])
        if error:
            return error

        result = StripeService().create_payment_intent(order)
        if not result.success:
            return error_response(result)

        return Response(result.data)


class StripeConfirmView(views.APIView):
    """
    Confirm a card payment.

    POST /api/v1/payment/stripe/confirm
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Confirm Stripe payment",
        description="""
        Retrieves the PaymentIntent from Stripe. When it has succeeded the
        order is marked paid. Safe to call more than once.

        **Permissions:** The customer who placed the order
        """,
        request=StripeConfirmSerializer,
        responses={200: OrderSerializer, 400: PaymentErrorSerializer},
        tags=['Payments']
    )
    def post(self, request):
        serializer = StripeConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order, error = get_customer_order(request, serializer.validated_data['order_id'])
        if error:
            return error

        result = StripeService().confirm_payment(
            order, serializer.validated_data['payment_intent_id'])
        if not result.success:
            return error_response(result)

        intent_status = result.data['status']
        if intent_status != 'succeeded':
            return Response({
                'error': f'Payment not completed (status: {intent_status})',
                'error_code': 'PAYMENT_NOT_COMPLETED',
                'status': intent_status
            }, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'message': 'Payment confirmed',
            'status': intent_status,
            'order': OrderSerializer(result.data['order']).data
        })
