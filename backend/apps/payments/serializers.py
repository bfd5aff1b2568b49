"""
Serializers for payment requests and responses.
"""
from rest_framework import serializers


class MoMoInitiateSerializer(serializers.Serializer):
    """Start a MoMo request-to-pay for an order."""
    order_id = serializers.IntegerField(min_value=1)
    phone_number = serializers.RegexField(
        r'^[0-9]{9,15}$',
        help_text="Payer MSISDN, digits only (e.g. 250788123456)",
        error_messages={'invalid': 'Phone number must contain 9 to 15 digits.'}
    )


class MoMoInitiateResponseSerializer(serializers.Serializer):
    reference_id = serializers.CharField()
    status = serializers.CharField()
    order_id = serializers.IntegerField()


class MoMoCallbackSerializer(serializers.Serializer):
    """Body MoMo posts to the callback URL."""
    referenceId = serializers.CharField(required=False, allow_blank=True)
    status = serializers.CharField(required=False, allow_blank=True)
    financialTransactionId = serializers.CharField(required=False, allow_blank=True)


class StripeCreateIntentSerializer(serializers.Serializer):
    order_id = serializers.IntegerField(min_value=1)


class StripeIntentResponseSerializer(serializers.Serializer):
    client_secret = serializers.CharField()
    publishable_key = serializers.CharField()
    payment_intent_id = serializers.CharField()
    amount = serializers.IntegerField()
    currency = serializers.CharField()


class StripeConfirmSerializer(serializers.Serializer):
    """Confirm a card payment after Stripe completes it client-side."""
    order_id = serializers.IntegerField(min_value=1)
    payment_intent_id = serializers.CharField(max_length=200)

    def validate_payment_intent_id(self, value):
        if not value.startswith('pi_'):
            raise serializers.ValidationError(
                "Invalid payment intent ID format"
            )
        return value


class PaymentErrorSerializer(serializers.Serializer):
    error = serializers.CharField()
    error_code = serializers.CharField()
