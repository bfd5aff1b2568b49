# apps/sellers/serializers.py

from rest_framework import serializers

from apps.core.serializers import UserSummarySerializer
from .models import SellerProfile, SellerRequest


class SellerProfileSerializer(serializers.ModelSerializer):
    """Seller store details"""

    class Meta:
        model = SellerProfile
        fields = [
            'id', 'store_name', 'description', 'phone', 'logo_url',
            'approval_status', 'total_products', 'total_sales', 'rating',
            'created_at', 'updated_at'
        ]
        read_only_fields = [
            'id', 'approval_status', 'total_products', 'total_sales',
            'rating', 'created_at', 'updated_at'
        ]


class SellerPublicSerializer(serializers.ModelSerializer):
    """What shoppers see about a store"""

    class Meta:
        model = SellerProfile
        fields = ['id', 'store_name', 'description', 'logo_url', 'rating']
        read_only_fields = fields


class SellerAdminSerializer(serializers.ModelSerializer):
    """Seller profile with the owning account, for the admin dashboard"""
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = SellerProfile
        fields = [
            'id', 'user', 'store_name', 'description', 'phone', 'logo_url',
            'approval_status', 'total_products', 'total_sales', 'rating',
            'created_at'
        ]
        read_only_fields = fields


class SellerStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=SellerProfile.STATUS_CHOICES)


class ShippingStatusSerializer(serializers.Serializer):
    shipping_status = serializers.ChoiceField(choices=[
        'NOT_SHIPPED', 'IN_TRANSIT', 'DELIVERED'
    ])


class SellerRequestCreateSerializer(serializers.ModelSerializer):
    """Customer's application to become a seller"""
    store_description = serializers.CharField(min_length=10, max_length=500)
    phone = serializers.RegexField(
        r'^[0-9]{10,15}$',
        error_messages={'invalid': 'Phone number must contain 10 to 15 digits.'}
    )

    class Meta:
        model = SellerRequest
        fields = ['store_name', 'store_description', 'phone', 'logo_url']
        extra_kwargs = {
            'store_name': {'min_length': 3, 'max_length': 100},
            'logo_url': {'required': False},
        }


class SellerRequestSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)
    processed_by = serializers.EmailField(
        source='processed_by.email', read_only=True, default=None)

    class Meta:
        model = SellerRequest
        fields = [
            'id', 'user', 'store_name', 'store_description', 'phone',
            'logo_url', 'status', 'rejection_reason', 'requested_at',
            'processed_at', 'processed_by'
        ]
        read_only_fields = fields


class SellerRequestRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(
        max_length=500,
        error_messages={
            'required': 'Rejection reason is required',
            'blank': 'Rejection reason is required'
        }
    )
