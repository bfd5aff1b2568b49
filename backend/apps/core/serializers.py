# apps/core/serializers.py

import re

from rest_framework import serializers
from django.contrib.auth import get_user_model
from .models import Address

User = get_user_model()

PASSWORD_PATTERN = re.compile(
    r'^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]+$'
)
PASSWORD_HELP = (
    "Password must contain at least one uppercase letter, one lowercase "
    "letter, one number and one special character (@$!%*?&)"
)


def validate_password_strength(value):
    if len(value) < 8:
        raise serializers.ValidationError(
            "Password must be at least 8 characters long")
    if not PASSWORD_PATTERN.match(value):
        raise serializers.ValidationError(PASSWORD_HELP)
    return value


class UserPublicSerializer(serializers.ModelSerializer):
    """Minimal user info for public display (e.g., reviewer names)"""

    class Meta:
        model = User
        fields = ['id', 'first_name', 'last_name']
        read_only_fields = fields


class UserSummarySerializer(serializers.ModelSerializer):
    """Identity returned alongside tokens"""

    class Meta:
        model = User
        fields = ['id', 'email', 'first_name', 'last_name', 'role', 'status']
        read_only_fields = fields


class AddressSerializer(serializers.ModelSerializer):
    """Saved delivery address"""

    class Meta:
        model = Address
        fields = [
            'id', 'full_name', 'phone', 'street', 'city', 'state',
            'country', 'label', 'is_default', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'country', 'created_at', 'updated_at']


class UserPrivateSerializer(serializers.ModelSerializer):
    """Full user info for the authenticated user's own profile"""
    seller_profile = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'email', 'first_name', 'last_name', 'role', 'status',
            'is_verified', 'phone', 'avatar', 'date_of_birth',
            'street', 'city', 'state', 'country', 'date_joined',
            'seller_profile'
        ]
        read_only_fields = [
            'id', 'email', 'role', 'status', 'is_verified', 'country',
            'date_joined'
        ]

    def get_seller_profile(self, obj):
        if not obj.is_seller or not hasattr(obj, 'seller_profile'):
            return None
        from apps.sellers.serializers import SellerProfileSerializer
        return SellerProfileSerializer(obj.seller_profile).data


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Fields a user may change on their own profile"""

    class Meta:
        model = User
        fields = [
            'first_name', 'last_name', 'phone', 'avatar', 'date_of_birth',
            'street', 'city', 'state'
        ]


class SignupSerializer(serializers.Serializer):
    """Customer or seller registration"""
    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True, validators=[validate_password_strength])
    first_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    last_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    phone = serializers.RegexField(
        r'^[0-9]{10,15}$',
        required=False,
        allow_blank=True,
        error_messages={'invalid': 'Phone number must contain 10 to 15 digits.'}
    )
    role = serializers.ChoiceField(
        choices=[User.ROLE_CUSTOMER, User.ROLE_SELLER],
        default=User.ROLE_CUSTOMER
    )
    store_name = serializers.CharField(
        min_length=3, max_length=100, required=False, allow_blank=True)
    store_description = serializers.CharField(
        max_length=1000, required=False, allow_blank=True)

    def validate_email(self, value):
        value = value.strip().lower()
        if User.objects.filter(email=value).exists():
            raise serializers.ValidationError("User with this email already exists")
        return value

    def validate(self, attrs):
        if attrs.get('role') == User.ROLE_SELLER:
            errors = {}
            if not attrs.get('store_name'):
                errors['store_name'] = "Store name is required for sellers"
            if not attrs.get('phone'):
                errors['phone'] = "Phone number is required for sellers"
            if errors:
                raise serializers.ValidationError(errors)
        return attrs


class OTPVerifySerializer(serializers.Serializer):
    email = serializers.EmailField()
    otp = serializers.RegexField(
        r'^\d{6}$',
        error_messages={'invalid': 'OTP must be 6 digits'}
    )


class CredentialsSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ResetPasswordSerializer(OTPVerifySerializer):
    new_password = serializers.CharField(
        write_only=True, validators=[validate_password_strength])


class PasswordChangeSerializer(serializers.Serializer):
    """Change password for authenticated user"""
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(
        write_only=True, validators=[validate_password_strength])
