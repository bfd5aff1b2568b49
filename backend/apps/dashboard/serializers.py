# apps/dashboard/serializers.py

from rest_framework import serializers

from apps.core.models import User


class AdminUserSerializer(serializers.ModelSerializer):
    """Account row in the admin user list"""

    class Meta:
        model = User
        fields = [
            'id', 'email', 'first_name', 'last_name', 'role', 'status',
            'is_verified', 'phone', 'date_joined'
        ]
        read_only_fields = fields


class UserStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=User.STATUS_CHOICES)


class UserRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES)
