"""
JWT authentication that refuses blocked accounts.
"""
from rest_framework.exceptions import PermissionDenied
from rest_framework_simplejwt.authentication import JWTAuthentication


class MarketplaceJWTAuthentication(JWTAuthentication):
    """
    simplejwt authentication with a status check.
    A valid token for a blocked user gives 403, not 401, so the client
    can tell a blocked account apart from an expired session.
    """

    def get_user(self, validated_token):
        user = super().get_user(validated_token)
        if user.is_blocked:
            raise PermissionDenied("Your account has been blocked")
        return user
