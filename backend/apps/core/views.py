"""
ViewSet implementations for core operations.
Handles signup, OTP login, password flows, Google sign-in, profile and
saved addresses.
"""
from urllib.parse import urlencode

from django.conf import settings
from django.http import HttpResponseRedirect
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny

from drf_spectacular.utils import (
    extend_schema,
    extend_schema_view,
    OpenApiParameter,
    OpenApiExample
)
from drf_spectacular.types import OpenApiTypes as Types

from apps.integrations.services.google_oauth_service import GoogleOAuthService
from .api import error_response
from .models import Address
from .permissions import IsOwnerOrAdmin
from .services.auth_service import AuthService
from .services.base import ExternalServiceError
from .serializers import (
    UserPrivateSerializer,
    UserSummarySerializer,
    ProfileUpdateSerializer,
    AddressSerializer,
    SignupSerializer,
    OTPVerifySerializer,
    CredentialsSerializer,
    ForgotPasswordSerializer,
    ResetPasswordSerializer,
    PasswordChangeSerializer,
)

TOKEN_RESPONSE = {
    'type': 'object',
    'properties': {
        'message': {'type': 'string'},
        'token': {'type': 'string'},
        'refresh': {'type': 'string'},
        'user': {'type': 'object'}
    }
}


def token_payload(data, message):
    return {
        'message': message,
        'token': data['token'],
        'refresh': data['refresh'],
        'user': UserSummarySerializer(data['user']).data
    }


class AuthViewSet(viewsets.ViewSet):
    """
    Authentication endpoints.
    Login is two-step: the password is checked, then an e-mailed OTP is
    exchanged for tokens.
    """
    permission_classes = [AllowAny]

    def get_permissions(self):
        if self.action in ['me', 'profile', 'change_password']:
            return [IsAuthenticated()]
        return [AllowAny()]

    @extend_schema(
        summary="Register a new account",
        description="""
        Create a customer or seller account and e-mail a 6 digit signup OTP.

        Sellers must also send `store_name` and `phone`; their store starts
        in `pending` until an admin activates it.

        **Password rule:** 8+ characters with an upper-case letter, a
        lower-case letter, a digit and one of `@$!%*?&`.

        **Permissions:** Public
        """,
        request=SignupSerializer,
        responses={201: {'type': 'object'}},
        examples=[
            OpenApiExample(
                'Customer signup',
                value={
                    'email': 'aline@example.com',
                    'password': 'Secure@123',
                    'first_name': 'Aline',
                    'last_name': 'Uwase',
                    'role': 'customer'
                },
                request_only=True
            )
        ],
        tags=['Authentication']
    )
    @action(detail=False, methods=['post'])
    def signup(self, request):
        serializer = SignupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService().signup(**serializer.validated_data)
        if not result.success:
            return error_response(result)

        user = result.data
        return Response({
            'message': 'Account created. Check your email for the verification code.',
            'email': user.email,
            'role': user.role,
            'requires_verification': True
        }, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Verify signup OTP",
        description="""
        Confirm the e-mail address with the signup OTP and receive tokens.

        **Permissions:** Public
        """,
        request=OTPVerifySerializer,
        responses={200: TOKEN_RESPONSE},
        tags=['Authentication']
    )
    @action(detail=False, methods=['post'], url_path='verify-signup-otp',
            url_name='verify-signup-otp')
    def verify_signup_otp(self, request):
        serializer = OTPVerifySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService().verify_signup(
            serializer.validated_data['email'],
            serializer.validated_data['otp']
        )
        if not result.success:
            return error_response(result)

        return Response(token_payload(result.data, 'Email verified successfully'))

    @extend_schema(
        summary="Login step 1: request an OTP",
        description="""
        Check the email and password, then e-mail a login OTP valid for 10 minutes.

        **Errors:** 401 invalid credentials, 403 blocked account.

        **Permissions:** Public
        """,
        request=CredentialsSerializer,
        responses={200: {'type': 'object'}},
        tags=['Authentication']
    )
    @action(detail=False, methods=['post'], url_path='login/request-otp',
            url_name='login-request-otp')
    def request_login_otp(self, request):
        serializer = CredentialsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService().request_login_otp(
            serializer.validated_data['email'],
            serializer.validated_data['password']
        )
        if not result.success:
            return error_response(result)

        return Response({
            'message': 'OTP sent to your email',
            'email': result.data['email']
        })

    @extend_schema(
        summary="Login step 2: verify the OTP",
        description="""
        Exchange the login OTP for an access token and a refresh token.

        **Permissions:** Public
        """,
        request=OTPVerifySerializer,
        responses={200: TOKEN_RESPONSE},
        tags=['Authentication']
    )
    @action(detail=False, methods=['post'], url_path='login/verify-otp',
            url_name='login-verify-otp')
    def verify_login_otp(self, request):
        serializer = OTPVerifySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService().verify_login_otp(
            serializer.validated_data['email'],
            serializer.validated_data['otp']
        )
        if not result.success:
            return error_response(result)

        return Response(token_payload(result.data, 'Login successful'))

    @extend_schema(
        summary="Password login (single step)",
        description="""
        Legacy login without OTP. Unverified accounts get 403 with
        `not_verified: true`.

        **Permissions:** Public
        """,
        request=CredentialsSerializer,
        responses={200: TOKEN_RESPONSE},
        tags=['Authentication']
    )
    @action(detail=False, methods=['post'])
    def login(self, request):
        serializer = CredentialsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService().password_login(
            serializer.validated_data['email'],
            serializer.validated_data['password']
        )
        if not result.success:
            return error_response(result)

        return Response(token_payload(result.data, 'Login successful'))

    @extend_schema(
        summary="Request a password reset OTP",
        description="""
        Always answers with the same message, whether or not the account exists.

        **Permissions:** Public
        """,
        request=ForgotPasswordSerializer,
        responses={200: {'type': 'object'}},
        tags=['Authentication']
    )
    @action(detail=False, methods=['post'], url_path='forgot-password',
            url_name='forgot-password')
    def forgot_password(self, request):
        serializer = ForgotPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService().forgot_password(serializer.validated_data['email'])
        return Response(result.data)

    @extend_schema(
        summary="Reset password with OTP",
        request=ResetPasswordSerializer,
        responses={200: {'type': 'object'}},
        tags=['Authentication']
    )
    @action(detail=False, methods=['post'], url_path='reset-password',
            url_name='reset-password')
    def reset_password(self, request):
        serializer = ResetPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService().reset_password(
            serializer.validated_data['email'],
            serializer.validated_data['otp'],
            serializer.validated_data['new_password']
        )
        if not result.success:
            return error_response(result)

        return Response(result.data)

    @extend_schema(
        summary="Get current user",
        description="""
        The authenticated user's profile. Sellers also get `seller_profile`.

        **Permissions:** Authenticated users only
        """,
        responses={200: UserPrivateSerializer},
        tags=['Authentication']
    )
    @action(detail=False, methods=['get'])
    def me(self, request):
        return Response({'user': UserPrivateSerializer(request.user).data})

    @extend_schema(
        summary="Update current user's profile",
        description="""
        Update names, phone, avatar, date of birth and address.
        The country is always Rwanda.

        **Permissions:** Authenticated users only
        """,
        request=ProfileUpdateSerializer,
        responses={200: UserPrivateSerializer},
        tags=['Authentication']
    )
    @action(detail=False, methods=['put', 'patch'])
    def profile(self, request):
        serializer = ProfileUpdateSerializer(
            request.user,
            data=request.data,
            partial=True
        )
        serializer.is_valid(raise_exception=True)
        serializer.save()

        return Response({
            'message': 'Profile updated successfully',
            'user': UserPrivateSerializer(request.user).data
        })

    @extend_schema(
        summary="Change password",
        description="""
        Change password with current password verification.
        Accounts created through Google have no password to change.

        **Permissions:** Authenticated users only
        """,
        request=PasswordChangeSerializer,
        responses={200: {'type': 'object'}},
        tags=['Authentication']
    )
    @action(detail=False, methods=['put'], url_path='change-password',
            url_name='change-password')
    def change_password(self, request):
        serializer = PasswordChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService().change_password(
            request.user,
            serializer.validated_data['current_password'],
            serializer.validated_data['new_password']
        )
        if not result.success:
            return error_response(result)

        return Response(result.data)

    @extend_schema(
        summary="Start Google sign-in",
        description="""
        Redirects to the Google consent screen. Pass `role=seller` to open a
        store after signing in.

        **Permissions:** Public
        """,
        parameters=[
            OpenApiParameter('role', Types.STR, description='customer or seller')
        ],
        responses={302: None},
        tags=['Authentication']
    )
    @action(detail=False, methods=['get'])
    def google(self, request):
        url = GoogleOAuthService().get_authorization_url(
            request.query_params.get('role'))
        return HttpResponseRedirect(url)

    @extend_schema(
        summary="Google sign-in callback",
        description="""
        Google redirects here. The user is signed in and sent back to the
        frontend with a token, or to the login page with an error.
        """,
        parameters=[
            OpenApiParameter('code', Types.STR),
            OpenApiParameter('state', Types.STR)
        ],
        responses={302: None},
        tags=['Authentication']
    )
    @action(detail=False, methods=['get'], url_path='google/callback',
            url_name='google-callback')
    def google_callback(self, request):
        failure_url = f"{settings.FRONTEND_URL}/login?error=google_auth_failed"
        code = request.query_params.get('code')
        if not code:
            return HttpResponseRedirect(failure_url)

        google = GoogleOAuthService()
        try:
            profile = google.fetch_profile(code)
        except ExternalServiceError:
            return HttpResponseRedirect(failure_url)

        result = AuthService().google_login(
            profile,
            requested_role=google.read_state(request.query_params.get('state'))
        )
        if not result.success:
            return HttpResponseRedirect(failure_url)

        params = urlencode({
            'token': result.data['token'],
            'role': result.data['user'].role,
            'redirect': result.data['redirect'],
        })
        return HttpResponseRedirect(
            f"{settings.FRONTEND_URL}/auth/google/success?{params}")


@extend_schema_view(
    list=extend_schema(
        summary="List user's addresses",
        description="Default address first, then newest.",
        tags=['Addresses']
    ),
    retrieve=extend_schema(summary="Get address details", tags=['Addresses']),
    create=extend_schema(
        summary="Create a new address",
        description="""
        Add a delivery address. Setting `is_default` unsets the previous default.

        **Example Request:**
```json
        {
            "full_name": "Aline Uwase",
            "phone": "0788123456",
            "street": "KG 11 Ave",
            "city": "Kigali",
            "label": "Home",
            "is_default": true
        }
```
        """,
        tags=['Addresses']
    ),
    update=extend_schema(summary="Update address", tags=['Addresses']),
    partial_update=extend_schema(summary="Partially update address", tags=['Addresses']),
    destroy=extend_schema(summary="Delete address", tags=['Addresses']),
)
class AddressViewSet(viewsets.ModelViewSet):
    """
    ViewSet for user addresses.
    Handles delivery address management.
    """
    queryset = Address.objects.all()
    serializer_class = AddressSerializer
    permission_classes = [IsAuthenticated, IsOwnerOrAdmin]

    def get_queryset(self):
        """Users only ever see their own addresses."""
        return Address.objects.filter(user=self.request.user)

    def perform_create(self, serializer):
        serializer.save(user=self.request.user)

    @extend_schema(
        summary="Make address the default",
        request=None,
        responses={200: AddressSerializer},
        tags=['Addresses']
    )
    @action(detail=True, methods=['patch'], url_path='default', url_name='set-default')
    def set_default(self, request, pk=None):
        address = self.get_object()
        address.is_default = True
        address.save()
        return Response({
            'message': 'Default address updated',
            'address': AddressSerializer(address).data
        })
