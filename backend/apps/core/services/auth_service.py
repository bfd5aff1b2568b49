"""
Authentication service.
Handles signup, OTP issue and verification, password flows and Google
sign-in account linking.
"""
import secrets
from datetime import timedelta
from typing import Any, Dict, Optional

from django.conf import settings
from django.contrib.auth.hashers import check_password, make_password
from django.db import transaction
from django.utils import timezone
from rest_framework_simplejwt.tokens import RefreshToken

from apps.core.models import User
from apps.core.services.base import BaseService, ServiceResult


class AuthService(BaseService):
    """
    Service for account authentication.
    OTP codes are stored hashed on the user row and cleared after use.
    """

    OTP_LENGTH = 6
    GOOGLE_SELLER_STORE_NAME = 'My Store'

    # ==================== OTP helpers ====================

    def generate_otp(self, user: User) -> str:
        """
        Create a fresh OTP for a user, replacing any previous one.

        Returns:
            The plain 6 digit code (only ever sent by e-mail)
        """
        code = f"{secrets.randbelow(10 ** self.OTP_LENGTH):0{self.OTP_LENGTH}d}"
        user.otp_code = make_password(code)
        user.otp_expires_at = timezone.now() + timedelta(
            minutes=settings.OTP_EXPIRY_MINUTES
        )
        user.save(update_fields=['otp_code', 'otp_expires_at'])
        return code

    def verify_otp(self, user: User, code: str) -> bool:
        """A missing, expired or wrong code never verifies."""
        if not code or not user.has_otp:
            return False
        return check_password(str(code), user.otp_code)

    def clear_otp(self, user: User) -> None:
        user.otp_code = ''
        user.otp_expires_at = None
        user.save(update_fields=['otp_code', 'otp_expires_at'])

    def _send_otp(self, user: User, purpose: str) -> None:
        from apps.notifications.tasks import send_otp_email

        code = self.generate_otp(user)
        send_otp_email.delay(user.email, code, purpose)
        self.log_info(f"Issued {purpose} OTP", user_id=user.id)

    # ==================== Tokens ====================

    def issue_tokens(self, user: User) -> Dict[str, str]:
        refresh = RefreshToken.for_user(user)
        return {
            'token': str(refresh.access_token),
            'refresh': str(refresh),
        }

    def _find_user(self, email: str) -> Optional[User]:
        if not email:
            return None
        return User.objects.filter(email=email.strip().lower()).first()

    # ==================== Signup ====================

    @transaction.atomic
    def signup(
        self,
        email: str,
        password: str,
        role: str = User.ROLE_CUSTOMER,
        first_name: str = '',
        last_name: str = '',
        phone: str = '',
        store_name: Optional[str] = None,
        store_description: str = ''
    ) -> ServiceResult:
        """
        Register a customer or seller account and e-mail a signup OTP.

        Sellers get a pending SellerProfile that an admin must activate
        before they can list products.
        """
        from apps.sellers.models import SellerProfile

        try:
            if role not in (User.ROLE_CUSTOMER, User.ROLE_SELLER):
                return ServiceResult.fail(
                    "Role must be customer or seller",
                    error_code="INVALID_ROLE"
                )

            if role == User.ROLE_SELLER and (not store_name or not phone):
                return ServiceResult.fail(
                    "Store name and phone are required for sellers",
                    error_code="SELLER_DETAILS_REQUIRED"
                )

            if self._find_user(email):
                return ServiceResult.fail(
                    "User with this email already exists",
                    error_code="EMAIL_EXISTS"
                )

            user = User.objects.create_user(
                email=email,
                password=password,
                role=role,
                first_name=first_name,
                last_name=last_name,
                phone=phone,
                is_verified=False
            )

            if role == User.ROLE_SELLER:
                SellerProfile.objects.create(
                    user=user,
                    store_name=store_name,
                    description=store_description,
                    phone=phone,
                    approval_status=SellerProfile.STATUS_PENDING
                )

            self._send_otp(user, 'signup')

            self.log_info(
                "User signed up",
                user_id=user.id,
                role=role
            )

            return ServiceResult.ok(user)

        except Exception as e:
            self.log_error("Error during signup", exception=e, email=email)
            return ServiceResult.fail(
                "Failed to create account",
                error_code="SIGNUP_FAILED"
            )

    def verify_signup(self, email: str, otp: str) -> ServiceResult:
        user = self._find_user(email)
        if not user:
            return ServiceResult.fail(
                "User not found",
                error_code="USER_NOT_FOUND"
            )

        if user.is_verified:
            return ServiceResult.fail(
                "Email is already verified",
                error_code="ALREADY_VERIFIED"
            )

        if not self.verify_otp(user, otp):
            return ServiceResult.fail(
                "Invalid or expired OTP",
                error_code="INVALID_OTP"
            )

        user.is_verified = True
        user.save(update_fields=['is_verified'])
        self.clear_otp(user)

        self.log_info("Email verified", user_id=user.id)
        return ServiceResult.ok({'user': user, **self.issue_tokens(user)})

    # ==================== Login ====================

    def _check_credentials(self, email: str, password: str) -> ServiceResult:
        user = self._find_user(email)

        if not user or not user.has_usable_password() or not user.check_password(password):
            self.log_warning("Failed login attempt", email=email)
            return ServiceResult.fail(
                "Invalid email or password",
                error_code="INVALID_CREDENTIALS"
            )

        if user.is_blocked:
            return ServiceResult.fail(
                "Your account has been blocked. Please contact support.",
                error_code="ACCOUNT_BLOCKED"
            )

        return ServiceResult.ok(user)

    def request_login_otp(self, email: str, password: str) -> ServiceResult:
        """First login step: check the password, then e-mail an OTP."""
        result = self._check_credentials(email, password)
        if not result.success:
            return result

        user = result.data
        self._send_otp(user, 'login')
        return ServiceResult.ok({'email': user.email})

    def verify_login_otp(self, email: str, otp: str) -> ServiceResult:
        """Second login step: exchange a valid OTP for tokens."""
        user = self._find_user(email)

        if not user or not self.verify_otp(user, otp):
            return ServiceResult.fail(
                "Invalid or expired OTP",
                error_code="INVALID_OTP"
            )

        self.clear_otp(user)

        if user.is_blocked:
            return ServiceResult.fail(
                "Your account has been blocked. Please contact support.",
                error_code="ACCOUNT_BLOCKED"
            )

        user.last_login = timezone.now()
        user.save(update_fields=['last_login'])

        self.log_info("User logged in with OTP", user_id=user.id)
        return ServiceResult.ok({'user': user, **self.issue_tokens(user)})

    def password_login(self, email: str, password: str) -> ServiceResult:
        """Single step login kept for older clients."""
        result = self._check_credentials(email, password)
        if not result.success:
            return result

        user = result.data
        if not user.is_verified:
            return ServiceResult.fail(
                "Please verify your email before logging in",
                error_code="NOT_VERIFIED",
                data={'not_verified': True, 'email': user.email}
            )

        user.last_login = timezone.now()
        user.save(update_fields=['last_login'])
        return ServiceResult.ok({'user': user, **self.issue_tokens(user)})

    # ==================== Passwords ====================

    def forgot_password(self, email: str) -> ServiceResult:
        """
        Send a reset OTP when the account exists.
        The result is identical either way so callers cannot probe emails.
        """
        user = self._find_user(email)
        if user and user.has_usable_password() and not user.is_blocked:
            self._send_otp(user, 'password_reset')
        else:
            self.log_info("Password reset requested for unknown account")

        return ServiceResult.ok({
            'message': 'If an account exists for this email, a reset code has been sent'
        })

    def reset_password(self, email: str, otp: str, new_password: str) -> ServiceResult:
        user = self._find_user(email)

        if not user or not self.verify_otp(user, otp):
            return ServiceResult.fail(
                "Invalid or expired OTP",
                error_code="INVALID_OTP"
            )

        user.set_password(new_password)
        user.otp_code = ''
        user.otp_expires_at = None
        user.save(update_fields=['password', 'otp_code', 'otp_expires_at'])

        self.log_info("Password reset", user_id=user.id)
        return ServiceResult.ok({'message': 'Password reset successfully'})

    def change_password(self, user: User, current_password: str,
                        new_password: str) -> ServiceResult:
        if not user.has_usable_password():
            return ServiceResult.fail(
                "This account signs in with Google and has no password",
                error_code="NO_PASSWORD_SET"
            )

        if not user.check_password(current_password):
            return ServiceResult.fail(
                "Current password is incorrect",
                error_code="INCORRECT_PASSWORD"
            )

        user.set_password(new_password)
        user.save(update_fields=['password'])

        self.log_info("Password changed", user_id=user.id)
        return ServiceResult.ok({'message': 'Password changed successfully'})

    # ==================== Google ====================

    @transaction.atomic
    def google_login(self, profile: Dict[str, Any],
                     requested_role: Optional[str] = None) -> ServiceResult:
        """
        Find, link or create the account behind a Google profile.

        Args:
            profile: Google userinfo payload ('sub', 'email', names, picture)
            requested_role: 'seller' upgrades a customer and opens a
                pending store

        Returns:
            ServiceResult with user, tokens and the dashboard redirect path
        """
        from apps.sellers.models import SellerProfile

        google_id = profile.get('sub')
        email = (profile.get('email') or '').strip().lower()

        if not google_id or not email:
            return ServiceResult.fail(
                "Google profile is missing an id or email",
                error_code="INVALID_GOOGLE_PROFILE"
            )

        user = User.objects.filter(google_id=google_id).first()

        if not user:
            user = self._find_user(email)
            if user:
                user.google_id = google_id
                user.is_verified = True
                if not user.avatar and profile.get('picture'):
                    user.avatar = profile['picture']
                user.save(update_fields=['google_id', 'is_verified', 'avatar'])
                self.log_info("Linked Google account", user_id=user.id)
            else:
                user = User.objects.create_user(
                    email=email,
                    password=None,
                    google_id=google_id,
                    first_name=profile.get('given_name', ''),
                    last_name=profile.get('family_name', ''),
                    avatar=profile.get('picture', ''),
                    role=User.ROLE_CUSTOMER,
                    is_verified=True
                )
                self.log_info("Created account from Google", user_id=user.id)

        if user.is_blocked:
            return ServiceResult.fail(
                "Your account has been blocked. Please contact support.",
                error_code="ACCOUNT_BLOCKED"
            )

        if requested_role == User.ROLE_SELLER and user.is_customer:
            user.role = User.ROLE_SELLER
            user.save(update_fields=['role'])
            SellerProfile.objects.get_or_create(
                user=user,
                defaults={
                    'store_name': self.GOOGLE_SELLER_STORE_NAME,
                    'approval_status': SellerProfile.STATUS_PENDING,
                }
            )
            self.log_info("Upgraded Google user to seller", user_id=user.id)

        redirect_path = {
            User.ROLE_ADMIN: '/admin/dashboard',
            User.ROLE_SELLER: '/seller/dashboard',
        }.get(user.role, '/products')

        return ServiceResult.ok({
            'user': user,
            'redirect': redirect_path,
            **self.issue_tokens(user)
        })
