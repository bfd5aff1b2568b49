"""
Google OAuth 2.0 integration service.
Implements the authorization code flow used by "Sign in with Google".
"""
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests
from django.conf import settings
from django.core import signing

from apps.core.services.base import BaseService, ExternalServiceError


class GoogleOAuthService(BaseService):
    """
    Thin client for Google's OAuth endpoints.

    The role a visitor asked for travels through Google inside a signed
    `state` value so it cannot be tampered with on the way back.
    """

    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
    SCOPES = ['openid', 'email', 'profile']

    STATE_SALT = 'guraneza.google-oauth'
    STATE_MAX_AGE = 600  # seconds
    ALLOWED_ROLES = ('customer', 'seller')

    def __init__(self):
        super().__init__()
        self.client_id = settings.GOOGLE_CLIENT_ID
        self.client_secret = settings.GOOGLE_CLIENT_SECRET
        self.redirect_uri = settings.GOOGLE_CALLBACK_URL
        self.session = requests.Session()
        self.session.headers.update({'Accept': 'application/json'})

    # ==================== State ====================

    def build_state(self, role: Optional[str]) -> str:
        if role not in self.ALLOWED_ROLES:
            role = 'customer'
        return signing.dumps({'role': role}, salt=self.STATE_SALT)

    def read_state(self, state: Optional[str]) -> str:
        """Return the requested role, falling back to customer."""
        if not state:
            return 'customer'
        try:
            payload = signing.loads(
                state, salt=self.STATE_SALT, max_age=self.STATE_MAX_AGE)
        except signing.BadSignature:
            self.log_warning("Rejected tampered or expired OAuth state")
            return 'customer'
        role = payload.get('role')
        return role if role in self.ALLOWED_ROLES else 'customer'

    # ==================== Flow ====================

    def get_authorization_url(self, role: Optional[str] = None) -> str:
        params = {
            'client_id': self.client_id,
            'redirect_uri': self.redirect_uri,
            'response_type': 'code',
            'scope': ' '.join(self.SCOPES),
            'state': self.build_state(role),
            'prompt': 'select_account',
        }
        return f"{self.AUTHORIZE_URL}?{urlencode(params)}"

    def exchange_code(self, code: str) -> Dict[str, Any]:
        """
        Swap an authorization code for tokens.

        Raises:
            ExternalServiceError: When Google refuses the code
        """
        data = self._make_request('POST', self.TOKEN_URL, data={
            'code': code,
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'redirect_uri': self.redirect_uri,
            'grant_type': 'authorization_code',
        })
        if not data or 'access_token' not in data:
            raise ExternalServiceError(
                "Google did not return an access token",
                code="INVALID_TOKEN_RESPONSE"
            )
        return data

    def get_user_info(self, access_token: str) -> Dict[str, Any]:
        data = self._make_request(
            'GET',
            self.USERINFO_URL,
            headers={'Authorization': f"Bearer {access_token}"}
        )
        if not data:
            raise ExternalServiceError(
                "Google returned an empty profile",
                code="INVALID_PROFILE"
            )
        return data

    def fetch_profile(self, code: str) -> Dict[str, Any]:
        tokens = self.exchange_code(code)
        return self.get_user_info(tokens['access_token'])

    def _make_request(
        self,
        method: str,
        url: str,
        data: Optional[Dict] = None,
        headers: Optional[Dict] = None,
        timeout: int = 10
    ) -> Optional[Dict]:
        try:
            response = self.session.request(
                method=method,
                url=url,
                data=data,
                headers=headers,
                timeout=timeout
            )
            response.raise_for_status()
            return response.json()

        except requests.exceptions.HTTPError as e:
            self.log_error(
                f"Google OAuth HTTP error for {url}: {e.response.status_code}")
            raise ExternalServiceError(
                f"Google OAuth error: {str(e)}",
                code=f"HTTP_{e.response.status_code}"
            )
        except requests.exceptions.Timeout:
            self.log_error(f"Google OAuth timeout for {url}")
            raise ExternalServiceError("Google OAuth timeout", code="TIMEOUT")
        except requests.exceptions.RequestException as e:
            self.log_error("Google OAuth request failed", exception=e)
            raise ExternalServiceError(
                f"Google OAuth error: {str(e)}",
                code="API_ERROR"
            )
        except ValueError as e:
            self.log_error("Invalid JSON response from Google", exception=e)
            return None
