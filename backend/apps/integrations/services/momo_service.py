"""
MTN Mobile Money (MoMo) Collections API integration service.
Handles access tokens, request-to-pay and transaction status lookups.
"""
import uuid
from decimal import Decimal
from typing import Any, Dict, Optional

import requests
from django.conf import settings

from apps.core.services.base import BaseService, ExternalServiceError


class MoMoService(BaseService):
    """
    Client for the MoMo Collections product.

    API Documentation: https://momodeveloper.mtn.com/api-documentation
    """

    SANDBOX_URL = "https://sandbox.momodeveloper.mtn.com"
    PRODUCTION_URL = "https://proxy.momoapi.mtn.com"

    # Transaction states reported by MoMo
    STATUS_PENDING = 'PENDING'
    STATUS_SUCCESSFUL = 'SUCCESSFUL'
    STATUS_FAILED = 'FAILED'

    CACHE_PREFIX = "momo"
    TOKEN_EXPIRY_MARGIN = 60  # seconds

    def __init__(self):
        super().__init__()
        self.subscription_key = settings.MOMO_SUBSCRIPTION_KEY
        self.api_user = settings.MOMO_API_USER
        self.api_key = settings.MOMO_API_KEY
        self.environment = settings.MOMO_ENVIRONMENT or 'sandbox'
        self.base_url = (
            self.PRODUCTION_URL if self.is_production else self.SANDBOX_URL
        )
        self.session = requests.Session()
        self.session.headers.update({
            'Ocp-Apim-Subscription-Key': self.subscription_key or '',
            'Accept': 'application/json',
        })

    @property
    def is_production(self) -> bool:
        return self.environment == 'production'

    @property
    def currency(self) -> str:
        """Sandbox only accepts EUR."""
        return 'RWF' if self.is_production else 'EUR'

    # ==================== Token ====================

    def get_access_token(self) -> str:
        """
        Return a cached access token, requesting a new one when needed.

        Raises:
            ExternalServiceError: When MoMo refuses the API credentials
        """
        cache_key = self.build_cache_key(
            self.CACHE_PREFIX, 'token', self.environment)
        token = self.get_from_cache(cache_key)
        if token:
            return token

        response = self._make_request(
            'POST',
            '/collection/token/',
            auth=(self.api_user or '', self.api_key or '')
        )
        data = self._json(response)

        if not data or 'access_token' not in data:
            raise ExternalServiceError(
                "MoMo did not return an access token",
                code="TOKEN_FAILED"
            )

        expires_in = int(data.get('expires_in', 3600))
        self.set_cache(
            cache_key,
            data['access_token'],
            timeout=max(expires_in - self.TOKEN_EXPIRY_MARGIN, 1)
        )
        return data['access_token']

    # ==================== Collections ====================

    def request_to_pay(
        self,
        amount: Decimal,
        phone_number: str,
        external_id: str,
        payee_note: str = ''
    ) -> Dict[str, Any]:
        """
        Ask a subscriber to approve a payment on their phone.

        Args:
            amount: Amount to collect
            phone_number: Payer MSISDN
            external_id: Our reference (order id)
            payee_note: Note shown on the merchant statement

        Returns:
            Dict with the generated reference_id
        """
        token = self.get_access_token()
        reference_id = str(uuid.uuid4())

        payload = {
            'amount': str(amount),
            'currency': self.currency,
            'externalId': str(external_id),
            'payer': {
                'partyIdType': 'MSISDN',
                'partyId': phone_number,
            },
            'payerMessage': f"Payment for Order {external_id}",
            'payeeNote': payee_note or f"Order {external_id} payment",
        }

        self._make_request(
            'POST',
            '/collection/v1_0/requesttopay',
            json=payload,
            headers={
                'Authorization': f"Bearer {token}",
                'X-Reference-Id': reference_id,
                'X-Target-Environment': self.environment,
                'Content-Type': 'application/json',
            }
        )

        self.log_info(
            "MoMo request to pay accepted",
            reference_id=reference_id,
            external_id=external_id
        )

        return {
            'reference_id': reference_id,
            'currency': self.currency,
        }

    def get_transaction_status(self, reference_id: str) -> Dict[str, Any]:
        """
        Look up a request-to-pay.

        Returns:
            MoMo payload with at least a 'status' of PENDING, SUCCESSFUL
            or FAILED
        """
        token = self.get_access_token()

        response = self._make_request(
            'GET',
            f"/collection/v1_0/requesttopay/{reference_id}",
            headers={
                'Authorization': f"Bearer {token}",
                'X-Target-Environment': self.environment,
            }
        )
        data = self._json(response)

        if not data or 'status' not in data:
            raise ExternalServiceError(
                "MoMo returned no transaction status",
                code="INVALID_STATUS_RESPONSE"
            )
        return data

    # ==================== HTTP ====================

    def _json(self, response: requests.Response) -> Optional[Dict]:
        try:
            return response.json()
        except ValueError as e:
            self.log_error("Invalid JSON response from MoMo API", exception=e)
            return None

    def _make_request(
        self,
        method: str,
        endpoint: str,
        timeout: int = 15,
        **kwargs
    ) -> requests.Response:
        try:
            response = self.session.request(
                method=method,
                url=f"{self.base_url}{endpoint}",
                timeout=timeout,
                **kwargs
            )
            response.raise_for_status()
            return response

        except requests.exceptions.HTTPError as e:
            self.log_error(
                f"MoMo API HTTP error for {endpoint}: {e.response.status_code}",
                body=e.response.text[:500]
            )
            raise ExternalServiceError(
                f"MoMo API error: {str(e)}",
                code=f"HTTP_{e.response.status_code}"
            )
        except requests.exceptions.Timeout:
            self.log_error(f"MoMo API timeout for {endpoint}")
            raise ExternalServiceError("MoMo API timeout", code="TIMEOUT")
        except requests.exceptions.RequestException as e:
            self.log_error("MoMo API request failed", exception=e)
            raise ExternalServiceError(
                f"MoMo API error: {str(e)}",
                code="API_ERROR"
            )
