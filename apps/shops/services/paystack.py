"""
Paystack API Integration Service
Handles subscription payment initialization and verification
Documentation: https://paystack.com/docs/api/

Settings used (through ShopConfig):
- PAYSTACK_SECRET_KEY
- PAYSTACK_BASE_URL
- USE_MOCK_PAYSTACK (set to True for local development without the real API)
- HTTP_TIMEOUT_SECONDS
"""

import re
import logging
from decimal import Decimal
from typing import Dict, Optional

import requests
from django.utils import timezone

from ..config import ShopConfig
from ..exceptions import GatewayError, MalformedGatewayResponse

logger = logging.getLogger(__name__)


class PaystackService:
    """
    Service class for interacting with Paystack API.
    Every failure to talk to Paystack raises GatewayError; a declined
    transaction is a normal return value with status != 'success'.
    """

    def __init__(self, config: Optional[ShopConfig] = None):
        self.config = config or ShopConfig.from_settings()
        self.secret_key = self.config.paystack_secret_key
        self.base_url = self.config.paystack_base_url
        self.timeout = self.config.http_timeout
        self.use_mock = self.config.use_mock_paystack

        if not self.use_mock and not self.secret_key:
            logger.warning('Paystack secret key not configured. Payment calls will fail.')

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for API requests"""
        return {
            'Authorization': f'Bearer {self.secret_key}',
            'Content-Type': 'application/json',
        }

    def _make_request(
        self,
        method: str,
        endpoint: str,
        data: Optional[Dict] = None
    ) -> Dict:
        """
        Make HTTP request to Paystack API

        Args:
            method: HTTP method (GET, POST)
            endpoint: API endpoint
            data: Request payload

        Returns:
            Response data as dictionary

        Raises:
            GatewayError: If the request fails, times out or Paystack reports status=false
            MalformedGatewayResponse: If the body is not JSON
        """
        if not self.secret_key:
            raise GatewayError('Paystack secret key is not configured')

        url = f"{self.base_url}{endpoint}"

        try:
            if method.upper() == 'GET':
                response = requests.get(url, headers=self._get_headers(), params=data, timeout=self.timeout)
            else:
                response = requests.post(url, headers=self._get_headers(), json=data, timeout=self.timeout)

            response.raise_for_status()

        except requests.exceptions.Timeout:
            logger.error(f'Paystack API timeout: {endpoint}')
            raise GatewayError('Request timeout. Please try again.', endpoint=endpoint)

        except requests.exceptions.RequestException as e:
            logger.error(f'Paystack API error on {endpoint}: {str(e)}')
            error_msg = str(e)
            if getattr(e, 'response', None) is not None:
                try:
                    error_msg = e.response.json().get('message', error_msg)
                except ValueError:
                    pass
            raise GatewayError(f'API Error: {error_msg}', endpoint=endpoint)

        try:
            result = response.json()
        except ValueError:
            logger.error(f'Paystack returned non-JSON body: {endpoint}')
            raise MalformedGatewayResponse('Paystack returned an unreadable response', endpoint=endpoint)

        # Paystack always returns status field
        if not isinstance(result, dict) or not result.get('status'):
            error_msg = result.get('message', 'Unknown error') if isinstance(result, dict) else 'Unknown error'
            logger.error(f'Paystack rejected {endpoint}: {error_msg}')
            raise GatewayError(error_msg, endpoint=endpoint)

        return result

    def _convert_to_kobo(self, amount: Decimal) -> int:
        """
        Convert Naira to Kobo (Paystack uses kobo)
        1 Naira = 100 Kobo
        """
        return int(Decimal(amount) * 100)

    def _convert_to_naira(self, kobo) -> Decimal:
        """Convert Kobo to Naira"""
        return Decimal(kobo or 0) / 100

    # ==========================================
    # PAYMENT INITIALIZATION & VERIFICATION
    # ==========================================

    def initialize_transaction(
        self,
        email: str,
        amount: Decimal,
        reference: str,
        callback_url: str,
        metadata: Optional[Dict] = None
    ) -> Dict:
        """
        Initialize a payment transaction
        Customer will be redirected to Paystack payment page

        Args:
            email: Customer email
            amount: Amount in Naira
            reference: Unique transaction reference
            callback_url: URL Paystack redirects to after payment
            metadata: Additional data (userId, subscriptionId, planName)

        Returns:
            {
                'authorization_url': 'https://checkout.paystack.com/...',
                'access_code': 'access_code_here',
                'reference': 'sub_12_1704067200000'
            }

        Raises:
            GatewayError: Paystack call failed
            MalformedGatewayResponse: Success without authorization_url/access_code
        """
        if self.use_mock:
            return self._mock_initialize_transaction(email, amount, reference)

        payload = {
            'email': email,
            'amount': self._convert_to_kobo(amount),
            'reference': reference,
            'callback_url': callback_url,
        }
        if metadata:
            payload['metadata'] = metadata

        response = self._make_request('POST', '/transaction/initialize', data=payload)

        data = response.get('data') or {}
        if not data.get('authorization_url') or not data.get('access_code'):
            logger.error(f'Paystack initialize response missing authorization data: {reference}')
            raise MalformedGatewayResponse(reference=reference)

        logger.info(f'Payment initialized: {data.get("reference") or reference}')

        return {
            'authorization_url': data['authorization_url'],
            'access_code': data['access_code'],
            'reference': data.get('reference') or reference,
        }

    def verify_transaction(self, reference: str) -> Dict:
        """
        Fetch the authoritative status of a transaction

        Args:
            reference: Transaction reference

        Returns:
            {
                'status': 'success',  # or 'failed', 'abandoned'
                'amount': Decimal('4800.00'),
                'paid_at': '2024-01-01T00:00:00.000Z',
                'metadata': {...},
                'reference': 'sub_12_1704067200000',
                'raw': {...}
            }

        Raises:
            GatewayError: Paystack call failed (not the same as a declined payment)
        """
        if self.use_mock:
            return self._mock_verify_transaction(reference)

        response = self._make_request('GET', f'/transaction/verify/{reference}')

        data = response.get('data')
        if not isinstance(data, dict) or 'status' not in data:
            raise MalformedGatewayResponse(reference=reference)

        metadata = data.get('metadata')
        if not isinstance(metadata, dict):
            # Paystack sends "" when no metadata was attached
            metadata = {}

        logger.info(f'Payment {reference} verified with status {data.get("status")}')

        return {
            'status': data.get('status'),
            'amount': self._convert_to_naira(data.get('amount', 0)),
            'paid_at': data.get('paid_at') or data.get('paidAt'),
            'metadata': metadata,
            'reference': data.get('reference') or reference,
            'raw': data,
        }

    # ==========================================
    # MOCK METHODS (LOCAL DEVELOPMENT)
    # ==========================================

    def _mock_initialize_transaction(self, email: str, amount: Decimal, reference: str) -> Dict:
        """Mock payment initialization"""
        logger.info(f'[MOCK] Payment initialized: ₦{amount} for {email}')

        return {
            'authorization_url': f'{self.config.app_url}/payment/callback/?reference={reference}',
            'access_code': f'mock_access_{reference}',
            'reference': reference,
            'mock': True,
        }

    def _mock_verify_transaction(self, reference: str) -> Dict:
        """Mock payment verification - always returns success"""
        logger.info(f'[MOCK] Payment verified: {reference}')

        metadata = {}
        match = re.match(r'^sub_(\d+)_\d+$', reference or '')
        if match:
            metadata['subscriptionId'] = int(match.group(1))

        return {
            'status': 'success',
            'amount': self.config.plan_amount,
            'paid_at': timezone.now().isoformat(),
            'metadata': metadata,
            'reference': reference,
            'raw': {'mock': True},
        }
