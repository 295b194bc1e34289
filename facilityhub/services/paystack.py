"""
Thin binding over the Paystack REST API, covering only the calls this service makes.

Every response is unwrapped to its `data` member. A `status: false` body or a
failed HTTP call raises PaymentGatewayError. Connection errors and timeouts
are retried with exponential backoff.
"""
import logging
from typing import Any, Dict, Optional

import requests
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from facilityhub.core.config import settings
from facilityhub.core.exceptions import PaymentGatewayError

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (requests.exceptions.ConnectionError, requests.exceptions.Timeout)


class PaystackClient:
    def __init__(self, secret_key: Optional[str] = None, base_url: Optional[str] = None, timeout: Optional[int] = None):
        self.secret_key = secret_key or settings.payments.paystack_secret_key
        self.base_url = (base_url or settings.payments.paystack_base_url).rstrip("/")
        self.timeout = timeout or settings.payments.timeout_seconds

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        reraise=True
    )
    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }
        return requests.request(method, f"{self.base_url}{path}", headers=headers, timeout=self.timeout, **kwargs)

    def _request(self, method: str, path: str, **kwargs) -> Any:
        if not self.secret_key:
            raise PaymentGatewayError("Payment gateway is not configured")
        try:
            response = self._send(method, path, **kwargs)
            body = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Paystack {method} {path} failed: {e}")
            raise PaymentGatewayError("Payment gateway unreachable") from e
        except ValueError as e:
            logger.error(f"Paystack {method} {path} returned a non-JSON body (HTTP {response.status_code})")
            raise PaymentGatewayError("Invalid response from payment gateway") from e

        if not response.ok or not body.get("status"):
            message = body.get("message") or f"Payment gateway error (HTTP {response.status_code})"
            logger.warning(f"Paystack {method} {path} rejected: {message}")
            raise PaymentGatewayError(message, details={"http_status": response.status_code})
        return body.get("data")

    # Transactions
    def initialize_transaction(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/transaction/initialize", json=payload)

    def verify_transaction(self, reference: str) -> Dict[str, Any]:
        return self._request("GET", f"/transaction/verify/{reference}")

    # Banks
    def list_banks(self, country: str = "ghana", currency: Optional[str] = None, type: Optional[str] = None):
        params = {"country": country}
        if currency:
            params["currency"] = currency
        if type:
            params["type"] = type
        return self._request("GET", "/bank", params=params)

    def resolve_account(self, account_number: str, bank_code: str) -> Dict[str, Any]:
        return self._request("GET", "/bank/resolve", params={"account_number": account_number, "bank_code": bank_code})

    # Subaccounts
    def create_subaccount(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/subaccount", json=payload)

    def fetch_subaccount(self, code: str) -> Dict[str, Any]:
        return self._request("GET", f"/subaccount/{code}")

    def update_subaccount(self, code: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/subaccount/{code}", json=payload)

    # Transfers
    def create_transfer_recipient(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/transferrecipient", json=payload)

    def initiate_transfer(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/transfer", json=payload)


_client: Optional[PaystackClient] = None


def get_client() -> PaystackClient:
    global _client
    if _client is None:
        _client = PaystackClient()
    return _client
