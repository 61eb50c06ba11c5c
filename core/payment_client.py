"""
HTTP client for the Pakasir QRIS payment API.

This is the transport layer only: it builds the request, checks the
response and normalizes the fields Pakasir returns in slightly different
places. Choosing between real and demo payments happens in
services.payment_gateway.

Usage:
    client = PakasirClient(api_key, project_slug, timeout_seconds=15)
    data = client.create_qris(order_id, amount=20000)
    data["qr_string"], data["payment_number"]
"""

from __future__ import annotations

import logging
from typing import Dict, Any, Optional

import requests

from .exceptions import AdapterUnavailableError, PaymentGatewayError


DEFAULT_API_URL = "https://app.pakasir.com/api/transactioncreate/qris"


class PakasirClient:
    """
    Thin wrapper around the Pakasir "create QRIS transaction" endpoint.

    A single attempt is made per call; failures raise PaymentGatewayError
    and are never retried here.
    """

    def __init__(
        self,
        api_key: str,
        project_slug: str,
        api_url: str = DEFAULT_API_URL,
        timeout_seconds: Optional[float] = 15.0,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        if not api_key or not project_slug:
            raise AdapterUnavailableError("pakasir")

        self._api_key = api_key
        self._project_slug = project_slug
        self._api_url = api_url
        self._timeout = timeout_seconds
        self._session = session or requests.Session()
        self._logger = logger or logging.getLogger("core.payment_client")

    def create_qris(self, order_id: str, amount: int) -> Dict[str, Any]:
        """
        Create a QRIS transaction for an order.

        Args:
            order_id: Our order id (echoed back in webhooks)
            amount: Amount in IDR

        Returns:
            Dict with ``payment_number`` and ``qr_string``

        Raises:
            PaymentGatewayError: On transport errors, non-2xx responses, or
                a response body that reports failure
        """
        body = {
            "project_slug": self._project_slug,
            "order_id": order_id,
            "amount": amount,
            "customer_name": "Customer",
            "customer_email": "customer@example.com",
            "customer_phone": "08000000000",
            "description": f"Payment for Order #{order_id}",
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        try:
            response = self._session.post(
                self._api_url,
                json=body,
                headers=headers,
                timeout=self._timeout
            )
        except requests.exceptions.RequestException as e:
            raise PaymentGatewayError(f"Pakasir request failed: {e}") from e

        if not response.ok:
            self._logger.error(f"Pakasir API error: {response.status_code} {response.text}")
            raise PaymentGatewayError(
                f"Pakasir API returned {response.status_code}: {response.text}",
                status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise PaymentGatewayError("Pakasir returned a non-JSON response") from e

        if not isinstance(data, dict):
            raise PaymentGatewayError("Pakasir returned an unexpected response shape")

        if not data.get("success") and not data.get("payment_number"):
            raise PaymentGatewayError(data.get("message") or "Failed to create QRIS payment")

        nested = data.get("data") if isinstance(data.get("data"), dict) else {}

        return {
            "payment_number": (
                data.get("payment_number") or nested.get("payment_number") or order_id
            ),
            "qr_string": (
                data.get("qr_string") or nested.get("qr_string") or data.get("qr_code") or ""
            ),
        }

    def close(self) -> None:
        self._session.close()
