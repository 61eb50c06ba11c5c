"""
Payment gateway adapter.

Two strategies share one contract:
    - QrisPaymentGateway: real Pakasir QRIS payments
    - DemoPaymentGateway: well-formed demo QR strings, no network

create_payment_gateway() picks one at startup from the configuration.
Nothing else in the code checks whether payments are configured.

Webhook normalization lives here as well. parse_webhook() is the only place
that knows the provider's field spellings; the order service only ever sees
a WebhookEvent.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from core.payment_client import DEFAULT_API_URL, PakasirClient
from logging_config import get_logger


logger = get_logger(__name__)

SETTLED_STATUSES = frozenset({"completed", "paid", "success", "settlement", "capture"})

ORDER_ID_FIELDS = ("order_id", "orderId", "external_id")
STATUS_FIELDS = ("status", "payment_status")
AMOUNT_FIELDS = ("amount", "paid_amount")


@dataclass(frozen=True)
class PaymentRequest:
    """
    What the customer needs to pay: the QR payload and a reference.

    expires_at is always the order's own deadline, passed in by the caller.
    """

    qr_payload: str
    payment_ref: str
    expires_at: datetime


@dataclass(frozen=True)
class WebhookEvent:
    """Provider webhook reduced to the fields the order service uses."""

    order_id: str
    status: str
    amount: int


# =============================================================================
# WEBHOOK NORMALIZATION
# =============================================================================

def _first_present(payload: Mapping[str, Any], fields) -> Any:
    for name in fields:
        value = payload.get(name)
        if value:
            return value
    return None


def _to_amount(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def parse_webhook(payload: Any) -> Optional[WebhookEvent]:
    """
    Normalize a provider webhook body.

    Returns None when the payload is not an object or lacks an order id or
    status. That is an expected outcome for junk deliveries, not an error.
    """
    if not isinstance(payload, Mapping):
        return None

    order_id = _first_present(payload, ORDER_ID_FIELDS)
    status = _first_present(payload, STATUS_FIELDS)
    if not order_id or not status:
        return None

    return WebhookEvent(
        order_id=str(order_id),
        status=str(status).lower(),
        amount=_to_amount(_first_present(payload, AMOUNT_FIELDS)),
    )


def is_payment_settled(status: str) -> bool:
    """True when the provider status means the money has arrived."""
    return status.lower() in SETTLED_STATUSES


def build_fallback_payment(order_id: str, expires_at: datetime) -> PaymentRequest:
    """
    Deterministic payment payload for when the gateway call fails.

    Keeps the checkout page scannable; the same order id always yields the
    same payload.
    """
    qr_payload = (
        "00020101021226660014ID.CO.QRIS.WWW0115ID20200000000020211"
        f"{order_id[:12]}0303UMI5204541153033605802ID5913OrbitCloud"
        f"6013Jakarta Pusat610510340622{order_id[:8]}63046B9A"
    )
    return PaymentRequest(
        qr_payload=qr_payload,
        payment_ref=f"PAY-{order_id[:8]}",
        expires_at=expires_at,
    )


# =============================================================================
# STRATEGIES
# =============================================================================

class PaymentGateway(ABC):
    """Creates payment requests for orders."""

    is_configured: bool = False

    @abstractmethod
    def create_payment(
        self,
        order_id: str,
        amount: int,
        expires_at: datetime
    ) -> PaymentRequest:
        """
        Create a payment request.

        Raises:
            PaymentGatewayError: If the provider call fails
        """

    def close(self) -> None:
        pass


class QrisPaymentGateway(PaymentGateway):
    """Pakasir-backed QRIS payments."""

    is_configured = True

    def __init__(self, client: PakasirClient):
        self._client = client

    def create_payment(
        self,
        order_id: str,
        amount: int,
        expires_at: datetime
    ) -> PaymentRequest:
        logger.info(f"Creating QRIS payment for order {order_id[:8]} ({amount} IDR)")
        data = self._client.create_qris(order_id, amount)
        return PaymentRequest(
            qr_payload=data["qr_string"],
            payment_ref=data["payment_number"],
            expires_at=expires_at,
        )

    def close(self) -> None:
        self._client.close()


class DemoPaymentGateway(PaymentGateway):
    """Payments without a provider: returns a demo QRIS string."""

    def create_payment(
        self,
        order_id: str,
        amount: int,
        expires_at: datetime
    ) -> PaymentRequest:
        logger.info("Pakasir not configured, using demo QR code")
        qr_payload = (
            "00020101021226660014ID.CO.QRIS.WWW011893600914300000000020211"
            f"{order_id[:12]}0303UMI51470015ID.OR.GPNQR.WWW0215ID2020000000000"
            "0303UMI5204541153033605802ID5913OrbitCloud6013Jakarta Pusat"
            f"61051034062180714{order_id[:8]}63046B9A"
        )
        return PaymentRequest(
            qr_payload=qr_payload,
            payment_ref=f"DEMO-{order_id[:8]}",
            expires_at=expires_at,
        )


def create_payment_gateway(config: Mapping[str, Any]) -> PaymentGateway:
    """
    Select the payment strategy from configuration.

    Both PAKASIR_API_KEY and PAKASIR_PROJECT_SLUG must be set for real
    payments.
    """
    api_key = config.get("PAKASIR_API_KEY")
    project_slug = config.get("PAKASIR_PROJECT_SLUG")

    if not api_key or not project_slug:
        logger.warning("Pakasir credentials missing - payments run in demo mode")
        return DemoPaymentGateway()

    client = PakasirClient(
        api_key=api_key,
        project_slug=project_slug,
        api_url=config.get("PAKASIR_API_URL") or DEFAULT_API_URL,
        timeout_seconds=config.get("HTTP_TIMEOUT_SECONDS"),
        logger=get_logger("core.payment_client"),
    )
    logger.info("Pakasir configured - QRIS payments enabled")
    return QrisPaymentGateway(client)
