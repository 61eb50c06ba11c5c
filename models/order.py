"""
Order data models.

These models represent a hosting order as it moves through its lifecycle:
creation -> payment -> provisioning.

Thread Safety:
    - Order is mutable, but only the order store mutates it, and only while
      holding that order's lock
    - Callers always receive a snapshot (Order.snapshot()); changing a
      snapshot has no effect on the stored order
    - CustomerInfo and ServerCredentials are frozen and safe to share
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Dict, Any, FrozenSet, Optional


class OrderStatus(Enum):
    """
    Status of a hosting order.

    Lifecycle:
        PENDING -> PROCESSING -> COMPLETED
        PENDING -> EXPIRED
        PROCESSING -> FAILED
    """

    PENDING = "pending"
    """Waiting for the customer to pay."""

    PROCESSING = "processing"
    """Payment confirmed, server is being provisioned."""

    COMPLETED = "completed"
    """Server provisioned, credentials attached."""

    FAILED = "failed"
    """Provisioning failed after payment."""

    EXPIRED = "expired"
    """Payment window lapsed before payment was confirmed."""

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    def can_transition_to(self, new_status: "OrderStatus") -> bool:
        """Whether ``self -> new_status`` is an edge of the state machine."""
        return new_status in ALLOWED_TRANSITIONS[self]


ALLOWED_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.EXPIRED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.COMPLETED, OrderStatus.FAILED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.FAILED: frozenset(),
    OrderStatus.EXPIRED: frozenset(),
}

TERMINAL_STATUSES = frozenset({
    OrderStatus.COMPLETED,
    OrderStatus.FAILED,
    OrderStatus.EXPIRED,
})


@dataclass(frozen=True)
class CustomerInfo:
    """Customer identity captured at checkout."""

    email: str
    username: str
    """Preferred hosting panel username."""

    server_name: str
    """Label for the server to create."""


@dataclass(frozen=True)
class ServerCredentials:
    """Connection details handed to the customer once the server exists."""

    panel_url: str
    username: str
    password: str
    server_id: int
    server_ip: str
    server_port: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "panelUrl": self.panel_url,
            "username": self.username,
            "password": self.password,
            "serverId": self.server_id,
            "serverIp": self.server_ip,
            "serverPort": self.server_port,
        }


@dataclass
class Order:
    """
    A hosting order.

    ``amount`` is the product price at creation time and is never
    recomputed. ``server_credentials`` is set exactly when the status is
    COMPLETED.
    """

    id: str
    product_id: str
    customer: CustomerInfo
    amount: int
    created_at: datetime
    updated_at: datetime
    expires_at: datetime
    status: OrderStatus = OrderStatus.PENDING

    qr_code: Optional[str] = None
    """QRIS payload to render for the customer."""

    payment_number: Optional[str] = None
    """Payment reference issued by the gateway."""

    server_credentials: Optional[ServerCredentials] = None

    def is_payment_window_open(self, now: datetime) -> bool:
        """Whether the customer can still pay at ``now``."""
        return now <= self.expires_at

    def snapshot(self) -> "Order":
        """Detached copy for handing out of the store."""
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON shape served by the orders API."""
        return {
            "id": self.id,
            "productId": self.product_id,
            "customerEmail": self.customer.email,
            "customerUsername": self.customer.username,
            "serverName": self.customer.server_name,
            "status": self.status.value,
            "amount": self.amount,
            "qrCode": self.qr_code,
            "paymentNumber": self.payment_number,
            "serverCredentials": (
                self.server_credentials.to_dict() if self.server_credentials else None
            ),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "expiresAt": self.expires_at.isoformat(),
        }
