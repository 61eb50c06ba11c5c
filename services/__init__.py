"""
Services layer for OrbitCloud.

This module contains the business logic services:
- OrderStore / InMemoryOrderStore: Product and order storage
- OrderService: Order lifecycle state machine
- PaymentGateway: QRIS payments (Pakasir or demo)
- Provisioner: Server provisioning (Pterodactyl or demo)

Thread Model:
    Flask request threads share one OrderStore. Each order has its own
    lock; gateway and panel calls run outside of it.
"""

from .order_store import OrderStore, InMemoryOrderStore
from .order_service import OrderService, WebhookOutcome, SimulationResult
from .payment_gateway import (
    PaymentGateway,
    QrisPaymentGateway,
    DemoPaymentGateway,
    create_payment_gateway,
)
from .provisioning import (
    Provisioner,
    PanelProvisioner,
    DemoProvisioner,
    create_provisioner,
)

__all__ = [
    "OrderStore",
    "InMemoryOrderStore",
    "OrderService",
    "WebhookOutcome",
    "SimulationResult",
    "PaymentGateway",
    "QrisPaymentGateway",
    "DemoPaymentGateway",
    "create_payment_gateway",
    "Provisioner",
    "PanelProvisioner",
    "DemoProvisioner",
    "create_provisioner",
]
