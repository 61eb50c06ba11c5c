"""
Core module for OrbitCloud.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
- payment_client: HTTP client for the Pakasir QRIS API
- panel_client: HTTP client for the Pterodactyl application API
"""

from .exceptions import (
    OrbitCloudError,
    ValidationError,
    InvalidWebhookError,
    NotFoundError,
    ProductNotFoundError,
    OrderNotFoundError,
    ConflictError,
    OrderConflictError,
    InvalidTransitionError,
    AdapterUnavailableError,
    AdapterFailureError,
    PaymentGatewayError,
    ProvisioningError,
    NoCapacityError,
)
from .payment_client import PakasirClient
from .panel_client import PanelClient

__all__ = [
    "OrbitCloudError",
    "ValidationError",
    "InvalidWebhookError",
    "NotFoundError",
    "ProductNotFoundError",
    "OrderNotFoundError",
    "ConflictError",
    "OrderConflictError",
    "InvalidTransitionError",
    "AdapterUnavailableError",
    "AdapterFailureError",
    "PaymentGatewayError",
    "ProvisioningError",
    "NoCapacityError",
    "PakasirClient",
    "PanelClient",
]
