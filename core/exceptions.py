"""
Custom exceptions for OrbitCloud.

Exception Hierarchy:
    OrbitCloudError (base)
    ├── ValidationError           - Malformed caller input (400)
    │   └── InvalidWebhookError   - Webhook payload cannot be normalized
    ├── NotFoundError             - Unknown product or order id (404)
    │   ├── ProductNotFoundError
    │   └── OrderNotFoundError
    ├── ConflictError             - Order not in the required state (409)
    │   ├── OrderConflictError
    │   └── InvalidTransitionError
    ├── AdapterUnavailableError   - External API not configured (demo mode)
    └── AdapterFailureError       - External API configured but call failed
        ├── PaymentGatewayError
        └── ProvisioningError
            └── NoCapacityError   - No free allocation within the scan bound

Usage:
    Validation, not-found and conflict errors are turned into JSON responses
    by the handlers registered in create_app(). Adapter failures are caught
    by the order service and translated once into an order status.
"""

from typing import Optional, Dict, Any, List


class OrbitCloudError(Exception):
    """
    Base exception for all OrbitCloud errors.

    All custom exceptions inherit from this class, allowing callers to catch
    every application-specific error with a single except clause.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# CALLER ERRORS - Reported back to the client as-is
# =============================================================================

class ValidationError(OrbitCloudError):
    """
    Caller input failed validation.

    ``field_errors`` holds one entry per offending field so the client can
    show feedback next to each input.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[List[Dict[str, str]]] = None
    ):
        self.field_errors = field_errors or []
        super().__init__(message, {"fields": [e["field"] for e in self.field_errors]})


class InvalidWebhookError(ValidationError):
    """Webhook payload is missing the order id or the payment status."""

    def __init__(self, message: str = "Invalid payload"):
        super().__init__(message)


class NotFoundError(OrbitCloudError):
    """An entity referenced by id does not exist."""

    def __init__(self, resource: str, resource_id: str):
        message = f"{resource} not found"
        super().__init__(message, {"resource": resource, "id": resource_id})
        self.resource = resource
        self.resource_id = resource_id


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: str):
        super().__init__("Product", product_id)


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: str):
        super().__init__("Order", order_id)


class ConflictError(OrbitCloudError):
    """Operation attempted against an entity in the wrong state."""


class OrderConflictError(ConflictError):
    """
    Order is not in the state an operation requires.

    For webhooks this is a benign no-op (the delivery was already handled).
    For simulated payments it is an explicit rejection.
    """

    def __init__(self, order_id: str, status: str, expected: str):
        message = f"Order is not {expected}"
        details = {"order_id": order_id, "status": status, "expected": expected}
        super().__init__(message, details)
        self.order_id = order_id
        self.status = status
        self.expected = expected


class InvalidTransitionError(ConflictError):
    """Requested status change is not an edge of the order state machine."""

    def __init__(self, order_id: str, current: str, requested: str):
        message = f"Cannot move order from {current} to {requested}"
        details = {"order_id": order_id, "current": current, "requested": requested}
        super().__init__(message, details)
        self.order_id = order_id
        self.current = current
        self.requested = requested


# =============================================================================
# ADAPTER ERRORS - External payment gateway and hosting panel
# =============================================================================

class AdapterUnavailableError(OrbitCloudError):
    """
    External API is not configured.

    Raised when an HTTP client is built without credentials. The adapter
    factories pick the demo strategy before that can happen, so it never
    reaches customers.
    """

    def __init__(self, adapter: str):
        message = f"{adapter} API not configured"
        super().__init__(message, {"adapter": adapter})
        self.adapter = adapter


class AdapterFailureError(OrbitCloudError):
    """
    External API is configured but a call to it failed.

    Raised once per failed call, never retried automatically.
    """

    def __init__(
        self,
        adapter: str,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        error_details["adapter"] = adapter
        if status_code is not None:
            error_details["status_code"] = status_code
        super().__init__(message, error_details)
        self.adapter = adapter
        self.status_code = status_code


class PaymentGatewayError(AdapterFailureError):
    """Creating a QRIS payment failed (transport or provider-side)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__("pakasir", message, status_code)


class ProvisioningError(AdapterFailureError):
    """A hosting panel call failed while provisioning a server."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__("pterodactyl", message, status_code, details)


class NoCapacityError(ProvisioningError):
    """
    No unassigned allocation was found on the node.

    The scan stops after a bounded number of pages, so this can also mean
    the free allocations sit beyond the scanned range.
    """

    def __init__(self, node_id: int, pages_scanned: int):
        message = "No available port allocation found. Please try again later."
        details = {
            "node_id": node_id,
            "pages_scanned": pages_scanned,
            "resolution": "Add allocations to the node or raise ALLOCATION_MAX_PAGES"
        }
        super().__init__(message, details=details)
        self.node_id = node_id
        self.pages_scanned = pages_scanned
