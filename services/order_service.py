"""
Order lifecycle service.

Drives every order through its state machine:

    PENDING --payment--> PROCESSING --provisioned--> COMPLETED
       |                      |
       +--window lapsed--> EXPIRED    +--provisioning failed--> FAILED

Rules:
    - Expiry is lazy. Status reads, webhooks and simulated payments check
      the payment window before doing anything else.
    - PENDING -> PROCESSING is claimed with an atomic compare-and-set that
      also re-checks the payment window, so exactly one caller provisions
      an order, and never after the window lapsed.
    - PROCESSING is the in-flight guard. A duplicate webhook or simulate
      call sees it and backs off; no store lock is held while the payment
      gateway or the panel is being called.
    - Every transition is a single store call.

Usage:
    service = OrderService(store, payment_gateway, provisioner)

    order = service.create_order(order_input)          # pending, QR attached
    order = service.get_order_status(order.id)         # may become expired
    outcome = service.handle_webhook(request_json)     # may provision
    result = service.simulate_payment(order.id)        # ops/test shortcut
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from core.exceptions import (
    InvalidWebhookError,
    OrderConflictError,
    OrderNotFoundError,
    PaymentGatewayError,
    ProductNotFoundError,
    ProvisioningError,
)
from models.order import CustomerInfo, Order, OrderStatus, ServerCredentials
from models.product import Product
from modules.validation import CreateOrderInput
from services.order_store import OrderStore, utc_now
from services.payment_gateway import (
    PaymentGateway,
    build_fallback_payment,
    is_payment_settled,
    parse_webhook,
)
from services.provisioning import DemoProvisioner, Provisioner
from logging_config import get_logger, get_order_logger


logger = get_logger(__name__)

MOCK_CREDENTIALS_NOTE = "Using mock credentials (API unavailable)"


@dataclass(frozen=True)
class WebhookOutcome:
    """How a webhook delivery was handled."""

    message: str
    order: Order
    provisioned: bool = False


@dataclass(frozen=True)
class SimulationResult:
    order: Order
    note: Optional[str] = None


class OrderService:
    """
    Orchestrates order creation, payment confirmation and provisioning.

    The service holds no order state of its own. It reads and transitions
    orders through the store on every step.
    """

    def __init__(
        self,
        store: OrderStore,
        payment_gateway: PaymentGateway,
        provisioner: Provisioner,
        fallback_provisioner: Optional[Provisioner] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        """
        Initialize the service.

        Args:
            store: Order store (source of truth)
            payment_gateway: Payment strategy chosen at startup
            provisioner: Provisioning strategy chosen at startup
            fallback_provisioner: Used by simulate_payment when provisioning
                fails (defaults to DemoProvisioner)
            clock: Returns the current timezone-aware time
        """
        self._store = store
        self._payment_gateway = payment_gateway
        self._provisioner = provisioner
        self._fallback_provisioner = fallback_provisioner or DemoProvisioner()
        self._clock = clock
        self._closed = False

    # =========================================================================
    # Catalog
    # =========================================================================

    def list_products(self) -> List[Product]:
        return self._store.get_products()

    def get_product(self, product_id: str) -> Product:
        product = self._store.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    # =========================================================================
    # Orders
    # =========================================================================

    def create_order(self, order_input: CreateOrderInput) -> Order:
        """
        Create an order and attach a payment request.

        The price is copied from the product now and never looked up again.
        If the payment gateway fails, a deterministic fallback payload is
        attached instead so the customer still gets a QR code.

        Raises:
            ProductNotFoundError: If the product id is unknown
        """
        product = self.get_product(order_input.product_id)
        customer = CustomerInfo(
            email=order_input.customer_email,
            username=order_input.customer_username,
            server_name=order_input.server_name,
        )

        order = self._store.create_order(product.id, customer, product.price)
        order_logger = get_order_logger(order.id)
        order_logger.info(f"Order created for {product.id} ({order.amount} IDR)")

        try:
            payment = self._payment_gateway.create_payment(
                order.id, order.amount, order.expires_at
            )
        except PaymentGatewayError as e:
            order_logger.error(f"QRIS creation failed, using fallback payload: {e}")
            payment = build_fallback_payment(order.id, order.expires_at)

        return self._store.update_order_payment(order.id, payment.qr_payload, payment.payment_ref)

    def get_order(self, order_id: str) -> Order:
        order = self._store.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def get_order_status(self, order_id: str) -> Order:
        """
        Read an order, expiring it first if its payment window lapsed.

        Raises:
            OrderNotFoundError: If the order id is unknown
        """
        return self._expire_if_due(self.get_order(order_id))

    # =========================================================================
    # Payment confirmation
    # =========================================================================

    def handle_webhook(self, payload: Any) -> WebhookOutcome:
        """
        Process a payment gateway webhook.

        Repeated deliveries are harmless: once the order left PENDING the
        webhook is acknowledged without doing anything.

        Raises:
            InvalidWebhookError: If the payload has no order id or status
            OrderNotFoundError: If the order id is unknown
            AdapterFailureError: If provisioning failed (order is FAILED)
        """
        event = parse_webhook(payload)
        if event is None:
            raise InvalidWebhookError()

        order = self._expire_if_due(self.get_order(event.order_id))
        order_logger = get_order_logger(order.id)

        if order.status is not OrderStatus.PENDING:
            order_logger.info(f"Webhook ignored, order already {order.status.value}")
            return WebhookOutcome("Order already processed", order)

        if not is_payment_settled(event.status):
            order_logger.info(f"Payment not completed: {event.status}")
            return WebhookOutcome("Payment status noted", order)

        try:
            order = self._claim_for_processing(order.id)
        except OrderConflictError as e:
            order_logger.info(f"Webhook lost the claim, order is {e.status}")
            return WebhookOutcome("Order already processed", self.get_order(order.id))

        order_logger.info(f"Payment settled ({event.status}), provisioning server")
        credentials = self._provision_or_fail(order)
        order = self._store.update_order_credentials(order.id, credentials)
        order_logger.info("Server provisioned successfully")

        return WebhookOutcome("Server provisioned", order, provisioned=True)

    def simulate_payment(self, order_id: str) -> SimulationResult:
        """
        Mark an order paid without the gateway (operator and test aid).

        Provisioning failures of any kind fall back to demo credentials, so
        a claimed order always ends COMPLETED. An order whose product
        disappeared ends FAILED.

        Raises:
            OrderNotFoundError: If the order id is unknown
            OrderConflictError: If the order is not PENDING (or just expired)
            ProductNotFoundError: If the order's product no longer exists
        """
        order = self._expire_if_due(self.get_order(order_id))
        if order.status is not OrderStatus.PENDING:
            raise OrderConflictError(order.id, order.status.value, OrderStatus.PENDING.value)

        order = self._claim_for_processing(order.id)
        order_logger = get_order_logger(order.id)
        order_logger.info("Simulated payment, provisioning server")

        product = self._store.get_product(order.product_id)
        if product is None:
            self._store.update_order_status(order.id, OrderStatus.FAILED)
            order_logger.error(f"Product {order.product_id} not found, order failed")
            raise ProductNotFoundError(order.product_id)

        note = None
        try:
            credentials = self._provision(order, product)
        except Exception as e:
            order_logger.warning(f"Simulated provisioning failed, using mock credentials: {e}")
            credentials = self._provision(order, product, self._fallback_provisioner)
            note = MOCK_CREDENTIALS_NOTE

        order = self._store.update_order_credentials(order.id, credentials)
        return SimulationResult(order=order, note=note)

    # =========================================================================
    # Health
    # =========================================================================

    def adapter_status(self) -> Dict[str, bool]:
        """Which external adapters run against real APIs."""
        return {
            "pakasir": self._payment_gateway.is_configured,
            "pterodactyl": self._provisioner.is_configured,
        }

    def close(self) -> None:
        """Release the adapters' HTTP sessions. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._payment_gateway.close()
        self._provisioner.close()

    # =========================================================================
    # Internals
    # =========================================================================

    def _expire_if_due(self, order: Order) -> Order:
        """Move a PENDING order past its window to EXPIRED; return latest state."""
        if order.status is not OrderStatus.PENDING:
            return order
        if order.is_payment_window_open(self._clock()):
            return order

        try:
            expired = self._store.compare_and_set_status(
                order.id, OrderStatus.PENDING, OrderStatus.EXPIRED
            )
        except OrderConflictError:
            # Another request moved it first
            return self.get_order(order.id)

        get_order_logger(order.id).info("Payment window lapsed, order expired")
        return expired

    def _claim_for_processing(self, order_id: str) -> Order:
        """
        Atomically move PENDING -> PROCESSING while the window is open.

        Raises:
            OrderConflictError: With the order's current status if another
                caller claimed it first or the window just lapsed
        """
        try:
            return self._store.compare_and_set_status(
                order_id,
                OrderStatus.PENDING,
                OrderStatus.PROCESSING,
                unexpired_at=self._clock(),
            )
        except OrderConflictError:
            current = self._expire_if_due(self.get_order(order_id))
            raise OrderConflictError(
                order_id, current.status.value, OrderStatus.PENDING.value
            ) from None

    def _provision(
        self,
        order: Order,
        product: Product,
        provisioner: Optional[Provisioner] = None
    ) -> ServerCredentials:
        provisioner = provisioner or self._provisioner
        return provisioner.provision(
            order.customer.email,
            order.customer.username,
            order.customer.server_name,
            product,
        )

    def _provision_or_fail(self, order: Order) -> ServerCredentials:
        """Provision a claimed order; on any failure mark it FAILED and re-raise."""
        try:
            product = self._store.get_product(order.product_id)
            if product is None:
                raise ProvisioningError(f"Product {order.product_id} not found")
            return self._provision(order, product)
        except Exception as e:
            self._store.update_order_status(order.id, OrderStatus.FAILED)
            get_order_logger(order.id).error(f"Server provisioning failed: {e}")
            raise
