"""
Order store: keyed storage for products and orders.

The store is the single source of truth for order state. The order service
never keeps an Order around between steps; it re-reads or transitions
through the store every time.

Thread Safety:
    - Every order has its own threading.Lock; all mutations of that order
      happen under it (atomic read-modify-write per order id)
    - A store-wide lock only guards the lock table and the catalog, never
      a long-running call
    - Readers always get a snapshot, never the stored instance

Usage:
    store = InMemoryOrderStore(products=get_catalog())

    order = store.create_order("nodejs-bot", customer, amount=20000)
    store.update_order_payment(order.id, qr, "PAY-1234")

    # Atomic claim: only one caller wins the pending -> processing edge
    store.compare_and_set_status(
        order.id, OrderStatus.PENDING, OrderStatus.PROCESSING, unexpired_at=now
    )
"""

from __future__ import annotations

import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional

from core.exceptions import InvalidTransitionError, OrderConflictError
from models.order import CustomerInfo, Order, OrderStatus, ServerCredentials
from models.product import Product
from logging_config import get_logger


logger = get_logger(__name__)

PAYMENT_WINDOW = timedelta(minutes=15)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OrderStore(ABC):
    """
    Contract for product and order storage.

    Lookups on unknown ids return None rather than raising; the API
    boundary decides what absence means. No method deletes or reorders
    entries.
    """

    @abstractmethod
    def get_products(self) -> List[Product]:
        ...

    @abstractmethod
    def get_product(self, product_id: str) -> Optional[Product]:
        ...

    @abstractmethod
    def load_products(self, products: Iterable[Product]) -> None:
        ...

    @abstractmethod
    def create_order(
        self,
        product_id: str,
        customer: CustomerInfo,
        amount: int
    ) -> Order:
        ...

    @abstractmethod
    def get_order(self, order_id: str) -> Optional[Order]:
        ...

    @abstractmethod
    def update_order_payment(
        self,
        order_id: str,
        qr_code: str,
        payment_number: str
    ) -> Optional[Order]:
        ...

    @abstractmethod
    def update_order_status(
        self,
        order_id: str,
        status: OrderStatus
    ) -> Optional[Order]:
        ...

    @abstractmethod
    def update_order_credentials(
        self,
        order_id: str,
        credentials: ServerCredentials
    ) -> Optional[Order]:
        ...

    @abstractmethod
    def compare_and_set_status(
        self,
        order_id: str,
        expected: OrderStatus,
        status: OrderStatus,
        unexpired_at: Optional[datetime] = None
    ) -> Optional[Order]:
        ...


class InMemoryOrderStore(OrderStore):
    """
    Process-lifetime store backed by dictionaries.

    Attributes:
        payment_window: Time a new order stays payable
    """

    def __init__(
        self,
        products: Optional[Iterable[Product]] = None,
        payment_window: timedelta = PAYMENT_WINDOW,
        clock: Callable[[], datetime] = utc_now
    ):
        """
        Initialize the store.

        Args:
            products: Catalog to seed (optional, see load_products)
            payment_window: expiresAt offset from createdAt
            clock: Returns the current timezone-aware time
        """
        self.payment_window = payment_window
        self._clock = clock

        self._products: Dict[str, Product] = {}
        self._orders: Dict[str, Order] = {}
        self._order_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

        if products is not None:
            self.load_products(products)

    # =========================================================================
    # Products
    # =========================================================================

    def get_products(self) -> List[Product]:
        with self._lock:
            return list(self._products.values())

    def get_product(self, product_id: str) -> Optional[Product]:
        with self._lock:
            return self._products.get(product_id)

    def load_products(self, products: Iterable[Product]) -> None:
        """
        Replace the catalog.

        Existing orders keep the amount they were created with.
        """
        catalog = {product.id: product for product in products}
        with self._lock:
            self._products = catalog
        logger.info(f"Loaded {len(catalog)} products")

    # =========================================================================
    # Orders
    # =========================================================================

    def create_order(
        self,
        product_id: str,
        customer: CustomerInfo,
        amount: int
    ) -> Order:
        now = self._clock()
        order = Order(
            id=str(uuid.uuid4()),
            product_id=product_id,
            customer=customer,
            amount=amount,
            created_at=now,
            updated_at=now,
            expires_at=now + self.payment_window,
        )

        with self._lock:
            # uuid4 collisions are not expected, but ids are never reused
            while order.id in self._orders:
                order.id = str(uuid.uuid4())
            self._orders[order.id] = order
            self._order_locks[order.id] = threading.Lock()

        logger.debug(f"Stored order {order.id[:8]} for product {product_id}")
        return order.snapshot()

    def get_order(self, order_id: str) -> Optional[Order]:
        lock = self._lock_for(order_id)
        if lock is None:
            return None
        with lock:
            return self._orders[order_id].snapshot()

    def update_order_payment(
        self,
        order_id: str,
        qr_code: str,
        payment_number: str
    ) -> Optional[Order]:
        lock = self._lock_for(order_id)
        if lock is None:
            return None
        with lock:
            order = self._orders[order_id]
            order.qr_code = qr_code
            order.payment_number = payment_number
            order.updated_at = self._clock()
            return order.snapshot()

    def update_order_status(
        self,
        order_id: str,
        status: OrderStatus
    ) -> Optional[Order]:
        """
        Move an order along the state machine.

        Raises:
            InvalidTransitionError: If the edge does not exist, or if the
                target is COMPLETED (use update_order_credentials)
        """
        lock = self._lock_for(order_id)
        if lock is None:
            return None
        with lock:
            order = self._orders[order_id]
            if status is OrderStatus.COMPLETED:
                raise InvalidTransitionError(order_id, order.status.value, status.value)
            self._apply_status(order, status)
            return order.snapshot()

    def update_order_credentials(
        self,
        order_id: str,
        credentials: ServerCredentials
    ) -> Optional[Order]:
        """
        Attach server credentials and mark the order COMPLETED.

        Raises:
            InvalidTransitionError: If the order is not PROCESSING
        """
        lock = self._lock_for(order_id)
        if lock is None:
            return None
        with lock:
            order = self._orders[order_id]
            self._apply_status(order, OrderStatus.COMPLETED)
            order.server_credentials = credentials
            return order.snapshot()

    def compare_and_set_status(
        self,
        order_id: str,
        expected: OrderStatus,
        status: OrderStatus,
        unexpired_at: Optional[datetime] = None
    ) -> Optional[Order]:
        """
        Transition only if the order is currently in ``expected``.

        Args:
            order_id: Order to transition
            expected: Status the caller believes the order is in
            status: Target status
            unexpired_at: If given, also require the payment window to be
                open at this instant

        Returns:
            Updated order snapshot, or None if the order does not exist

        Raises:
            OrderConflictError: If the order is not in ``expected`` or the
                payment window has lapsed
        """
        lock = self._lock_for(order_id)
        if lock is None:
            return None
        with lock:
            order = self._orders[order_id]
            if order.status is not expected:
                raise OrderConflictError(order_id, order.status.value, expected.value)
            if unexpired_at is not None and not order.is_payment_window_open(unexpired_at):
                raise OrderConflictError(order_id, "lapsed", "unexpired")
            self._apply_status(order, status)
            return order.snapshot()

    # =========================================================================
    # Internals
    # =========================================================================

    def _lock_for(self, order_id: str) -> Optional[threading.Lock]:
        with self._lock:
            return self._order_locks.get(order_id)

    def _apply_status(self, order: Order, status: OrderStatus) -> None:
        # Caller holds the order lock
        if not order.status.can_transition_to(status):
            raise InvalidTransitionError(order.id, order.status.value, status.value)
        previous = order.status
        order.status = status
        order.updated_at = self._clock()
        logger.debug(f"Order {order.id[:8]}: {previous.value} -> {status.value}")
