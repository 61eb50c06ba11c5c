"""
Unit tests for the in-memory order store.

Covers creation defaults, snapshot isolation, the transition rules the
store enforces, and the compare-and-set primitive the order service uses.
"""

import threading
from dataclasses import replace
from datetime import timedelta

import pytest

from core.exceptions import InvalidTransitionError, OrderConflictError
from models.order import CustomerInfo, OrderStatus, ServerCredentials
from services.order_store import InMemoryOrderStore


# Fixtures

@pytest.fixture
def customer():
    return CustomerInfo(email="budi@example.com", username="budi_dev", server_name="Budi Bot")


@pytest.fixture
def credentials():
    return ServerCredentials(
        panel_url="https://panel.example.com",
        username="budi_dev_lx2k",
        password="s3cretpassw0rdXY",
        server_id=42,
        server_ip="103.150.60.10",
        server_port=7780,
    )


@pytest.fixture
def order(store, customer):
    return store.create_order("nodejs-bot", customer, 20000)


# Tests for products

class TestProducts:
    """Test catalog access."""

    def test_products_in_catalog_order(self, store):
        ids = [p.id for p in store.get_products()]
        assert ids == ["samp-linux-basic", "samp-windows-pro", "nodejs-bot"]

    def test_get_unknown_product_returns_none(self, store):
        assert store.get_product("minecraft-xl") is None

    def test_load_products_replaces_catalog(self, store):
        nodejs = store.get_product("nodejs-bot")
        store.load_products([replace(nodejs, price=25000)])

        assert [p.id for p in store.get_products()] == ["nodejs-bot"]
        assert store.get_product("nodejs-bot").price == 25000


# Tests for order creation and lookup

class TestCreateOrder:
    """Test order creation defaults."""

    def test_new_order_is_pending(self, order):
        assert order.status is OrderStatus.PENDING
        assert order.amount == 20000
        assert order.qr_code is None
        assert order.payment_number is None
        assert order.server_credentials is None

    def test_timestamps_and_expiry(self, order, clock):
        assert order.created_at == clock.now
        assert order.updated_at == clock.now
        assert order.expires_at == clock.now + timedelta(minutes=15)

    def test_custom_payment_window(self, clock, customer):
        short_store = InMemoryOrderStore(payment_window=timedelta(minutes=5), clock=clock)
        order = short_store.create_order("nodejs-bot", customer, 20000)

        assert order.expires_at == clock.now + timedelta(minutes=5)

    def test_ids_are_unique(self, store, customer):
        ids = {store.create_order("nodejs-bot", customer, 20000).id for _ in range(200)}
        assert len(ids) == 200

    def test_get_order_returns_stored_state(self, store, order):
        fetched = store.get_order(order.id)
        assert fetched.id == order.id
        assert fetched.customer.email == "budi@example.com"

    def test_get_unknown_order_returns_none(self, store):
        assert store.get_order("does-not-exist") is None

    def test_returned_orders_are_snapshots(self, store, order):
        """Changing a returned order must not change the stored one."""
        order.status = OrderStatus.COMPLETED
        order.amount = 1

        stored = store.get_order(order.id)
        assert stored.status is OrderStatus.PENDING
        assert stored.amount == 20000


# Tests for updates

class TestUpdates:
    """Test mutation operations."""

    def test_update_payment(self, store, order, clock):
        clock.advance(seconds=5)
        updated = store.update_order_payment(order.id, "QR-DATA", "PAY-1234")

        assert updated.qr_code == "QR-DATA"
        assert updated.payment_number == "PAY-1234"
        assert updated.updated_at == clock.now
        assert updated.status is OrderStatus.PENDING

    def test_updates_on_unknown_id_return_none(self, store, credentials):
        assert store.update_order_payment("nope", "QR", "PAY") is None
        assert store.update_order_status("nope", OrderStatus.EXPIRED) is None
        assert store.update_order_credentials("nope", credentials) is None
        assert store.compare_and_set_status(
            "nope", OrderStatus.PENDING, OrderStatus.PROCESSING
        ) is None

    def test_update_status_follows_state_machine(self, store, order, clock):
        clock.advance(seconds=1)
        processing = store.update_order_status(order.id, OrderStatus.PROCESSING)
        assert processing.status is OrderStatus.PROCESSING
        assert processing.updated_at == clock.now

        failed = store.update_order_status(order.id, OrderStatus.FAILED)
        assert failed.status is OrderStatus.FAILED

    @pytest.mark.parametrize("target", [OrderStatus.FAILED, OrderStatus.PENDING])
    def test_illegal_transition_from_pending(self, store, order, target):
        with pytest.raises(InvalidTransitionError):
            store.update_order_status(order.id, target)

        assert store.get_order(order.id).status is OrderStatus.PENDING

    def test_completed_only_through_credentials(self, store, order):
        store.update_order_status(order.id, OrderStatus.PROCESSING)

        with pytest.raises(InvalidTransitionError):
            store.update_order_status(order.id, OrderStatus.COMPLETED)

        assert store.get_order(order.id).server_credentials is None

    def test_terminal_states_do_not_move(self, store, order):
        store.update_order_status(order.id, OrderStatus.EXPIRED)

        with pytest.raises(InvalidTransitionError):
            store.update_order_status(order.id, OrderStatus.PROCESSING)

    def test_update_credentials_completes_order(self, store, order, credentials):
        store.update_order_status(order.id, OrderStatus.PROCESSING)
        completed = store.update_order_credentials(order.id, credentials)

        assert completed.status is OrderStatus.COMPLETED
        assert completed.server_credentials == credentials

    def test_update_credentials_requires_processing(self, store, order, credentials):
        with pytest.raises(InvalidTransitionError):
            store.update_order_credentials(order.id, credentials)

        stored = store.get_order(order.id)
        assert stored.status is OrderStatus.PENDING
        assert stored.server_credentials is None


# Tests for compare-and-set

class TestCompareAndSet:
    """Test the atomic claim primitive."""

    def test_transition_when_expected_matches(self, store, order):
        claimed = store.compare_and_set_status(
            order.id, OrderStatus.PENDING, OrderStatus.PROCESSING
        )
        assert claimed.status is OrderStatus.PROCESSING

    def test_conflict_when_status_differs(self, store, order):
        store.update_order_status(order.id, OrderStatus.PROCESSING)

        with pytest.raises(OrderConflictError) as exc_info:
            store.compare_and_set_status(order.id, OrderStatus.PENDING, OrderStatus.PROCESSING)

        assert exc_info.value.status == "processing"

    def test_conflict_when_window_lapsed(self, store, order, clock):
        lapsed = order.expires_at + timedelta(seconds=1)

        with pytest.raises(OrderConflictError):
            store.compare_and_set_status(
                order.id, OrderStatus.PENDING, OrderStatus.PROCESSING, unexpired_at=lapsed
            )

        assert store.get_order(order.id).status is OrderStatus.PENDING

    def test_window_boundary_is_inclusive(self, store, order):
        claimed = store.compare_and_set_status(
            order.id, OrderStatus.PENDING, OrderStatus.PROCESSING,
            unexpired_at=order.expires_at
        )
        assert claimed.status is OrderStatus.PROCESSING

    def test_only_one_concurrent_claim_wins(self, store, order):
        """Many threads race for the same order; exactly one succeeds."""
        barrier = threading.Barrier(16)
        winners = []
        conflicts = []

        def claim():
            barrier.wait()
            try:
                store.compare_and_set_status(order.id, OrderStatus.PENDING, OrderStatus.PROCESSING)
                winners.append(True)
            except OrderConflictError:
                conflicts.append(True)

        threads = [threading.Thread(target=claim) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(winners) == 1
        assert len(conflicts) == 15
