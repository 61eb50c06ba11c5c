"""
Integration tests for the JSON API.

The app is built with TestingConfig, so both adapters run in demo mode.
Tests that need to move time swap in an OrderService driven by the fake
clock.
"""

from unittest.mock import MagicMock

import pytest

from app import create_app
from core.exceptions import ProvisioningError
from services.order_service import OrderService
from services.payment_gateway import DemoPaymentGateway
from services.provisioning import DemoProvisioner


ORDER_BODY = {
    "productId": "samp-linux-basic",
    "customerEmail": "budi@example.com",
    "customerUsername": "budi_dev",
    "serverName": "Budi SAMP",
}


# Fixtures

@pytest.fixture
def app():
    app = create_app("config.TestingConfig")
    yield app
    app.config["ORDER_SERVICE"].close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def clocked_service(app, store, clock):
    """Replace the app's order service with one driven by the fake clock."""
    service = OrderService(
        store,
        DemoPaymentGateway(),
        DemoProvisioner(),
        clock=clock,
    )
    app.config["ORDER_SERVICE"] = service
    return service


def create_order(client, **overrides):
    response = client.post("/api/orders", json={**ORDER_BODY, **overrides})
    assert response.status_code == 201
    return response.get_json()


# Tests for products

class TestProducts:

    def test_list_products(self, client):
        response = client.get("/api/products")

        assert response.status_code == 200
        products = response.get_json()
        assert [p["id"] for p in products] == ["samp-linux-basic", "samp-windows-pro", "nodejs-bot"]
        assert products[0]["type"] == "samp-linux"
        assert products[0]["price"] == 15000
        assert products[0]["eggConfig"]["eggId"] == 16

    def test_get_product(self, client):
        response = client.get("/api/products/nodejs-bot")

        assert response.status_code == 200
        assert response.get_json()["name"]

    def test_unknown_product(self, client):
        response = client.get("/api/products/minecraft-xl")

        assert response.status_code == 404
        assert response.get_json() == {"error": "Product not found"}


# Tests for orders

class TestCreateOrder:

    def test_create_order(self, client):
        order = create_order(client)

        assert order["status"] == "pending"
        assert order["amount"] == 15000
        assert order["productId"] == "samp-linux-basic"
        assert order["customerEmail"] == "budi@example.com"
        assert order["paymentNumber"] == f"DEMO-{order['id'][:8]}"
        assert order["qrCode"]
        assert order["serverCredentials"] is None
        assert order["expiresAt"] > order["createdAt"]

    def test_validation_error(self, client):
        response = client.post("/api/orders", json={**ORDER_BODY, "customerEmail": "nope"})

        assert response.status_code == 400
        body = response.get_json()
        assert body["error"] == "Validation failed"
        assert body["details"][0]["field"] == "customerEmail"

    def test_missing_body(self, client):
        response = client.post("/api/orders", data="not json", content_type="text/plain")

        assert response.status_code == 400
        assert len(response.get_json()["details"]) == 4

    def test_unknown_product(self, client):
        response = client.post("/api/orders", json={**ORDER_BODY, "productId": "minecraft-xl"})

        assert response.status_code == 404
        assert response.get_json() == {"error": "Product not found"}

    def test_get_order(self, client):
        order = create_order(client)

        response = client.get(f"/api/orders/{order['id']}")

        assert response.status_code == 200
        assert response.get_json()["id"] == order["id"]

    def test_get_unknown_order(self, client):
        response = client.get("/api/orders/does-not-exist")

        assert response.status_code == 404
        assert response.get_json() == {"error": "Order not found"}


class TestOrderStatus:

    def test_pending_within_window(self, client, clocked_service, clock):
        order = create_order(client)
        clock.advance(minutes=14)

        response = client.get(f"/api/orders/{order['id']}/status")

        assert response.get_json()["status"] == "pending"

    def test_expires_after_window(self, client, clocked_service, clock):
        order = create_order(client)
        clock.advance(minutes=15, seconds=1)

        response = client.get(f"/api/orders/{order['id']}/status")

        assert response.status_code == 200
        assert response.get_json()["status"] == "expired"

    def test_plain_lookup_does_not_expire(self, client, clocked_service, clock):
        order = create_order(client)
        clock.advance(hours=1)

        response = client.get(f"/api/orders/{order['id']}")

        assert response.get_json()["status"] == "pending"

    def test_unknown_order(self, client):
        response = client.get("/api/orders/does-not-exist/status")
        assert response.status_code == 404


# Tests for the webhook

class TestWebhook:

    def test_settlement_provisions_server(self, client):
        order = create_order(client)

        response = client.post("/api/webhook/pakasir", json={
            "order_id": order["id"],
            "status": "completed",
            "amount": 15000,
        })

        assert response.status_code == 200
        assert response.get_json() == {
            "success": True,
            "message": "Server provisioned",
            "status": "completed",
        }

        stored = client.get(f"/api/orders/{order['id']}").get_json()
        assert stored["status"] == "completed"
        assert stored["serverCredentials"]["username"] == "budi_dev"
        assert stored["serverCredentials"]["password"].startswith("demo_")

    def test_redelivery_is_acknowledged(self, client):
        order = create_order(client)
        payload = {"order_id": order["id"], "status": "paid"}
        client.post("/api/webhook/pakasir", json=payload)
        first = client.get(f"/api/orders/{order['id']}").get_json()

        response = client.post("/api/webhook/pakasir", json=payload)

        assert response.status_code == 200
        assert response.get_json()["message"] == "Order already processed"
        second = client.get(f"/api/orders/{order['id']}").get_json()
        assert second["serverCredentials"] == first["serverCredentials"]
        assert second["updatedAt"] == first["updatedAt"]

    def test_unsettled_status_is_noted(self, client):
        order = create_order(client)

        response = client.post("/api/webhook/pakasir", json={
            "order_id": order["id"],
            "status": "pending",
        })

        assert response.status_code == 200
        assert response.get_json()["message"] == "Payment status noted"
        assert response.get_json()["status"] == "pending"

    @pytest.mark.parametrize("payload", [{}, {"status": "paid"}, {"order_id": "abc"}, ["paid"]])
    def test_invalid_payload(self, client, payload):
        response = client.post("/api/webhook/pakasir", json=payload)

        assert response.status_code == 400
        assert response.get_json() == {"error": "Invalid payload"}

    def test_unknown_order(self, client):
        response = client.post("/api/webhook/pakasir", json={
            "order_id": "does-not-exist",
            "status": "paid",
        })

        assert response.status_code == 404

    def test_provisioning_failure(self, app, client, store, clock):
        provisioner = MagicMock()
        provisioner.provision.side_effect = ProvisioningError("POST /servers returned 500", 500)
        app.config["ORDER_SERVICE"] = OrderService(
            store, DemoPaymentGateway(), provisioner, clock=clock
        )
        order = create_order(client)

        response = client.post("/api/webhook/pakasir", json={
            "order_id": order["id"],
            "status": "paid",
        })

        assert response.status_code == 500
        assert response.get_json() == {"error": "Server provisioning failed"}
        assert client.get(f"/api/orders/{order['id']}").get_json()["status"] == "failed"

    def test_late_payment_on_expired_order(self, client, clocked_service, clock):
        order = create_order(client)
        clock.advance(minutes=20)

        response = client.post("/api/webhook/pakasir", json={
            "order_id": order["id"],
            "status": "paid",
        })

        assert response.status_code == 200
        assert response.get_json() == {
            "success": True,
            "message": "Order already processed",
            "status": "expired",
        }
        stored = client.get(f"/api/orders/{order['id']}").get_json()
        assert stored["serverCredentials"] is None


# Tests for simulated payment

class TestSimulatePayment:

    def test_simulate_payment(self, client):
        order = create_order(client)

        response = client.post(f"/api/simulate-payment/{order['id']}")

        assert response.status_code == 200
        body = response.get_json()
        assert body["success"] is True
        assert body["order"]["status"] == "completed"
        assert body["order"]["serverCredentials"]["serverPort"] >= 7777
        assert "note" not in body

    def test_simulate_twice_conflicts(self, client):
        order = create_order(client)
        client.post(f"/api/simulate-payment/{order['id']}")

        response = client.post(f"/api/simulate-payment/{order['id']}")

        assert response.status_code == 409
        body = response.get_json()
        assert body["error"] == "Order is not pending"
        assert body["details"]["status"] == "completed"

    def test_simulate_with_failing_provisioner_uses_fallback(self, app, client, store, clock):
        provisioner = MagicMock()
        provisioner.provision.side_effect = ProvisioningError("panel down")
        app.config["ORDER_SERVICE"] = OrderService(
            store, DemoPaymentGateway(), provisioner, clock=clock
        )
        order = create_order(client)

        response = client.post(f"/api/simulate-payment/{order['id']}")

        assert response.status_code == 200
        body = response.get_json()
        assert body["order"]["status"] == "completed"
        assert body["note"] == "Using mock credentials (API unavailable)"

    def test_simulate_unknown_order(self, client):
        response = client.post("/api/simulate-payment/does-not-exist")
        assert response.status_code == 404


# Tests for health

class TestHealth:

    def test_demo_mode(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "ok"
        assert body["environment"] == "testing"
        assert body["services"] == {"pakasir": False, "pterodactyl": False}
        assert body["mode"] == "demo"
        assert body["timestamp"]

    def test_production_mode(self):
        app = create_app("config.TestingConfig", config_overrides={
            "PAKASIR_API_KEY": "pk_test",
            "PAKASIR_PROJECT_SLUG": "orbitcloud",
            "PTERODACTYL_API_KEY": "ptla_test",
        })

        body = app.test_client().get("/api/health").get_json()
        app.config["ORDER_SERVICE"].close()

        assert body["services"] == {"pakasir": True, "pterodactyl": True}
        assert body["mode"] == "production"

    def test_unknown_route(self, client):
        response = client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.get_json() == {"error": "Not found"}


class TestShutdown:

    def test_exit_hook_closes_every_live_app_once(self, monkeypatch):
        import app as app_module

        monkeypatch.setattr(app_module, "_open_services", app_module.weakref.WeakSet())
        first = create_app("config.TestingConfig")
        second = create_app("config.TestingConfig")
        services = [first.config["ORDER_SERVICE"], second.config["ORDER_SERVICE"]]
        for service in services:
            monkeypatch.setattr(service, "close", MagicMock())

        app_module._close_services()

        assert len(app_module._open_services) == 2
        for service in services:
            service.close.assert_called_once_with()
