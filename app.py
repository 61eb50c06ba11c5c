"""
OrbitCloud - Flask Application Entry Point.

This is a slim app factory that:
1. Loads configuration (.env + config classes)
2. Configures thread-aware logging
3. Picks the payment and provisioning strategies (real or demo) once
4. Creates the order store and the order service
5. Registers route blueprints and JSON error handlers

ARCHITECTURE:
    Request threads (Flask)
    ├── routes/*          - JSON boundary, input validation
    └── OrderService      - lifecycle state machine
        ├── OrderStore          - per-order locked state (shared)
        ├── PaymentGateway      - Pakasir QRIS or demo
        └── Provisioner         - Pterodactyl or demo

The order store is the only shared mutable state. External calls never run
while a store lock is held.
"""

from __future__ import annotations

import atexit
import logging
import os
import weakref
from datetime import timedelta
from typing import Any, Dict, Optional

from flask import Flask

from logging_config import setup_logging, get_logger
from core.exceptions import (
    ConflictError,
    NotFoundError,
    OrbitCloudError,
    ValidationError,
)
from modules.catalog import get_catalog
from services.order_store import InMemoryOrderStore
from services.order_service import OrderService
from services.payment_gateway import create_payment_gateway
from services.provisioning import create_provisioner
from routes import register_blueprints


# Module logger (configured after setup_logging)
logger = get_logger(__name__)

# Services of apps still alive; closed once at interpreter exit
_open_services = weakref.WeakSet()


@atexit.register
def _close_services() -> None:
    for service in list(_open_services):
        service.close()


def create_app(
    config_object: str = "config.Config",
    config_overrides: Optional[Dict[str, Any]] = None
) -> Flask:
    """
    Application factory - creates and configures the Flask app.

    Args:
        config_object: Import path of the config class
        config_overrides: Values applied on top of the config class

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)
    app.config.from_object(config_object)
    if config_overrides:
        app.config.update(config_overrides)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )

    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting OrbitCloud in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # SERVICES INITIALIZATION
    # =========================================================================

    payment_gateway = create_payment_gateway(app.config)
    provisioner = create_provisioner(app.config)

    store = InMemoryOrderStore(
        products=get_catalog(),
        payment_window=timedelta(minutes=app.config["PAYMENT_WINDOW_MINUTES"])
    )

    order_service = OrderService(store, payment_gateway, provisioner)
    app.config["ORDER_STORE"] = store
    app.config["ORDER_SERVICE"] = order_service

    mode = "production" if payment_gateway.is_configured and provisioner.is_configured else "demo"
    logger.info(f"Order service initialized ({mode} mode)")

    # =========================================================================
    # CLEANUP REGISTRATION
    # =========================================================================

    _open_services.add(order_service)

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(ValidationError)
    def handle_validation_error(e: ValidationError):
        body = {"error": e.message}
        if e.field_errors:
            body["details"] = e.field_errors
        return body, 400

    @app.errorhandler(NotFoundError)
    def handle_not_found_error(e: NotFoundError):
        return {"error": e.message}, 404

    @app.errorhandler(ConflictError)
    def handle_conflict_error(e: ConflictError):
        return {"error": e.message, "details": e.details}, 409

    @app.errorhandler(OrbitCloudError)
    def handle_application_error(e: OrbitCloudError):
        logger.error(f"Unhandled application error: {e}")
        return {"error": e.message}, 500

    @app.errorhandler(404)
    def handle_unknown_route(e):
        return {"error": "Not found"}, 404

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        return {"error": "Internal server error"}, 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(debug=debug_mode, threaded=True)
