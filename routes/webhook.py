"""
Payment gateway webhook.

Handles:
- POST /api/webhook/pakasir

Pakasir redelivers until it gets a 2xx, so every delivery that names a
known order is acknowledged with success, including duplicates and
intermediate statuses. Only structurally invalid payloads (400), unknown
orders (404) and failed provisioning (500) answer otherwise.
"""

import json

from flask import Blueprint, current_app, request

from core.exceptions import AdapterFailureError
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

webhook_bp = Blueprint("webhook", __name__)


@webhook_bp.route("/api/webhook/pakasir", methods=["POST"])
def pakasir_webhook():
    payload = request.get_json(silent=True)
    logger.info(f"Received webhook payload: {json.dumps(payload)}")

    order_service = current_app.config["ORDER_SERVICE"]

    try:
        outcome = order_service.handle_webhook(payload)
    except AdapterFailureError as e:
        logger.error(f"Server provisioning failed: {e}")
        return {"error": "Server provisioning failed"}, 500

    return {
        "success": True,
        "message": outcome.message,
        "status": outcome.order.status.value,
    }
