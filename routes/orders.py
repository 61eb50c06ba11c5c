"""
Order routes.

Handles:
- POST /api/orders                     - Validate checkout input, create order
- GET  /api/orders/<id>                - Order as stored
- GET  /api/orders/<id>/status         - Order after the lazy expiry check
- POST /api/simulate-payment/<id>      - Mark paid without the gateway

Application errors (validation, not found, conflict) propagate to the JSON
error handlers registered in create_app().
"""

from flask import Blueprint, current_app, request

from modules.validation import validate_order_input
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

orders_bp = Blueprint("orders", __name__)


@orders_bp.route("/api/orders", methods=["POST"])
def create_order():
    """
    Create an order for a hosting plan.

    Always answers 201 with payment fields attached once the input is
    valid and the product exists, even if the payment gateway failed.
    """
    order_input = validate_order_input(request.get_json(silent=True) or {})

    order_service = current_app.config["ORDER_SERVICE"]
    order = order_service.create_order(order_input)

    logger.info(f"Order {order.id[:8]} created for {order.product_id}")
    return order.to_dict(), 201


@orders_bp.route("/api/orders/<order_id>", methods=["GET"])
def get_order(order_id: str):
    order_service = current_app.config["ORDER_SERVICE"]
    return order_service.get_order(order_id).to_dict()


@orders_bp.route("/api/orders/<order_id>/status", methods=["GET"])
def get_order_status(order_id: str):
    """Polled by the checkout page; expires the order if the window lapsed."""
    order_service = current_app.config["ORDER_SERVICE"]
    return order_service.get_order_status(order_id).to_dict()


@orders_bp.route("/api/simulate-payment/<order_id>", methods=["POST"])
def simulate_payment(order_id: str):
    """Operator/test shortcut: provision a pending order without a payment."""
    order_service = current_app.config["ORDER_SERVICE"]
    result = order_service.simulate_payment(order_id)

    body = {"success": True, "order": result.order.to_dict()}
    if result.note:
        body["note"] = result.note
    return body
