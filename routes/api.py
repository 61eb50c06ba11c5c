"""
Service routes.

Handles:
- /api/health - Liveness plus which external adapters are configured
"""

from datetime import datetime, timezone

from flask import Blueprint, current_app


api_bp = Blueprint("api", __name__)


@api_bp.route("/api/health", methods=["GET"])
def health():
    """
    Health check endpoint.

    ``mode`` is "production" only when both the payment gateway and the
    hosting panel are configured; otherwise at least one adapter serves
    demo data.
    """
    order_service = current_app.config["ORDER_SERVICE"]
    services = order_service.adapter_status()

    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "services": services,
        "mode": "production" if all(services.values()) else "demo",
    }
