"""
Flask route blueprints for OrbitCloud.

This module contains all route handlers organized by functionality:
- products: Hosting plan catalog
- orders: Order creation, lookup, status polling, simulated payment
- webhook: Payment gateway callbacks
- api: Health check

Each blueprint is registered with the Flask app in create_app().
"""

from .products import products_bp
from .orders import orders_bp
from .webhook import webhook_bp
from .api import api_bp

__all__ = [
    "products_bp",
    "orders_bp",
    "webhook_bp",
    "api_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(products_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(webhook_bp)
    app.register_blueprint(api_bp)
