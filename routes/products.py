"""
Catalog routes.

Handles:
- GET /api/products       - All hosting plans, in catalog order
- GET /api/products/<id>  - One plan (404 if unknown)
"""

from flask import Blueprint, current_app, jsonify


products_bp = Blueprint("products", __name__)


@products_bp.route("/api/products", methods=["GET"])
def list_products():
    order_service = current_app.config["ORDER_SERVICE"]
    return jsonify([product.to_dict() for product in order_service.list_products()])


@products_bp.route("/api/products/<product_id>", methods=["GET"])
def get_product(product_id: str):
    order_service = current_app.config["ORDER_SERVICE"]
    return order_service.get_product(product_id).to_dict()
