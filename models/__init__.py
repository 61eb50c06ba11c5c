"""
Data models for OrbitCloud.

This module contains the dataclasses for:
- Product: Hosting plan from the catalog (frozen)
- Order: Customer order and its lifecycle status
- ServerCredentials: Result of a successful provisioning (frozen)
"""

from .product import Product, ProductCategory, ResourceLimits, ProvisioningTemplate
from .order import (
    Order,
    OrderStatus,
    CustomerInfo,
    ServerCredentials,
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
)

__all__ = [
    # Product models
    "Product",
    "ProductCategory",
    "ResourceLimits",
    "ProvisioningTemplate",
    # Order models
    "Order",
    "OrderStatus",
    "CustomerInfo",
    "ServerCredentials",
    "ALLOWED_TRANSITIONS",
    "TERMINAL_STATUSES",
]
