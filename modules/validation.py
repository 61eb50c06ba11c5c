"""
Checkout form validation.

Turns the raw JSON body of POST /api/orders into a CreateOrderInput, or
raises ValidationError listing every offending field.
"""

import html
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

import bleach

from core.exceptions import ValidationError


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
SERVER_NAME_MIN_LENGTH = 3
SERVER_NAME_MAX_LENGTH = 30


@dataclass(frozen=True)
class CreateOrderInput:
    product_id: str
    customer_email: str
    customer_username: str
    server_name: str


def _sanitize_text(value: Any) -> str:
    """Strip whitespace and HTML tags from user input, keeping the text as typed."""
    if value is None:
        return ""
    text = str(value).strip()
    # bleach escapes what it keeps; only markup should be removed
    return html.unescape(bleach.clean(text, tags=[], strip=True)).strip()


def validate_order_input(data: Mapping[str, Any]) -> CreateOrderInput:
    """
    Validate a checkout request body.

    Args:
        data: Parsed JSON body

    Returns:
        CreateOrderInput with normalized values

    Raises:
        ValidationError: With one entry per invalid field
    """
    if not isinstance(data, Mapping):
        raise ValidationError(field_errors=[
            {"field": "body", "message": "Request body must be a JSON object"}
        ])

    errors: List[Dict[str, str]] = []

    product_id = _sanitize_text(data.get("productId"))
    if not product_id:
        errors.append({"field": "productId", "message": "Product is required"})

    email = _sanitize_text(data.get("customerEmail"))
    if not EMAIL_PATTERN.match(email):
        errors.append({"field": "customerEmail", "message": "Valid email is required"})

    username = _sanitize_text(data.get("customerUsername"))
    if len(username) < USERNAME_MIN_LENGTH:
        errors.append({
            "field": "customerUsername",
            "message": f"Username must be at least {USERNAME_MIN_LENGTH} characters",
        })
    elif len(username) > USERNAME_MAX_LENGTH:
        errors.append({
            "field": "customerUsername",
            "message": f"Username must be at most {USERNAME_MAX_LENGTH} characters",
        })
    elif not USERNAME_PATTERN.match(username):
        errors.append({
            "field": "customerUsername",
            "message": "Username can only contain letters, numbers, and underscores",
        })

    server_name = _sanitize_text(data.get("serverName"))
    if len(server_name) < SERVER_NAME_MIN_LENGTH:
        errors.append({
            "field": "serverName",
            "message": f"Server name must be at least {SERVER_NAME_MIN_LENGTH} characters",
        })
    elif len(server_name) > SERVER_NAME_MAX_LENGTH:
        errors.append({
            "field": "serverName",
            "message": f"Server name must be at most {SERVER_NAME_MAX_LENGTH} characters",
        })

    if errors:
        raise ValidationError(field_errors=errors)

    return CreateOrderInput(
        product_id=product_id,
        customer_email=email,
        customer_username=username,
        server_name=server_name,
    )
