"""
Provisioning adapter: panel account + server instance for a paid order.

Two strategies share one contract:
    - PanelProvisioner: creates real servers through Pterodactyl
    - DemoProvisioner: synthetic credentials, no network

create_provisioner() picks one at startup from the configuration.

Flow (PanelProvisioner):
    1. Find the panel account for the customer's email, or create one
       (a second order from the same email reuses the account)
    2. Scan the node for a free allocation (bounded number of pages)
    3. Create the server on that allocation from the product template
    4. Return panel URL, login, server id and address
"""

from __future__ import annotations

import hashlib
import re
import secrets
import string
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional, Tuple

from core.panel_client import PanelClient, PanelUser
from models.order import ServerCredentials
from models.product import Product
from logging_config import get_logger


logger = get_logger(__name__)

DEFAULT_PANEL_URL = "https://orbitcloud-mifx1large.vyuxn.xyz"
EXISTING_ACCOUNT_PASSWORD = "(Use your existing password)"

_PASSWORD_ALPHABET = string.ascii_letters + string.digits
_BASE36_ALPHABET = string.digits + string.ascii_lowercase


def generate_password(length: int = 16) -> str:
    return "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))


def sanitize_username(username: str) -> str:
    """Lowercase and replace anything outside [a-z0-9_] with underscores."""
    return re.sub(r"[^a-z0-9_]", "_", username.lower())


def _base36(number: int) -> str:
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits)) or "0"


class Provisioner(ABC):
    """Turns a paid order into a running server."""

    is_configured: bool = False

    @abstractmethod
    def provision(
        self,
        email: str,
        username: str,
        server_name: str,
        product: Product
    ) -> ServerCredentials:
        """
        Provision a server for a customer.

        Raises:
            ProvisioningError: If any panel call fails
            NoCapacityError: If the node has no free allocation
        """

    def close(self) -> None:
        pass


class DemoProvisioner(Provisioner):
    """
    Credentials without a panel.

    Output is derived from the customer identity, so the same input always
    produces the same credentials.
    """

    def __init__(self, panel_url: str = DEFAULT_PANEL_URL):
        self.panel_url = panel_url

    def provision(
        self,
        email: str,
        username: str,
        server_name: str,
        product: Product
    ) -> ServerCredentials:
        logger.info("Pterodactyl not configured, returning demo credentials")
        digest = hashlib.sha256(
            f"{email}|{username}|{server_name}|{product.id}".encode("utf-8")
        ).hexdigest()

        return ServerCredentials(
            panel_url=self.panel_url,
            username=sanitize_username(username),
            password=f"demo_{digest[:12]}",
            server_id=int(digest[12:18], 16) % 1000 + 1,
            server_ip=f"103.150.60.{int(digest[18:20], 16)}",
            server_port=7777 + int(digest[20:24], 16) % 100,
        )


class PanelProvisioner(Provisioner):
    """Pterodactyl-backed provisioning."""

    is_configured = True

    def __init__(
        self,
        client: PanelClient,
        node_id: int = 1,
        max_allocation_pages: int = 10
    ):
        self._client = client
        self._node_id = node_id
        self._max_allocation_pages = max_allocation_pages

    def provision(
        self,
        email: str,
        username: str,
        server_name: str,
        product: Product
    ) -> ServerCredentials:
        logger.info(f"Starting server provisioning for {email}...")

        user, password = self._find_or_create_user(email, username)

        allocation = self._client.find_free_allocation(
            self._node_id,
            max_pages=self._max_allocation_pages
        )
        logger.info(f"Found allocation: {allocation.ip}:{allocation.port}")

        server = self._client.create_server(
            self._build_server_payload(user.id, allocation.id, server_name, product)
        )
        logger.info(f"Server created: {server.id}")

        return ServerCredentials(
            panel_url=self._client.panel_url,
            username=user.username,
            password=password or EXISTING_ACCOUNT_PASSWORD,
            server_id=server.id,
            server_ip=allocation.ip,
            server_port=allocation.port,
        )

    def _find_or_create_user(
        self,
        email: str,
        username: str
    ) -> Tuple[PanelUser, Optional[str]]:
        """
        Returns the account and, for new accounts only, its password.
        """
        existing = self._client.find_user_by_email(email)
        if existing:
            logger.info(f"User found: {existing.id}")
            return existing, None

        # Suffix keeps usernames unique when two customers pick the same one
        safe_username = sanitize_username(username)[:20]
        unique_username = f"{safe_username}_{_base36(int(time.time() * 1000))}"
        password = generate_password()

        user = self._client.create_user(email, unique_username, password)
        logger.info(f"User created: {user.id}")
        return user, password

    def _build_server_payload(
        self,
        user_id: int,
        allocation_id: int,
        server_name: str,
        product: Product
    ) -> Dict[str, Any]:
        template = product.template
        return {
            "name": server_name,
            "user": user_id,
            "egg": template.egg_id,
            "docker_image": template.docker_image,
            "startup": template.startup,
            "environment": {
                "MAX_PLAYERS": str(product.max_players or 50),
                "RCON_PASSWORD": generate_password(),
                "SERVER_NAME": server_name,
            },
            "limits": {
                "memory": product.limits.memory_mb,
                "swap": 0,
                "disk": product.limits.disk_mb,
                "io": 500,
                "cpu": product.limits.cpu,
            },
            "feature_limits": {
                "databases": 1,
                "backups": 2,
                "allocations": 1,
            },
            "allocation": {
                "default": allocation_id,
            },
        }

    def close(self) -> None:
        self._client.close()


def create_provisioner(config: Mapping[str, Any]) -> Provisioner:
    """
    Select the provisioning strategy from configuration.

    PTERODACTYL_API_KEY enables real provisioning.
    """
    panel_url = config.get("PTERODACTYL_URL") or DEFAULT_PANEL_URL
    api_key = config.get("PTERODACTYL_API_KEY")

    if not api_key:
        logger.warning("Pterodactyl API key missing - provisioning runs in demo mode")
        return DemoProvisioner(panel_url)

    client = PanelClient(
        panel_url=panel_url,
        api_key=api_key,
        timeout_seconds=config.get("PROVISIONING_TIMEOUT_SECONDS"),
        logger=get_logger("core.panel_client"),
    )
    logger.info(f"Pterodactyl configured - provisioning on {panel_url}")
    return PanelProvisioner(
        client,
        node_id=config.get("PTERODACTYL_NODE_ID", 1),
        max_allocation_pages=config.get("ALLOCATION_MAX_PAGES", 10),
    )
