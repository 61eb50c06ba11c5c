"""
HTTP client for the Pterodactyl application API.

Covers the four calls provisioning needs:
    - find_user_by_email()    GET  /users?filter[email]=...
    - create_user()           POST /users
    - find_free_allocation()  GET  /nodes/<id>/allocations?page=N
    - create_server()         POST /servers

Every failed call raises ProvisioningError. Nothing is retried here;
the order service decides what a failure means for the order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Any, Optional

import requests

from .exceptions import AdapterUnavailableError, NoCapacityError, ProvisioningError


@dataclass(frozen=True)
class PanelUser:
    id: int
    username: str
    email: str


@dataclass(frozen=True)
class PanelAllocation:
    id: int
    ip: str
    port: int
    assigned: bool


@dataclass(frozen=True)
class PanelServer:
    id: int
    uuid: str
    name: str
    allocation: int


class PanelClient:
    """
    Pterodactyl application API client.

    Attributes:
        panel_url: Base URL customers use to log in
    """

    def __init__(
        self,
        panel_url: str,
        api_key: str,
        timeout_seconds: Optional[float] = None,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the client.

        Args:
            panel_url: Panel base URL (without /api/application)
            api_key: Application API key
            timeout_seconds: Per-request timeout, None waits indefinitely
            session: requests.Session to reuse (created if not provided)
            logger: Logger instance (creates default if not provided)

        Raises:
            AdapterUnavailableError: If api_key is empty
        """
        if not api_key:
            raise AdapterUnavailableError("pterodactyl")

        self.panel_url = panel_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout_seconds
        self._session = session or requests.Session()
        self._logger = logger or logging.getLogger("core.panel_client")

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Perform one API call and return the decoded JSON body.

        Raises:
            ProvisioningError: On transport errors or non-2xx responses
        """
        url = f"{self.panel_url}/api/application{endpoint}"
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        try:
            response = self._session.request(
                method,
                url,
                params=params,
                json=body,
                headers=headers,
                timeout=self._timeout
            )
        except requests.exceptions.RequestException as e:
            raise ProvisioningError(f"{method} {endpoint} failed: {e}") from e

        if not response.ok:
            self._logger.error(f"{method} {endpoint} -> {response.status_code}: {response.text}")
            raise ProvisioningError(
                f"{method} {endpoint} returned {response.status_code}",
                status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProvisioningError(f"{method} {endpoint} returned a non-JSON response") from e

    def find_user_by_email(self, email: str) -> Optional[PanelUser]:
        """Look up a panel account by email. None if there is none."""
        data = self._request("GET", "/users", params={"filter[email]": email})

        users = data.get("data") or []
        if not users:
            return None

        attributes = users[0]["attributes"]
        return PanelUser(
            id=attributes["id"],
            username=attributes["username"],
            email=attributes["email"],
        )

    def create_user(self, email: str, username: str, password: str) -> PanelUser:
        """Create a panel account."""
        data = self._request("POST", "/users", body={
            "email": email,
            "username": username,
            "first_name": username,
            "last_name": "User",
            "password": password,
        })

        attributes = data["attributes"]
        return PanelUser(
            id=attributes["id"],
            username=attributes["username"],
            email=attributes["email"],
        )

    def find_free_allocation(self, node_id: int, max_pages: int = 10) -> PanelAllocation:
        """
        Scan a node's allocations for one that is not assigned.

        Pages are fetched in order and the scan stops at ``max_pages`` or at
        the last page, whichever comes first.

        Raises:
            NoCapacityError: If no free allocation was found in range
            ProvisioningError: If a page request fails
        """
        page = 1
        pages_scanned = 0

        while page <= max_pages:
            data = self._request("GET", f"/nodes/{node_id}/allocations", params={"page": page})
            pages_scanned += 1

            for item in data.get("data") or []:
                attributes = item["attributes"]
                if not attributes.get("assigned"):
                    return PanelAllocation(
                        id=attributes["id"],
                        ip=attributes["ip"],
                        port=attributes["port"],
                        assigned=False,
                    )

            pagination = (data.get("meta") or {}).get("pagination")
            if not pagination or page >= pagination.get("total_pages", 0):
                break

            page += 1

        raise NoCapacityError(node_id, pages_scanned)

    def create_server(self, payload: Dict[str, Any]) -> PanelServer:
        """Create a server from a fully built request payload."""
        data = self._request("POST", "/servers", body=payload)

        attributes = data["attributes"]
        return PanelServer(
            id=attributes["id"],
            uuid=attributes["uuid"],
            name=attributes["name"],
            allocation=payload["allocation"]["default"],
        )

    def close(self) -> None:
        self._session.close()
