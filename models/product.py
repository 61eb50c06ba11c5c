"""
Product (hosting plan) data models.

Products are loaded once at startup and never change afterwards, so every
class here is a frozen dataclass and can be shared freely between request
threads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Tuple


class ProductCategory(Enum):
    """Kind of workload a plan is built for."""

    SAMP_LINUX = "samp-linux"
    SAMP_WINDOWS = "samp-windows"
    NODEJS = "nodejs"


@dataclass(frozen=True)
class ResourceLimits:
    """Resource limits applied to the provisioned server."""

    cpu: int
    """CPU share in percent of one core."""

    memory_mb: int
    """Memory limit in megabytes."""

    disk_mb: int
    """Disk limit in megabytes."""


@dataclass(frozen=True)
class ProvisioningTemplate:
    """
    Panel template used to create the server instance.

    Maps directly onto the Pterodactyl nest/egg model.
    """

    nest_id: int
    egg_id: int
    docker_image: str
    startup: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nestId": self.nest_id,
            "eggId": self.egg_id,
            "dockerImage": self.docker_image,
            "startup": self.startup,
        }


@dataclass(frozen=True)
class Product:
    """
    A hosting plan offered in the catalog.

    ``max_players`` is the capacity advertised for game servers; bot and
    web plans use 0.
    """

    id: str
    name: str
    category: ProductCategory
    description: str
    price: int
    """Unit price in IDR."""

    limits: ResourceLimits
    max_players: int
    template: ProvisioningTemplate
    features: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON shape served by /api/products."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.category.value,
            "description": self.description,
            "price": self.price,
            "ram": self.limits.memory_mb,
            "disk": self.limits.disk_mb,
            "cpu": self.limits.cpu,
            "maxPlayers": self.max_players,
            "features": list(self.features),
            "eggConfig": self.template.to_dict(),
        }
