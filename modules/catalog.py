"""
Hosting plans seeded into the order store at startup.
"""

from typing import List

from models.product import (
    Product,
    ProductCategory,
    ResourceLimits,
    ProvisioningTemplate,
)


PRODUCTS: List[Product] = [
    Product(
        id="samp-linux-basic",
        name="SAMP Hemat",
        category=ProductCategory.SAMP_LINUX,
        description="Server SAMP Linux ekonomis untuk pemula dengan performa stabil",
        price=15000,
        limits=ResourceLimits(cpu=50, memory_mb=512, disk_mb=2048),
        max_players=50,
        features=(
            "Panel Pterodactyl Full Access",
            "Auto Backup Harian",
            "DDoS Protection Basic",
            "Support 24/7 via Discord",
            "Free MySQL Database",
        ),
        template=ProvisioningTemplate(
            nest_id=6,
            egg_id=16,
            docker_image="ghcr.io/parkervcp/games:samp",
            startup="./samp03svr",
        ),
    ),
    Product(
        id="samp-windows-pro",
        name="SAMP Sultan",
        category=ProductCategory.SAMP_WINDOWS,
        description="Server SAMP Windows premium dengan resource besar dan performa maksimal",
        price=35000,
        limits=ResourceLimits(cpu=100, memory_mb=1024, disk_mb=5120),
        max_players=100,
        features=(
            "Panel Pterodactyl Full Access",
            "Auto Backup 2x Sehari",
            "DDoS Protection Advanced",
            "Priority Support 24/7",
            "Free MySQL + Redis",
            "Windows Native Performance",
        ),
        template=ProvisioningTemplate(
            nest_id=6,
            egg_id=17,
            docker_image="hcgcloud/pterodactyl-images:ubuntu-wine",
            startup="wine64 ./samp-server.exe",
        ),
    ),
    Product(
        id="nodejs-bot",
        name="Bot NodeJS",
        category=ProductCategory.NODEJS,
        description="Hosting NodeJS untuk bot Discord, Telegram, atau aplikasi web",
        price=20000,
        limits=ResourceLimits(cpu=75, memory_mb=512, disk_mb=3072),
        max_players=0,
        features=(
            "Panel Pterodactyl Full Access",
            "Node.js 21 LTS",
            "NPM & Yarn Support",
            "Auto Restart on Crash",
            "Free MongoDB Access",
            "Git Integration",
        ),
        template=ProvisioningTemplate(
            nest_id=5,
            egg_id=15,
            docker_image="ghcr.io/parkervcp/yolks:nodejs_21",
            startup="npm start",
        ),
    ),
]


def get_catalog() -> List[Product]:
    """Return the plans in display order."""
    return list(PRODUCTS)
