"""
Configuration for OrbitCloud.

Both external adapters are optional. Leaving the Pakasir or Pterodactyl
credentials unset puts that adapter in demo mode; the choice is made once
when the application is created and reported by /api/health.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file early so environment variables are available for Config class
load_dotenv(override=True)

BASE_DIR = Path(__file__).resolve().parent


def _optional_float(name: str):
    value = os.environ.get(name)
    return float(value) if value else None


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"

    # ==========================================================================
    # Order lifecycle
    # ==========================================================================
    # Customers have this long to pay before the order expires. The window
    # is part of the order contract (expiresAt = createdAt + window), so it
    # is not read from the environment.
    PAYMENT_WINDOW_MINUTES = 15

    # ==========================================================================
    # Pakasir (QRIS payments)
    # ==========================================================================
    # Both the API key and the project slug are required, otherwise the
    # payment gateway runs in demo mode.
    PAKASIR_API_KEY = os.environ.get("PAKASIR_API_KEY") or None
    PAKASIR_PROJECT_SLUG = os.environ.get("PAKASIR_PROJECT_SLUG") or None
    PAKASIR_API_URL = os.environ.get(
        "PAKASIR_API_URL",
        "https://app.pakasir.com/api/transactioncreate/qris"
    )

    # ==========================================================================
    # Pterodactyl (server provisioning)
    # ==========================================================================
    PTERODACTYL_API_KEY = os.environ.get("PTERODACTYL_API_KEY") or None
    PTERODACTYL_URL = os.environ.get(
        "PTERODACTYL_URL",
        "https://orbitcloud-mifx1large.vyuxn.xyz"
    )
    PTERODACTYL_NODE_ID = int(os.environ.get("PTERODACTYL_NODE_ID", "1"))

    # Upper bound on allocation pages scanned per provisioning attempt
    ALLOCATION_MAX_PAGES = int(os.environ.get("ALLOCATION_MAX_PAGES", "10"))

    # ==========================================================================
    # HTTP timeouts (seconds)
    # ==========================================================================
    # HTTP_TIMEOUT_SECONDS applies to the payment gateway.
    # PROVISIONING_TIMEOUT_SECONDS applies to panel calls; unset means the
    # provisioning call is allowed to take as long as the panel needs.
    HTTP_TIMEOUT_SECONDS = float(os.environ.get("HTTP_TIMEOUT_SECONDS", "15"))
    PROVISIONING_TIMEOUT_SECONDS = _optional_float("PROVISIONING_TIMEOUT_SECONDS")


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration. Both adapters are forced into demo mode."""
    DEBUG = False
    TESTING = True
    ENVIRONMENT = "testing"
    PAKASIR_API_KEY = None
    PAKASIR_PROJECT_SLUG = None
    PTERODACTYL_API_KEY = None
