"""Environment variable resolution utilities.

Canonical env names + fail-fast validation.
"""

import os
from typing import Optional

DEFAULT_SHOPIFY_SCOPES = "read_customers,read_products,read_orders,read_checkouts"
DEFAULT_SHOPIFY_API_VERSION = "2023-07"


def get_storesync_env() -> str:
    """Get environment name.

    Priority:
    1. STORESYNC_ENV (canonical)
    2. NODE_ENV (legacy deploy compat)
    3. Default: "local"

    Returns:
        Environment name (lowercase)
    """
    return (os.getenv("STORESYNC_ENV") or os.getenv("NODE_ENV") or "local").lower()


def is_production_env() -> bool:
    """Determine if running in production."""
    return get_storesync_env() in {"prod", "production"}


def get_shopify_api_key() -> str:
    """Get Shopify app client ID.

    Raises:
        ValueError: If SHOPIFY_API_KEY is not set
    """
    api_key = os.getenv("SHOPIFY_API_KEY")
    if not api_key:
        raise ValueError(
            "SHOPIFY_API_KEY is required. "
            "Set it to the client ID of your Shopify app."
        )
    return api_key


def get_shopify_api_secret() -> str:
    """Get Shopify app client secret.

    Raises:
        ValueError: If SHOPIFY_API_SECRET is not set
    """
    api_secret = os.getenv("SHOPIFY_API_SECRET")
    if not api_secret:
        raise ValueError(
            "SHOPIFY_API_SECRET is required. "
            "Set it to the client secret of your Shopify app."
        )
    return api_secret


def get_shopify_webhook_secret() -> Optional[str]:
    """Get the shared secret used to sign push notifications.

    Canonical: SHOPIFY_WEBHOOK_SECRET
    Fallback: SHOPIFY_API_SECRET (apps created in the partner dashboard sign
    webhooks with their client secret)

    Returns:
        Secret string, or None when neither is configured (verification then fails closed)
    """
    return os.getenv("SHOPIFY_WEBHOOK_SECRET") or os.getenv("SHOPIFY_API_SECRET") or None


def get_shopify_scopes() -> str:
    """Get comma-separated OAuth scopes requested at install time."""
    return os.getenv("SHOPIFY_SCOPES", DEFAULT_SHOPIFY_SCOPES)


def get_shopify_api_version() -> str:
    """Get Admin REST API version (e.g., 2023-07)."""
    return os.getenv("SHOPIFY_API_VERSION", DEFAULT_SHOPIFY_API_VERSION)


def get_app_url() -> str:
    """Get public URL of this service (OAuth redirect target)."""
    return os.getenv("APP_URL", "http://localhost:8000").rstrip("/")


def get_webhook_base_url() -> str:
    """Get base URL that push notifications are delivered to.

    Priority:
    1. WEBHOOK_BASE_URL (canonical)
    2. APP_URL

    Raises:
        ValueError: If the resolved URL does not use HTTPS (Shopify rejects plain HTTP)
    """
    base_url = (os.getenv("WEBHOOK_BASE_URL") or get_app_url()).rstrip("/")
    if not base_url.startswith("https://"):
        raise ValueError(
            f"Webhook base URL must use HTTPS: {base_url}. "
            "Set WEBHOOK_BASE_URL to the public https:// address of this service."
        )
    return base_url


def get_cors_allowed_origins() -> list[str]:
    """Get CORS allowlist.

    Production: explicit comma-separated CORS_ALLOWED_ORIGINS.
    Dev fallback: localhost variants used by the dashboard dev server.
    """
    cors_origins_env = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if cors_origins_env:
        return [origin.strip() for origin in cors_origins_env.split(",") if origin.strip()]
    return [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ]
