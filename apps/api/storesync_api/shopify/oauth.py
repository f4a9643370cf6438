"""Shopify OAuth install flow (authorization code grant).

Reference: https://shopify.dev/docs/apps/auth/oauth/getting-started
"""

import logging
import re
from typing import Optional
from urllib.parse import urlencode

import httpx

from storesync_api.config.env import (
    get_app_url,
    get_shopify_api_key,
    get_shopify_api_secret,
    get_shopify_scopes,
)
from storesync_api.errors import UpstreamFailureError

logger = logging.getLogger(__name__)

# Bare hostname: no scheme, path, port or credentials
_SHOP_DOMAIN_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)+$")


def is_valid_shop_domain(shop: Optional[str]) -> bool:
    return bool(shop) and _SHOP_DOMAIN_RE.match(shop) is not None


def build_authorize_url(shop: str, state: str) -> str:
    """URL the merchant is redirected to for consent.

    The state parameter round-trips the identity-provider subject id so the
    callback can link the new tenant to the user who started the install.
    """
    query = urlencode(
        {
            "client_id": get_shopify_api_key(),
            "scope": get_shopify_scopes(),
            "redirect_uri": f"{get_app_url()}/shopify/callback",
            "state": state,
        }
    )
    return f"https://{shop}/admin/oauth/authorize?{query}"


async def exchange_code_for_token(
    shop: str,
    code: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Exchange an authorization code for a permanent access token.

    Raises:
        UpstreamFailureError: If Shopify rejects the code or is unreachable
    """
    url = f"https://{shop}/admin/oauth/access_token"
    body = {
        "client_id": get_shopify_api_key(),
        "client_secret": get_shopify_api_secret(),
        "code": code,
    }

    try:
        async with httpx.AsyncClient(transport=transport) as client:
            response = await client.post(url, json=body, timeout=30.0)
            response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise UpstreamFailureError(
            f"OAuth code exchange failed with status {e.response.status_code}",
            upstream_status=e.response.status_code,
        ) from e
    except httpx.RequestError as e:
        raise UpstreamFailureError(f"OAuth code exchange failed: {type(e).__name__}") from e

    access_token = response.json().get("access_token")
    if not access_token:
        raise UpstreamFailureError("OAuth code exchange returned no access_token")

    logger.info("OAuth code exchanged", extra={"event": "shopify.oauth.exchanged"})
    return access_token
