"""Shopify Admin REST API client.

One httpx.AsyncClient per call, 30s timeout. Transport-level and HTTP status
failures are wrapped in UpstreamFailureError so callers deal with one type.

API Reference:
- REST Admin API: https://shopify.dev/docs/api/admin-rest
- Pagination: https://shopify.dev/docs/api/usage/pagination-rest
"""

import logging
from typing import Any, Optional

import httpx

from storesync_api.config.env import get_shopify_api_version
from storesync_api.errors import UpstreamFailureError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 30.0


class ShopifyAdminClient:
    """Admin API client bound to one store and its access token."""

    def __init__(
        self,
        shop_domain: str,
        access_token: str,
        api_version: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.shop_domain = shop_domain
        self.access_token = access_token
        self.api_version = api_version or get_shopify_api_version()
        # Injected in tests (httpx.MockTransport)
        self.transport = transport

    @property
    def base_url(self) -> str:
        return f"https://{self.shop_domain}/admin/api/{self.api_version}"

    def resource_url(self, resource: str, **params: Any) -> str:
        """Absolute URL of a collection, e.g. resource_url("orders", status="any")."""
        url = f"{self.base_url}/{resource}.json"
        if params:
            query = "&".join(f"{key}={value}" for key, value in params.items())
            url = f"{url}?{query}"
        return url

    def _headers(self) -> dict[str, str]:
        return {
            "X-Shopify-Access-Token": self.access_token,
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.request(
                    method, url, headers=self._headers(), timeout=REQUEST_TIMEOUT_SECONDS, **kwargs
                )
                response.raise_for_status()
                return response
        except httpx.HTTPStatusError as e:
            logger.error(
                "Shopify API returned error status",
                extra={
                    "event": "shopify.api.http_error",
                    "method": method,
                    "status_code": e.response.status_code,
                    "path": e.request.url.path,
                },
            )
            raise UpstreamFailureError(
                f"Shopify API {method} {e.request.url.path} failed with status {e.response.status_code}",
                upstream_status=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            logger.error(
                "Shopify API request failed",
                extra={
                    "event": "shopify.api.request_error",
                    "method": method,
                    "error_type": type(e).__name__,
                },
            )
            raise UpstreamFailureError(
                f"Shopify API {method} request failed: {type(e).__name__}"
            ) from e

    async def get_page(self, url: str) -> tuple[dict[str, Any], Optional[str]]:
        """Fetch one page.

        Returns:
            (decoded JSON body, raw Link header or None)
        """
        response = await self._request("GET", url)
        return response.json(), response.headers.get("link")

    async def list_webhooks(self, topic: Optional[str] = None) -> list[dict[str, Any]]:
        """Webhook subscriptions of this store, optionally filtered by topic."""
        params = {"topic": topic} if topic else {}
        response = await self._request("GET", self.resource_url("webhooks"), params=params)
        return response.json().get("webhooks", [])

    async def create_webhook(self, topic: str, address: str) -> dict[str, Any]:
        """Subscribe address to topic (JSON format)."""
        body = {"webhook": {"topic": topic, "address": address, "format": "json"}}
        response = await self._request("POST", self.resource_url("webhooks"), json=body)
        return response.json().get("webhook", {})

    async def delete_webhook(self, webhook_id: int) -> None:
        await self._request("DELETE", f"{self.base_url}/webhooks/{webhook_id}.json")
