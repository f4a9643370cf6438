"""Shared constants and builders for API tests."""

import base64
import hashlib
import hmac
import json
from typing import Any

import httpx

from storesync_api.shopify.client import ShopifyAdminClient

WEBHOOK_SECRET = "test-webhook-secret"
SHOP = "shop1.test"
ACCESS_TOKEN = "shpat_test_token"
SUBJECT_ID = "user-123"


def sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    """Base64 HMAC-SHA256 of body, as sent in X-Shopify-Hmac-Sha256."""
    return base64.b64encode(hmac.new(secret.encode(), body, hashlib.sha256).digest()).decode()


def signed_headers(body: bytes, shop: str = SHOP) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "X-Shopify-Shop-Domain": shop,
        "X-Shopify-Hmac-Sha256": sign(body),
    }


def encode(payload: Any) -> bytes:
    return json.dumps(payload).encode()


class RecordingTransport:
    """Serves queued responses in order and records every request."""

    def __init__(self, responses: list[httpx.Response]):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)

    def client(self, shop: str = SHOP, access_token: str = ACCESS_TOKEN) -> ShopifyAdminClient:
        return ShopifyAdminClient(shop, access_token, transport=httpx.MockTransport(self))
