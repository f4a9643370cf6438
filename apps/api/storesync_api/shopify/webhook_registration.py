"""Webhook subscription management for a connected store."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from storesync_api.config.env import get_webhook_base_url
from storesync_api.errors import StoreSyncError
from storesync_api.shopify.client import ShopifyAdminClient
from storesync_api.sync.tenants import resolve_access_credential
from storesync_api.sync.topics import WebhookTopic

logger = logging.getLogger(__name__)


def callback_address(base_url: str, topic: WebhookTopic) -> str:
    """Public URL this service receives topic at."""
    return f"{base_url}/webhooks/{topic.value}"


async def register_webhooks(
    db: Session,
    shop_domain: str,
    client: Optional[ShopifyAdminClient] = None,
) -> dict[str, str]:
    """Subscribe the store to every WebhookTopic.

    Per topic: delete existing subscriptions pointing at our own callback
    address, then create a fresh one. A failed topic is logged and skipped.

    Raises:
        ValueError: Webhook base URL is not https://
        TenantNotFoundError / CredentialMissingError: Store not usable

    Returns:
        topic -> "registered" | "failed"
    """
    base_url = get_webhook_base_url()
    access_token = resolve_access_credential(db, shop_domain)
    if client is None:
        client = ShopifyAdminClient(shop_domain, access_token)

    results: dict[str, str] = {}
    for topic in WebhookTopic:
        address = callback_address(base_url, topic)
        try:
            for existing in await client.list_webhooks(topic=topic.value):
                if existing.get("address") == address:
                    await client.delete_webhook(existing["id"])
                    logger.info(
                        "Deleted existing webhook",
                        extra={"event": "webhook.subscription.deleted", "topic": topic.value},
                    )
            await client.create_webhook(topic.value, address)
            results[topic.value] = "registered"
            logger.info(
                "Registered webhook",
                extra={"event": "webhook.subscription.created", "topic": topic.value, "address": address},
            )
        except StoreSyncError as e:
            results[topic.value] = "failed"
            logger.error(
                "Failed to register webhook",
                extra={
                    "event": "webhook.subscription.failed",
                    "topic": topic.value,
                    "address": address,
                    "error": e.detail,
                },
            )

    return results


async def unregister_webhooks(
    db: Session,
    shop_domain: str,
    client: Optional[ShopifyAdminClient] = None,
) -> dict[str, int]:
    """Delete every subscription whose address starts with our base URL.

    Returns:
        topic -> number of subscriptions removed for it
    """
    base_url = get_webhook_base_url()
    access_token = resolve_access_credential(db, shop_domain)
    if client is None:
        client = ShopifyAdminClient(shop_domain, access_token)

    removed: dict[str, int] = {}
    for existing in await client.list_webhooks():
        address = existing.get("address") or ""
        if address.startswith(base_url):
            await client.delete_webhook(existing["id"])
            topic = existing.get("topic") or "unknown"
            removed[topic] = removed.get(topic, 0) + 1
            logger.info(
                "Deleted webhook",
                extra={
                    "event": "webhook.subscription.deleted",
                    "topic": topic,
                    "webhook_id": existing["id"],
                },
            )

    return removed
