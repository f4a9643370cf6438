"""Push notification routing.

WebhookTopic is the closed set of subscribed topics. Each member knows which
entity it carries and how a conflicting row is treated, so the router and the
HTTP layer never dispatch on free-form strings.
"""

import enum
import logging
from typing import Any

from pydantic import ValidationError
from sqlalchemy.orm import Session

from storesync_api.context import tenant_id_var
from storesync_api.errors import TenantNotFoundError
from storesync_api.sync.pager import EntityKind
from storesync_api.sync.tenants import resolve_tenant
from storesync_api.sync.upsert import UpsertMode, record_event

logger = logging.getLogger(__name__)


class WebhookTopic(str, enum.Enum):
    ORDERS_CREATE = "orders/create"
    ORDERS_UPDATED = "orders/updated"
    ORDERS_PAID = "orders/paid"
    ORDERS_CANCELLED = "orders/cancelled"
    CUSTOMERS_CREATE = "customers/create"
    CUSTOMERS_UPDATE = "customers/update"
    PRODUCTS_CREATE = "products/create"
    PRODUCTS_UPDATE = "products/update"

    @property
    def entity(self) -> EntityKind:
        return EntityKind(self.value.split("/", 1)[0])

    @property
    def mode(self) -> UpsertMode:
        # paid / cancelled carry a full order body; no status column is kept
        if self.value.endswith("/create"):
            return UpsertMode.CREATE
        return UpsertMode.UPDATE

    @property
    def handler(self):
        """Upsert function for this topic's entity."""
        return self.entity.upsert


class RouteOutcome(str, enum.Enum):
    PROCESSED = "processed"
    TENANT_NOT_FOUND = "tenant_not_found"
    INVALID_PAYLOAD = "invalid_payload"


def route(db: Session, topic: WebhookTopic, shop_domain: str, payload: Any) -> RouteOutcome:
    """Apply a verified push notification.

    Unknown tenants and unparseable bodies are logged and abandoned; the sender
    retries on non-2xx, and a retry cannot fix either condition.
    """
    try:
        tenant_id = resolve_tenant(db, shop_domain)
    except TenantNotFoundError:
        logger.error(
            "Tenant not found for push notification",
            extra={"event": "webhook.tenant_not_found", "topic": topic.value},
        )
        return RouteOutcome.TENANT_NOT_FOUND

    tenant_id_var.set(tenant_id)

    try:
        record = topic.entity.record_model.model_validate(payload)
    except ValidationError as e:
        logger.error(
            "Invalid push notification payload",
            extra={
                "event": "webhook.invalid_payload",
                "topic": topic.value,
                "errors": e.error_count(),
                "payload": payload,
            },
        )
        return RouteOutcome.INVALID_PAYLOAD

    written = topic.handler(db, tenant_id, record, topic.mode)
    record_event(db, tenant_id, topic.value, payload)

    logger.info(
        "Push notification processed",
        extra={
            "event": "webhook.processed",
            "topic": topic.value,
            "record_id": record.id,
            "written": written,
        },
    )
    return RouteOutcome.PROCESSED
