"""Bulk ingestion pager.

Walks the Admin API to completion for one resource kind and feeds every record
through the upsert engine in BULK mode. Pages are fetched strictly in
sequence: a page's records are all written before the next page is requested.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from storesync_api.shopify.client import ShopifyAdminClient
from storesync_api.sync.payloads import ShopifyCustomer, ShopifyOrder, ShopifyProduct
from storesync_api.sync.tenants import resolve_access_credential, resolve_tenant
from storesync_api.sync.upsert import UpsertMode, upsert_customer, upsert_order, upsert_product

logger = logging.getLogger(__name__)

ORDERS_PAGE_LIMIT = 250


class EntityKind(str, enum.Enum):
    """Resource kinds mirrored into the relational model."""

    CUSTOMERS = "customers"
    PRODUCTS = "products"
    ORDERS = "orders"

    @property
    def record_model(self) -> type[BaseModel]:
        return _RECORD_MODELS[self]

    @property
    def upsert(self) -> Callable[[Session, str, BaseModel, UpsertMode], bool]:
        return _UPSERTS[self]


_RECORD_MODELS: dict[EntityKind, type[BaseModel]] = {
    EntityKind.CUSTOMERS: ShopifyCustomer,
    EntityKind.PRODUCTS: ShopifyProduct,
    EntityKind.ORDERS: ShopifyOrder,
}

_UPSERTS = {
    EntityKind.CUSTOMERS: upsert_customer,
    EntityKind.PRODUCTS: upsert_product,
    EntityKind.ORDERS: upsert_order,
}


@dataclass
class IngestResult:
    kind: EntityKind
    pages: int = 0
    records: int = 0
    written: int = 0


def parse_next_link(link_header: Optional[str]) -> Optional[str]:
    """Extract the rel="next" URL from a Link header.

    Format: <url>; rel="previous", <url>; rel="next"
    Segments are split on ',' then ';'. Returns None when there is no next page.
    """
    if not link_header:
        return None

    for part in link_header.split(","):
        section = part.split(";")
        if len(section) < 2:
            continue
        url_part = section[0].strip()
        rel_part = section[1].strip()
        if rel_part == 'rel="next"':
            return url_part[1:-1]
    return None


def _first_page_url(client: ShopifyAdminClient, kind: EntityKind) -> str:
    if kind is EntityKind.ORDERS:
        return client.resource_url("orders", status="any", limit=ORDERS_PAGE_LIMIT)
    return client.resource_url(kind.value)


async def ingest(
    db: Session,
    kind: EntityKind,
    shop_domain: str,
    client: Optional[ShopifyAdminClient] = None,
) -> IngestResult:
    """Pull every record of one kind for a store.

    Customers and products are fetched as a single page; orders follow the
    Link header until no next page remains.

    Raises:
        TenantNotFoundError: Store never connected
        CredentialMissingError: Store must be reconnected via OAuth
        UpstreamFailureError: Admin API call failed
    """
    access_token = resolve_access_credential(db, shop_domain)
    tenant_id = resolve_tenant(db, shop_domain)
    if client is None:
        client = ShopifyAdminClient(shop_domain, access_token)

    result = IngestResult(kind=kind)
    record_model = kind.record_model
    follow_links = kind is EntityKind.ORDERS

    next_url: Optional[str] = _first_page_url(client, kind)
    while next_url:
        body, link_header = await client.get_page(next_url)
        result.pages += 1

        for raw in body.get(kind.value) or []:
            record = record_model.model_validate(raw)
            result.records += 1
            if kind.upsert(db, tenant_id, record, UpsertMode.BULK):
                result.written += 1

        next_url = parse_next_link(link_header) if follow_links else None

    logger.info(
        "Bulk ingestion completed",
        extra={
            "event": "ingest.completed",
            "kind": kind.value,
            "pages": result.pages,
            "records": result.records,
            "written": result.written,
        },
    )
    return result
