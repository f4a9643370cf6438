"""Idempotent upsert engine.

Every write is a single INSERT ... ON CONFLICT against the natural-key unique
constraint (tenant_id, shopify_*_id), committed on its own. Re-delivered or
replayed records therefore never duplicate rows and never race a prior read.

Conflict policy per mode:
- BULK:   DO NOTHING (a bulk pull never clobbers data already present)
- CREATE: DO NOTHING
- UPDATE: DO UPDATE, last write wins (no timestamp comparison)
"""

import enum
import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from storesync_api.db.models import Customer, Event, Order, Product
from storesync_api.db.statements import insert_for
from storesync_api.sync.payloads import ShopifyCustomer, ShopifyOrder, ShopifyProduct

logger = logging.getLogger(__name__)


class UpsertMode(str, enum.Enum):
    """How a conflicting row is treated."""

    BULK = "bulk"
    CREATE = "create"
    UPDATE = "update"


def _customer_values(tenant_id: str, customer: ShopifyCustomer) -> dict[str, Any]:
    return {
        "tenant_id": tenant_id,
        "shopify_customer_id": customer.id,
        "email": customer.email,
        "first_name": customer.first_name,
        "last_name": customer.last_name,
        "created_at": customer.created_at,
        "updated_at": customer.updated_at,
    }


def upsert_customer(
    db: Session, tenant_id: str, customer: ShopifyCustomer, mode: UpsertMode
) -> bool:
    """Write a customer record.

    Returns:
        True if a row was inserted or updated, False if the conflict was ignored
    """
    stmt = insert_for(db, Customer.__table__).values(**_customer_values(tenant_id, customer))
    if mode is UpsertMode.UPDATE:
        stmt = stmt.on_conflict_do_update(
            index_elements=["tenant_id", "shopify_customer_id"],
            set_={
                "email": stmt.excluded.email,
                "first_name": stmt.excluded.first_name,
                "last_name": stmt.excluded.last_name,
                "updated_at": stmt.excluded.updated_at,
            },
        )
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=["tenant_id", "shopify_customer_id"])

    result = db.execute(stmt)
    db.commit()
    return result.rowcount > 0


def upsert_product(
    db: Session, tenant_id: str, product: ShopifyProduct, mode: UpsertMode
) -> bool:
    """Write a product record, priced from its first variant."""
    stmt = insert_for(db, Product.__table__).values(
        tenant_id=tenant_id,
        shopify_product_id=product.id,
        title=product.title,
        price=product.price,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )
    if mode is UpsertMode.UPDATE:
        stmt = stmt.on_conflict_do_update(
            index_elements=["tenant_id", "shopify_product_id"],
            set_={
                "title": stmt.excluded.title,
                "price": stmt.excluded.price,
                "updated_at": stmt.excluded.updated_at,
            },
        )
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=["tenant_id", "shopify_product_id"])

    result = db.execute(stmt)
    db.commit()
    return result.rowcount > 0


def _lookup_customer_id(db: Session, tenant_id: str, shopify_customer_id: int) -> Optional[int]:
    stmt = select(Customer.id).where(
        Customer.tenant_id == tenant_id,
        Customer.shopify_customer_id == shopify_customer_id,
    )
    return db.execute(stmt).scalar_one_or_none()


def ensure_customer(db: Session, tenant_id: str, customer: ShopifyCustomer) -> int:
    """Insert-or-ignore the customer embedded in an order, then return its internal id.

    Push notifications arrive in any order, so an order may reference a
    customer whose own notification has not been processed yet.
    """
    stmt = insert_for(db, Customer.__table__).values(**_customer_values(tenant_id, customer))
    stmt = stmt.on_conflict_do_nothing(index_elements=["tenant_id", "shopify_customer_id"])
    result = db.execute(stmt)
    db.commit()

    if result.rowcount > 0:
        logger.info(
            "Created customer referenced by order",
            extra={"tenant": tenant_id, "shopify_customer_id": customer.id},
        )

    customer_id = _lookup_customer_id(db, tenant_id, customer.id)
    if customer_id is None:
        raise RuntimeError(
            f"Customer {customer.id} missing after insert for tenant {tenant_id}"
        )
    return customer_id


def upsert_order(db: Session, tenant_id: str, order: ShopifyOrder, mode: UpsertMode) -> bool:
    """Write an order record, resolving its customer reference first.

    BULK only looks the customer up (guest or not-yet-ingested customers store
    NULL). CREATE and UPDATE create a minimal customer row when missing.
    """
    customer_id: Optional[int] = None
    if order.customer is not None:
        if mode is UpsertMode.BULK:
            customer_id = _lookup_customer_id(db, tenant_id, order.customer.id)
        else:
            customer_id = ensure_customer(db, tenant_id, order.customer)

    stmt = insert_for(db, Order.__table__).values(
        tenant_id=tenant_id,
        shopify_order_id=order.id,
        customer_id=customer_id,
        total_price=order.total_price,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )
    if mode is UpsertMode.UPDATE:
        stmt = stmt.on_conflict_do_update(
            index_elements=["tenant_id", "shopify_order_id"],
            set_={
                "customer_id": stmt.excluded.customer_id,
                "total_price": stmt.excluded.total_price,
                "updated_at": stmt.excluded.updated_at,
            },
        )
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=["tenant_id", "shopify_order_id"])

    result = db.execute(stmt)
    db.commit()
    return result.rowcount > 0


def record_event(db: Session, tenant_id: str, event_type: str, payload: Any) -> int:
    """Append to the event log. Returns the new event id."""
    event = Event(tenant_id=tenant_id, event_type=event_type, payload=payload)
    db.add(event)
    db.commit()
    db.refresh(event)
    return event.id
