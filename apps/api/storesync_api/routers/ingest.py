"""Operator-triggered bulk ingestion endpoints.

POST /ingest/{customers|products|orders} walks the Admin API for one kind and
upserts every record. Failures surface to the operator as 500 problem+json
whose detail carries the remediation (connect / reconnect the store, upstream
status).
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storesync_api.context import shop_domain_var
from storesync_api.db.session import get_db
from storesync_api.errors import StoreSyncError
from storesync_api.problem_details import operation_problem
from storesync_api.schemas import (
    IngestEventRequest,
    IngestEventResponse,
    IngestResponse,
    ShopRequest,
)
from storesync_api.sync.pager import EntityKind, ingest
from storesync_api.sync.tenants import resolve_tenant
from storesync_api.sync.upsert import record_event

router = APIRouter(prefix="/ingest", tags=["ingest"])
logger = logging.getLogger(__name__)


# Declared before /{kind} so "events" is not parsed as an EntityKind
@router.post("/events", response_model=IngestEventResponse)
async def ingest_event(
    body: IngestEventRequest,
    db: Session = Depends(get_db),
):
    """Append a custom client event to the store's event log."""
    shop_domain_var.set(body.shop)
    try:
        tenant_id = resolve_tenant(db, body.shop)
        event_id = record_event(db, tenant_id, body.event_type, body.payload)
    except StoreSyncError as e:
        logger.error("Event ingestion failed", extra={"event": "ingest.event.failed", "error_code": e.error_code})
        return operation_problem("Event Ingestion Failed", e.detail)
    except Exception:
        db.rollback()
        logger.error("Event ingestion failed", extra={"event": "ingest.event.failed"}, exc_info=True)
        return operation_problem("Event Ingestion Failed", "Internal error while storing event")

    return IngestEventResponse(event_id=event_id, event_type=body.event_type)


@router.post("/{kind}", response_model=IngestResponse)
async def ingest_kind(
    kind: EntityKind,
    body: ShopRequest,
    db: Session = Depends(get_db),
):
    """Pull every record of kind for a connected store."""
    shop_domain_var.set(body.shop)
    try:
        result = await ingest(db, kind, body.shop)
    except StoreSyncError as e:
        logger.error(
            "Bulk ingestion failed",
            extra={"event": "ingest.failed", "kind": kind.value, "error_code": e.error_code},
        )
        return operation_problem("Ingestion Failed", e.detail)
    except Exception as e:
        db.rollback()
        logger.error(
            "Bulk ingestion failed",
            extra={"event": "ingest.failed", "kind": kind.value},
            exc_info=True,
        )
        return operation_problem("Ingestion Failed", f"Error: {type(e).__name__}")

    return IngestResponse(
        kind=kind.value,
        shop=body.shop,
        pages=result.pages,
        records=result.records,
        written=result.written,
    )
