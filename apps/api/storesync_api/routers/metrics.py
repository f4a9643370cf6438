"""Dashboard metrics endpoint."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storesync_api.auth.session_auth import (
    SessionAuthContext,
    get_session_auth_context,
    require_store_access,
)
from storesync_api.context import shop_domain_var, tenant_id_var
from storesync_api.db.session import get_db
from storesync_api.metrics import compute_metrics
from storesync_api.schemas import MetricsResponse

router = APIRouter(prefix="/api", tags=["metrics"])


@router.get("/metrics", response_model=MetricsResponse)
async def get_metrics(
    shop: str = Query(..., min_length=1),
    start: Optional[date] = Query(None, description="Inclusive start date (YYYY-MM-DD)"),
    end: Optional[date] = Query(None, description="Inclusive end date (YYYY-MM-DD)"),
    auth: SessionAuthContext = Depends(get_session_auth_context),
    db: Session = Depends(get_db),
) -> MetricsResponse:
    """Customer and order rollups for a store the session user is linked to."""
    shop_domain_var.set(shop)
    tenant_id = require_store_access(db, auth, shop)
    tenant_id_var.set(tenant_id)

    metrics = compute_metrics(db, tenant_id, start=start, end=end)
    return MetricsResponse(
        customers=metrics.customers,
        orders=metrics.orders,
        revenue=metrics.revenue,
        aov=metrics.aov,
        repeat_rate=metrics.repeat_rate,
        top_customers=metrics.top_customers,
        orders_by_date=metrics.orders_by_date,
        trends=metrics.revenue_by_date,
    )
