"""Store management endpoints for the dashboard and operators."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from storesync_api.auth.session_auth import SessionAuthContext, get_session_auth_context
from storesync_api.context import shop_domain_var
from storesync_api.db.session import get_db
from storesync_api.errors import StoreSyncError, TenantNotFoundError
from storesync_api.problem_details import operation_problem
from storesync_api.schemas import (
    ConnectStoreResponse,
    ShopRequest,
    ShopResponse,
    StoreListResponse,
    StoreSummary,
    WebhookRegistrationResponse,
    WebhookRemovalResponse,
)
from storesync_api.shopify.webhook_registration import register_webhooks, unregister_webhooks
from storesync_api.sync.tenants import find_user_store, link_user, list_user_stores

router = APIRouter(prefix="/api", tags=["stores"])
logger = logging.getLogger(__name__)


@router.get("/stores", response_model=StoreListResponse)
async def list_stores(
    auth: SessionAuthContext = Depends(get_session_auth_context),
    db: Session = Depends(get_db),
) -> StoreListResponse:
    """Stores the session user is linked to, most recently connected first."""
    tenants = list_user_stores(db, auth.subject_id)
    return StoreListResponse(
        stores=[
            StoreSummary(id=t.id, shop_domain=t.shop_domain, display_name=t.display_name)
            for t in tenants
        ]
    )


@router.get("/shop", response_model=ShopResponse)
async def get_shop(
    store_id: Optional[str] = Query(None),
    auth: SessionAuthContext = Depends(get_session_auth_context),
    db: Session = Depends(get_db),
) -> ShopResponse:
    """Resolve a linked store's domain (the newest one when store_id is omitted)."""
    tenant = find_user_store(db, auth.subject_id, store_id)
    if tenant is None:
        detail = "Store not found" if store_id else "No stores found for this user"
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return ShopResponse(shop=tenant.shop_domain)


@router.post("/connect-store", response_model=ConnectStoreResponse)
async def connect_store(
    body: ShopRequest,
    auth: SessionAuthContext = Depends(get_session_auth_context),
    db: Session = Depends(get_db),
) -> ConnectStoreResponse:
    """Link the session user to a store that has already completed OAuth."""
    try:
        tenant_id = link_user(db, auth.subject_id, body.shop)
    except TenantNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.detail)
    return ConnectStoreResponse(shop=body.shop, tenant_id=tenant_id)


@router.post("/register-webhooks", response_model=WebhookRegistrationResponse)
async def register_store_webhooks(body: ShopRequest, db: Session = Depends(get_db)):
    """Subscribe a store to every push notification topic."""
    shop_domain_var.set(body.shop)
    try:
        topics = await register_webhooks(db, body.shop)
    except (StoreSyncError, ValueError) as e:
        detail = e.detail if isinstance(e, StoreSyncError) else str(e)
        logger.error("Webhook registration failed", extra={"event": "webhook.registration.failed"})
        return operation_problem("Webhook Registration Failed", f"Error: {detail}")
    return WebhookRegistrationResponse(shop=body.shop, topics=topics)


@router.post("/unregister-webhooks", response_model=WebhookRemovalResponse)
async def unregister_store_webhooks(body: ShopRequest, db: Session = Depends(get_db)):
    """Remove every subscription pointing at this service."""
    shop_domain_var.set(body.shop)
    try:
        removed = await unregister_webhooks(db, body.shop)
    except (StoreSyncError, ValueError) as e:
        detail = e.detail if isinstance(e, StoreSyncError) else str(e)
        logger.error("Webhook unregistration failed", extra={"event": "webhook.unregistration.failed"})
        return operation_problem("Webhook Unregistration Failed", f"Error: {detail}")
    return WebhookRemovalResponse(shop=body.shop, removed=removed)
