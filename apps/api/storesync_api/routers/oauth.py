"""Shopify OAuth install endpoints.

GET /shopify/auth      → 302 to the store's consent screen
GET /shopify/callback  → exchange code, store tenant, link user, register webhooks
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from storesync_api.context import shop_domain_var
from storesync_api.db.session import get_db
from storesync_api.errors import StoreSyncError
from storesync_api.problem_details import operation_problem
from storesync_api.schemas import OAuthCallbackResponse
from storesync_api.shopify.oauth import (
    build_authorize_url,
    exchange_code_for_token,
    is_valid_shop_domain,
)
from storesync_api.shopify.webhook_registration import register_webhooks
from storesync_api.sync.tenants import link_user, upsert_tenant

router = APIRouter(prefix="/shopify", tags=["oauth"])
logger = logging.getLogger(__name__)


@router.get("/auth")
async def start_install(
    shop: Optional[str] = Query(None),
    # External contract name kept for existing dashboard clients
    subject_id: Optional[str] = Query(None, alias="firebase_uid"),
):
    """Redirect the merchant to the consent screen.

    The caller's subject id rides along as the OAuth state parameter.
    """
    if not shop:
        raise HTTPException(status_code=400, detail="Missing shop parameter")
    if not is_valid_shop_domain(shop):
        raise HTTPException(status_code=400, detail=f"Invalid shop domain: {shop}")
    if not subject_id:
        raise HTTPException(status_code=400, detail="Missing firebase_uid parameter")

    return RedirectResponse(url=build_authorize_url(shop, state=subject_id), status_code=302)


@router.get("/callback", response_model=OAuthCallbackResponse)
async def oauth_callback(
    shop: Optional[str] = Query(None),
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Complete the install.

    Webhook registration is best effort: a store whose subscriptions failed is
    still connected and can be registered again via /api/register-webhooks.
    """
    if not shop or not code:
        raise HTTPException(status_code=400, detail="Missing shop or code")
    if not is_valid_shop_domain(shop):
        raise HTTPException(status_code=400, detail=f"Invalid shop domain: {shop}")
    if not state:
        raise HTTPException(status_code=400, detail="Missing user id in state")

    shop_domain_var.set(shop)

    try:
        access_token = await exchange_code_for_token(shop, code)
        tenant_id = upsert_tenant(db, shop, access_token)
        link_user(db, state, shop)
    except StoreSyncError as e:
        logger.error("OAuth callback failed", extra={"event": "shopify.oauth.failed", "error_code": e.error_code})
        return operation_problem("OAuth Error", f"OAuth error: {e.detail}")
    except ValueError as e:
        # Missing app credentials in environment
        logger.error("OAuth callback misconfigured", extra={"event": "shopify.oauth.misconfig"})
        return operation_problem("OAuth Error", f"OAuth error: {e}")

    webhooks: dict[str, str] = {}
    try:
        webhooks = await register_webhooks(db, shop)
    except (StoreSyncError, ValueError):
        logger.error(
            "Webhook registration failed after install",
            extra={"event": "shopify.oauth.webhooks_failed"},
            exc_info=True,
        )

    return OAuthCallbackResponse(
        shop=shop,
        tenant_id=tenant_id,
        webhooks=webhooks,
        message=(
            f"Shop {shop} connected successfully. "
            "You can now close this window and return to the dashboard."
        ),
    )
