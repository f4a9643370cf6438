"""Shopify push notification endpoints.

One route per WebhookTopic: POST /webhooks/{topic}.

Status taxonomy (Shopify retries anything non-2xx for 48h):
  Signature invalid / missing                  → 401 problem+json
  Verified, processed                          → 200 {"status": "ok"}
  Verified, tenant unknown / payload invalid   → 200 (logged; a retry cannot help)
  Verified, internal processing error          → 200 (logged with payload_hash)
"""

import json as _json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from storesync_api.context import shop_domain_var
from storesync_api.db.session import get_db
from storesync_api.errors import UnauthorizedError
from storesync_api.problem_details import problem_response
from storesync_api.schemas import WebhookAck
from storesync_api.sync.topics import RouteOutcome, WebhookTopic, route
from storesync_api.sync.verification import verify_shopify_webhook
from storesync_api.utils.sanitize import payload_digest

router = APIRouter(prefix="/webhooks", tags=["webhooks"])
logger = logging.getLogger(__name__)


def _signature_problem(request: Request, payload_hash: str) -> JSONResponse:
    """Log once + return RFC 9457 Problem Details for a failed signature check."""
    error = UnauthorizedError("HMAC signature verification failed")
    logger.warning(
        error.error_code,
        extra={
            "event": "webhook.signature_invalid",
            "path": request.url.path,
            "headers": dict(request.headers),
            "payload_hash": payload_hash,
        },
    )

    return problem_response(
        status=error.status_code,
        type_uri=error.error_type,
        title=error.title,
        detail=error.detail,
    )


def _make_endpoint(topic: WebhookTopic):
    async def receive_webhook(
        request: Request,
        db: Session = Depends(get_db),
        x_shopify_shop_domain: Optional[str] = Header(None, alias="X-Shopify-Shop-Domain"),
        x_shopify_hmac_sha256: Optional[str] = Header(None, alias="X-Shopify-Hmac-Sha256"),
    ):
        # Raw bytes first: the signature covers the exact body as sent
        raw_body: bytes = await request.body()
        payload_hash = payload_digest(raw_body)

        if not verify_shopify_webhook(raw_body, x_shopify_hmac_sha256):
            return _signature_problem(request, payload_hash)

        shop_domain = x_shopify_shop_domain or ""
        shop_domain_var.set(shop_domain)

        logger.info(
            "WEBHOOK_RECEIVED",
            extra={
                "event": "webhook.received",
                "topic": topic.value,
                "payload_hash": payload_hash,
                "payload_size": len(raw_body),
            },
        )

        try:
            payload = _json.loads(raw_body)
            outcome = route(db, topic, shop_domain, payload)
        except Exception:
            db.rollback()
            logger.error(
                "WEBHOOK_PROCESSING_FAILED",
                extra={
                    "event": "webhook.processing_failed",
                    "topic": topic.value,
                    "payload_hash": payload_hash,
                },
                exc_info=True,
            )
            outcome = None

        if outcome is not RouteOutcome.PROCESSED:
            logger.warning(
                "WEBHOOK_ABANDONED",
                extra={
                    "event": "webhook.abandoned",
                    "topic": topic.value,
                    "outcome": outcome.value if outcome else "error",
                    "payload_hash": payload_hash,
                },
            )

        return WebhookAck()

    receive_webhook.__name__ = f"webhook_{topic.name.lower()}"
    return receive_webhook


for _topic in WebhookTopic:
    router.add_api_route(
        f"/{_topic.value}",
        _make_endpoint(_topic),
        methods=["POST"],
        response_model=WebhookAck,
        summary=f"Receive {_topic.value} push notification",
    )
