"""Push notification signature verification.

Shopify signs each webhook body with HMAC-SHA256 using the app's shared secret
and sends the base64 digest in X-Shopify-Hmac-Sha256. Verification must run on
the raw request bytes, before any JSON parsing.
"""

import base64
import binascii
import hashlib
import hmac
import logging
from typing import Optional

from storesync_api.config.env import get_shopify_webhook_secret

logger = logging.getLogger(__name__)


def compute_webhook_signature(raw_body: bytes, shared_secret: str) -> str:
    """Base64-encoded HMAC-SHA256 of raw_body."""
    digest = hmac.new(shared_secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_webhook_signature(
    raw_body: bytes,
    provided_signature: Optional[str],
    shared_secret: Optional[str],
) -> bool:
    """Check a push notification signature.

    Never raises: a missing secret, a missing or malformed signature all
    return False.

    Args:
        raw_body: Exact request body bytes as received
        provided_signature: Value of X-Shopify-Hmac-Sha256
        shared_secret: App shared secret

    Returns:
        True only if the signature matches
    """
    if not shared_secret:
        logger.warning("Webhook shared secret not configured; rejecting push")
        return False
    if not provided_signature:
        return False

    try:
        provided_bytes = provided_signature.encode("ascii")
        base64.b64decode(provided_bytes, validate=True)
    except (UnicodeEncodeError, binascii.Error):
        return False

    expected = compute_webhook_signature(raw_body, shared_secret).encode("ascii")
    # Constant-time over the encoded form, so non-canonical padding bits also fail
    return hmac.compare_digest(expected, provided_bytes)


def verify_shopify_webhook(raw_body: bytes, provided_signature: Optional[str]) -> bool:
    """verify_webhook_signature with the configured shared secret."""
    return verify_webhook_signature(raw_body, provided_signature, get_shopify_webhook_secret())
