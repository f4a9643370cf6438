"""Redaction of Shopify secrets and customer PII before anything is logged.

Push notification bodies and request headers are the two things this service
is tempted to log. Both are walked here:

- header names are compared case-insensitively with ``_`` and ``-`` treated
  alike, so ``X-Shopify-Hmac-Sha256``, ``x-shopify-hmac-sha256`` and
  ``x_shopify_hmac_sha256`` are the same key
- address blocks (``billing_address``, ``shipping_address``,
  ``default_address``, ``addresses``) keep only their ``id``
- ``customer`` blocks are walked with the PII key list, so an embedded
  customer keeps its ``id`` but loses ``email``, ``phone`` and names
- free text is scrubbed with one alternation regex; text above
  ``MAX_TEXT_LEN`` is replaced by its length and digest instead
"""

import hashlib
import re
import traceback
from typing import Any

REDACTED = "[REDACTED]"

MAX_TEXT_LEN: int = 2048
MAX_DEPTH: int = 6


def _key(name: str) -> str:
    return name.strip().lower().replace("_", "-")


_SECRET_KEYS = frozenset(_key(k) for k in (
    "authorization",
    "cookie",
    "x-shopify-access-token",
    "x-shopify-hmac-sha256",
    "access_token",
    "token",
    "client_secret",
    "shopify_api_secret",
    "shopify_webhook_secret",
    "api_key",
    "hmac",
    "signature",
    "code",
))

_PII_KEYS = frozenset(_key(k) for k in (
    "email",
    "phone",
    "first_name",
    "last_name",
    "contact_email",
    "customer_email",
    "browser_ip",
))

_ADDRESS_KEYS = frozenset(_key(k) for k in (
    "billing_address",
    "shipping_address",
    "default_address",
    "addresses",
))

_TEXT_SECRETS = re.compile(
    r"(?:Bearer|Basic) \S+"
    r"|shpat_\S+"
    r"|\b(?:access_token|client_secret|code|hmac)=[^&\s]+"
    r"|[\w.+-]+@[\w-]+\.[\w.-]+"
)


def payload_digest(raw: bytes) -> str:
    """sha256 hex of a raw body; the only form a payload is logged in by default."""
    return hashlib.sha256(raw).hexdigest()


def redact_text(text: str) -> str:
    if len(text) > MAX_TEXT_LEN:
        digest = hashlib.sha256(text.encode("utf-8", errors="replace")).hexdigest()[:16]
        return f"[TRUNCATED len={len(text)} sha256={digest}]"
    return _TEXT_SECRETS.sub(REDACTED, text)


def _redact_address(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [_redact_address(item) for item in value]
    if isinstance(value, dict):
        return {k: (v if k == "id" else REDACTED) for k, v in value.items()}
    return REDACTED if value is not None else None


def redact_value(value: Any, depth: int = 0) -> Any:
    """Walk a log extra (headers, payloads, scalars) and redact it."""
    if depth >= MAX_DEPTH:
        return "[DEPTH_LIMIT]"

    if isinstance(value, str):
        return redact_text(value)

    if isinstance(value, (list, tuple)):
        return [redact_value(item, depth + 1) for item in value]

    if isinstance(value, dict):
        cleaned: dict[Any, Any] = {}
        for name, item in value.items():
            key = _key(name) if isinstance(name, str) else None
            if key in _SECRET_KEYS or key in _PII_KEYS:
                cleaned[name] = None if item is None else REDACTED
            elif key in _ADDRESS_KEYS:
                cleaned[name] = _redact_address(item)
            else:
                cleaned[name] = redact_value(item, depth + 1)
        return cleaned

    return value


def format_exception(exc_info: tuple) -> str:
    """Traceback text with each line scrubbed; local variables are never captured."""
    exc = exc_info[1]
    if exc is None:
        return ""
    lines = traceback.TracebackException.from_exception(exc, capture_locals=False).format()
    return "".join(redact_text(line) for line in lines)
