"""Utility functions and helpers."""

from storesync_api.utils.logging import JSONFormatter, configure_json_logging
from storesync_api.utils.sanitize import payload_digest, redact_text, redact_value

__all__ = [
    "JSONFormatter",
    "configure_json_logging",
    "payload_digest",
    "redact_text",
    "redact_value",
]
