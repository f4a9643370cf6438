"""Structured JSON logging utilities.

- JSON format for log aggregation
- Includes request_id, tenant_id and shop_domain from context variables
- Standard fields: timestamp, level, message, module, func, line
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from storesync_api.context import request_id_var, shop_domain_var, tenant_id_var
from storesync_api.utils.sanitize import format_exception, redact_text, redact_value

# LogRecord attributes that are not user-supplied extras
_RESERVED_ATTRS = frozenset({
    "name",
    "msg",
    "args",
    "created",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "thread",
    "threadName",
    "taskName",
    "exc_info",
    "exc_text",
    "stack_info",
})


class JSONFormatter(logging.Formatter):
    """JSON log formatter with request/tenant context.

    Formats log records as JSON with standard fields:
    - timestamp: ISO 8601 UTC
    - level: log level (INFO, ERROR, etc.)
    - message: log message
    - module, func, line: call site
    - request_id / tenant_id / shop_domain: from context variables (if set)

    Extra fields from logger.info(..., extra={...}) are merged in, sanitized.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string."""
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": redact_text(record.getMessage()),
            "module": record.module,
            "func": record.funcName,
            "line": record.lineno,
        }

        for field, var in (
            ("request_id", request_id_var),
            ("tenant_id", tenant_id_var),
            ("shop_domain", shop_domain_var),
        ):
            value = var.get()
            if value:
                log_data[field] = value

        # Add exception info if present (sanitized traceback)
        if record.exc_info:
            log_data["exc_info"] = format_exception(record.exc_info)

        # Extras are redacted as one mapping so their key names count too
        extras = {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}
        log_data.update(redact_value(extras))

        return json.dumps(log_data, default=str)


def configure_json_logging(log_level: str = "INFO") -> None:
    """Configure root logger with JSON formatter.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)
