"""Tests for structured logging with request context.

Every log line carries request_id, plus tenant_id / shop_domain once a request
has resolved them, so a push notification can be traced end to end.
"""

import json
import logging
from io import StringIO

import pytest

from storesync_api.context import request_id_var, shop_domain_var, tenant_id_var
from storesync_api.utils.logging import JSONFormatter


@pytest.fixture
def log_stream():
    logger = logging.getLogger("test_structured_logger")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()
    request_id_var.set("")
    tenant_id_var.set("")
    shop_domain_var.set("")


def _last_line(stream: StringIO) -> dict:
    return json.loads(stream.getvalue().strip().splitlines()[-1])


def test_json_formatter_includes_context_vars(log_stream) -> None:
    logger, stream = log_stream
    request_id_var.set("req_123")
    tenant_id_var.set("tenant_xyz")
    shop_domain_var.set("shop1.test")

    logger.info("Push notification processed")

    log_data = _last_line(stream)
    assert log_data["message"] == "Push notification processed"
    assert log_data["level"] == "INFO"
    assert log_data["request_id"] == "req_123"
    assert log_data["tenant_id"] == "tenant_xyz"
    assert log_data["shop_domain"] == "shop1.test"
    assert {"timestamp", "module", "func", "line"} <= set(log_data)


def test_json_formatter_omits_unset_context(log_stream) -> None:
    logger, stream = log_stream
    request_id_var.set("")
    tenant_id_var.set("")
    shop_domain_var.set("")

    logger.info("Background message")

    log_data = _last_line(stream)
    assert "request_id" not in log_data
    assert "tenant_id" not in log_data
    assert "shop_domain" not in log_data


def test_json_formatter_includes_extra_fields(log_stream) -> None:
    logger, stream = log_stream

    logger.info("WEBHOOK_RECEIVED", extra={"event": "webhook.received", "topic": "orders/create", "payload_size": 42})

    log_data = _last_line(stream)
    assert log_data["event"] == "webhook.received"
    assert log_data["topic"] == "orders/create"
    assert log_data["payload_size"] == 42


def test_json_formatter_redacts_sensitive_extras(log_stream) -> None:
    logger, stream = log_stream

    logger.info(
        "Tenant credential stored",
        extra={"access_token": "shpat_abc", "customer": {"email": "a@x.com", "id": 77}},
    )

    log_data = _last_line(stream)
    assert log_data["access_token"] == "[REDACTED]"
    assert log_data["customer"] == {"email": "[REDACTED]", "id": 77}
    assert "shpat_abc" not in stream.getvalue()


def test_json_formatter_redacts_message_and_keeps_traceback(log_stream) -> None:
    logger, stream = log_stream

    try:
        raise RuntimeError("exchange failed")
    except RuntimeError:
        logger.error("Header was Bearer abc.def.ghi", exc_info=True)

    log_data = _last_line(stream)
    assert log_data["message"] == "Header was [REDACTED]"
    assert "RuntimeError" in log_data["exc_info"]


def test_request_id_header_round_trips(test_client) -> None:
    response = test_client.get("/health", headers={"X-Request-ID": "req-abc"})

    assert response.headers["X-Request-ID"] == "req-abc"


def test_request_id_generated_when_absent(test_client) -> None:
    response = test_client.get("/health")

    assert len(response.headers["X-Request-ID"]) == 36
