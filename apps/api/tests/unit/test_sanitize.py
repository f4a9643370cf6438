"""Log redaction: Shopify secrets and customer PII never reach log output."""

import pytest

from storesync_api.utils.sanitize import (
    MAX_TEXT_LEN,
    format_exception,
    payload_digest,
    redact_text,
    redact_value,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("token shpat_abc123 used", "token [REDACTED] used"),
        ("Authorization: Bearer eyJ.x.y", "Authorization: [REDACTED]"),
        ("contact a.b+c@example.com now", "contact [REDACTED] now"),
        ("?client_secret=xyz&code=1&shop=s.test", "?[REDACTED]&[REDACTED]&shop=s.test"),
        ("error_code=E42", "error_code=E42"),
    ],
)
def test_text_redaction(text, expected):
    assert redact_text(text) == expected


def test_long_text_is_replaced_by_digest():
    result = redact_text("x" * (MAX_TEXT_LEN + 1))

    assert result.startswith(f"[TRUNCATED len={MAX_TEXT_LEN + 1} sha256=")


@pytest.mark.parametrize(
    "header",
    ["X-Shopify-Hmac-Sha256", "x-shopify-hmac-sha256", "x_shopify_hmac_sha256", "X-SHOPIFY-ACCESS-TOKEN"],
)
def test_header_names_match_case_insensitively(header):
    result = redact_value({header: "abc=", "X-Shopify-Topic": "orders/create"})

    assert result == {header: "[REDACTED]", "X-Shopify-Topic": "orders/create"}


def test_order_payload_customer_and_addresses_redacted():
    payload = {
        "id": 1001,
        "total_price": "10.00",
        "email": "buyer@x.com",
        "phone": "+15550100",
        "customer": {
            "id": 77,
            "email": "buyer@x.com",
            "first_name": "Ada",
            "phone": None,
            "default_address": {"id": 5, "address1": "1 Main St", "zip": "10001"},
        },
        "billing_address": {"address1": "1 Main St", "city": "Springfield", "phone": "+15550100"},
        "shipping_address": None,
        "line_items": [{"id": 9, "title": "Mug"}],
    }

    assert redact_value(payload) == {
        "id": 1001,
        "total_price": "10.00",
        "email": "[REDACTED]",
        "phone": "[REDACTED]",
        "customer": {
            "id": 77,
            "email": "[REDACTED]",
            "first_name": "[REDACTED]",
            "phone": None,
            "default_address": {"id": 5, "address1": "[REDACTED]", "zip": "[REDACTED]"},
        },
        "billing_address": {"address1": "[REDACTED]", "city": "[REDACTED]", "phone": "[REDACTED]"},
        "shipping_address": None,
        "line_items": [{"id": 9, "title": "Mug"}],
    }


def test_customer_address_list_keeps_only_ids():
    result = redact_value({"addresses": [{"id": 1, "city": "Oslo"}, {"id": 2, "country": "NO"}]})

    assert result == {"addresses": [{"id": 1, "city": "[REDACTED]"}, {"id": 2, "country": "[REDACTED]"}]}


def test_depth_limit():
    deep: dict = {}
    node = deep
    for _ in range(10):
        node["child"] = {}
        node = node["child"]

    assert "[DEPTH_LIMIT]" in str(redact_value(deep))


def test_non_string_scalars_pass_through():
    assert redact_value(42) == 42
    assert redact_value(None) is None


def test_traceback_lines_are_scrubbed():
    try:
        raise RuntimeError("token exchange failed for shpat_secret")
    except RuntimeError as e:
        text = format_exception((type(e), e, e.__traceback__))

    assert "RuntimeError" in text
    assert "shpat_secret" not in text


def test_payload_digest_is_sha256_hex():
    assert payload_digest(b"") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
