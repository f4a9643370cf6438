"""Tests for Link header next-page extraction."""

import pytest

from storesync_api.sync.pager import parse_next_link

BASE = "https://shop1.test/admin/api/2023-07/orders.json"


def test_next_only():
    header = f'<{BASE}?limit=250&page_info=abc>; rel="next"'
    assert parse_next_link(header) == f"{BASE}?limit=250&page_info=abc"


def test_previous_and_next():
    header = (
        f'<{BASE}?limit=250&page_info=prev>; rel="previous", '
        f'<{BASE}?limit=250&page_info=nxt>; rel="next"'
    )
    assert parse_next_link(header) == f"{BASE}?limit=250&page_info=nxt"


def test_previous_only_is_last_page():
    header = f'<{BASE}?limit=250&page_info=prev>; rel="previous"'
    assert parse_next_link(header) is None


@pytest.mark.parametrize("header", [None, "", "garbage", f"<{BASE}>"])
def test_absent_or_malformed(header):
    assert parse_next_link(header) is None


def test_rel_must_match_exactly():
    # Unquoted rel values are not recognised
    header = f"<{BASE}?page_info=x>; rel=next"
    assert parse_next_link(header) is None
