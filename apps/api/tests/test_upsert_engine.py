"""Idempotent upsert engine tests (in-memory SQLite).

Coverage:
  - Same upsert twice → exactly one row, no error
  - BULK / CREATE never overwrite; UPDATE overwrites (last write wins)
  - Orders: CREATE/UPDATE self-heal the missing customer; BULK stores NULL
  - Tenants sharing an external id never collide
  - Product price from first variant; NULL without variants
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storesync_api.db.models import Customer, Event, Order, Product, Tenant
from storesync_api.sync.payloads import ShopifyCustomer, ShopifyOrder, ShopifyProduct
from storesync_api.sync.upsert import (
    UpsertMode,
    ensure_customer,
    record_event,
    upsert_customer,
    upsert_order,
    upsert_product,
)


def _count(db: Session, model) -> int:
    return db.execute(select(func.count()).select_from(model)).scalar_one()


def _customer(email: str = "a@x.com", **overrides) -> ShopifyCustomer:
    data = {
        "id": 77,
        "email": email,
        "first_name": "Ada",
        "last_name": "Lovelace",
        "created_at": "2024-01-01T10:00:00Z",
        "updated_at": "2024-01-01T10:00:00Z",
    }
    data.update(overrides)
    return ShopifyCustomer.model_validate(data)


def _order(customer: dict | None = None, total: str = "50.00", **overrides) -> ShopifyOrder:
    data = {
        "id": 1001,
        "total_price": total,
        "created_at": "2024-02-01T12:00:00Z",
        "updated_at": "2024-02-01T12:00:00Z",
        "customer": customer,
    }
    data.update(overrides)
    return ShopifyOrder.model_validate(data)


@pytest.fixture
def other_tenant(db_session: Session) -> Tenant:
    tenant = Tenant(shop_domain="shop2.test", access_token="shpat_other", display_name="shop2.test")
    db_session.add(tenant)
    db_session.commit()
    return tenant


# ============================================================================
# Customers
# ============================================================================


@pytest.mark.parametrize("mode", list(UpsertMode))
def test_customer_upsert_twice_yields_one_row(db_session, tenant, mode):
    assert upsert_customer(db_session, tenant.id, _customer(), mode) is True
    upsert_customer(db_session, tenant.id, _customer(), mode)

    assert _count(db_session, Customer) == 1


@pytest.mark.parametrize("mode", [UpsertMode.BULK, UpsertMode.CREATE])
def test_customer_insert_modes_do_not_overwrite(db_session, tenant, mode):
    upsert_customer(db_session, tenant.id, _customer("a@x.com"), UpsertMode.CREATE)

    written = upsert_customer(db_session, tenant.id, _customer("b@x.com"), mode)

    assert written is False
    assert db_session.execute(select(Customer.email)).scalar_one() == "a@x.com"


def test_customer_update_overwrites(db_session, tenant):
    upsert_customer(db_session, tenant.id, _customer("a@x.com"), UpsertMode.CREATE)

    written = upsert_customer(
        db_session,
        tenant.id,
        _customer("b@x.com", first_name="Grace", updated_at="2024-03-01T00:00:00Z"),
        UpsertMode.UPDATE,
    )

    assert written is True
    row = db_session.execute(select(Customer)).scalar_one()
    db_session.refresh(row)
    assert row.email == "b@x.com"
    assert row.first_name == "Grace"


def test_customer_update_before_create_inserts(db_session, tenant):
    assert upsert_customer(db_session, tenant.id, _customer("b@x.com"), UpsertMode.UPDATE) is True
    assert _count(db_session, Customer) == 1


def test_update_is_last_write_wins_without_timestamp_check(db_session, tenant):
    upsert_customer(
        db_session, tenant.id, _customer("new@x.com", updated_at="2024-05-01T00:00:00Z"), UpsertMode.UPDATE
    )
    # Older payload delivered late still wins
    upsert_customer(
        db_session, tenant.id, _customer("old@x.com", updated_at="2024-01-01T00:00:00Z"), UpsertMode.UPDATE
    )

    assert db_session.execute(select(Customer.email)).scalar_one() == "old@x.com"


def test_tenants_sharing_external_id_do_not_collide(db_session, tenant, other_tenant):
    upsert_customer(db_session, tenant.id, _customer("a@x.com"), UpsertMode.BULK)
    upsert_customer(db_session, other_tenant.id, _customer("z@y.com"), UpsertMode.BULK)

    rows = db_session.execute(select(Customer.tenant_id, Customer.email)).all()
    assert sorted(rows) == sorted([(tenant.id, "a@x.com"), (other_tenant.id, "z@y.com")])


# ============================================================================
# Products
# ============================================================================


def test_product_price_from_first_variant(db_session, tenant):
    product = ShopifyProduct.model_validate(
        {"id": 5, "title": "Mug", "variants": [{"price": "12.50"}, {"price": "99.00"}]}
    )
    upsert_product(db_session, tenant.id, product, UpsertMode.BULK)

    assert db_session.execute(select(Product.price)).scalar_one() == Decimal("12.50")


def test_product_without_variants_has_null_price(db_session, tenant):
    product = ShopifyProduct.model_validate({"id": 6, "title": "Gift card", "variants": []})
    upsert_product(db_session, tenant.id, product, UpsertMode.CREATE)

    assert db_session.execute(select(Product.price)).scalar_one() is None


def test_product_update_overwrites_title_and_price(db_session, tenant):
    upsert_product(
        db_session,
        tenant.id,
        ShopifyProduct.model_validate({"id": 5, "title": "Mug", "variants": [{"price": "12.50"}]}),
        UpsertMode.CREATE,
    )
    upsert_product(
        db_session,
        tenant.id,
        ShopifyProduct.model_validate({"id": 5, "title": "Big Mug", "variants": [{"price": "15.00"}]}),
        UpsertMode.UPDATE,
    )

    title, price = db_session.execute(select(Product.title, Product.price)).one()
    assert title == "Big Mug"
    assert price == Decimal("15.00")
    assert _count(db_session, Product) == 1


# ============================================================================
# Orders
# ============================================================================


def test_order_create_before_customer_self_heals(db_session, tenant):
    order = _order(customer={"id": 77, "email": "a@x.com"})

    assert upsert_order(db_session, tenant.id, order, UpsertMode.CREATE) is True

    customer_id = db_session.execute(select(Customer.id)).scalar_one()
    assert _count(db_session, Customer) == 1
    assert db_session.execute(select(Order.customer_id)).scalar_one() == customer_id


def test_order_update_self_heals_and_links(db_session, tenant):
    upsert_order(db_session, tenant.id, _order(customer=None), UpsertMode.CREATE)

    upsert_order(
        db_session, tenant.id, _order(customer={"id": 88}, total="75.00"), UpsertMode.UPDATE
    )

    customer_id, total = db_session.execute(select(Order.customer_id, Order.total_price)).one()
    assert customer_id is not None
    assert total == Decimal("75.00")
    assert _count(db_session, Order) == 1


def test_order_create_reuses_existing_customer(db_session, tenant):
    upsert_customer(db_session, tenant.id, _customer("a@x.com"), UpsertMode.CREATE)

    upsert_order(db_session, tenant.id, _order(customer={"id": 77, "email": "stale@x.com"}), UpsertMode.CREATE)

    assert _count(db_session, Customer) == 1
    # Embedded customer never overwrites the stored one
    assert db_session.execute(select(Customer.email)).scalar_one() == "a@x.com"


def test_bulk_order_with_unknown_customer_stores_null(db_session, tenant):
    upsert_order(db_session, tenant.id, _order(customer={"id": 404}), UpsertMode.BULK)

    assert _count(db_session, Customer) == 0
    assert db_session.execute(select(Order.customer_id)).scalar_one() is None


def test_bulk_order_customer_lookup_is_tenant_scoped(db_session, tenant, other_tenant):
    upsert_customer(db_session, other_tenant.id, _customer(), UpsertMode.BULK)

    upsert_order(db_session, tenant.id, _order(customer={"id": 77}), UpsertMode.BULK)

    assert db_session.execute(select(Order.customer_id)).scalar_one() is None


def test_guest_order_has_no_customer(db_session, tenant):
    upsert_order(db_session, tenant.id, _order(customer=None), UpsertMode.CREATE)

    assert _count(db_session, Customer) == 0
    assert db_session.execute(select(Order.customer_id)).scalar_one() is None


def test_order_create_twice_keeps_first(db_session, tenant):
    upsert_order(db_session, tenant.id, _order(total="50.00"), UpsertMode.CREATE)
    written = upsert_order(db_session, tenant.id, _order(total="60.00"), UpsertMode.CREATE)

    assert written is False
    assert db_session.execute(select(Order.total_price)).scalar_one() == Decimal("50.00")


def test_ensure_customer_is_idempotent(db_session, tenant):
    first = ensure_customer(db_session, tenant.id, _customer())
    second = ensure_customer(db_session, tenant.id, _customer())

    assert first == second
    assert _count(db_session, Customer) == 1


# ============================================================================
# Event log
# ============================================================================


def test_record_event_appends(db_session, tenant):
    record_event(db_session, tenant.id, "orders/create", {"id": 1})
    record_event(db_session, tenant.id, "orders/create", {"id": 1})

    events = db_session.execute(select(Event)).scalars().all()
    assert len(events) == 2
    assert events[0].payload == {"id": 1}
