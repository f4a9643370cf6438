"""Tenant metrics rollups for the dashboard.

All order-based figures honor the optional [start, end] date window on the
order's source created_at; end covers the whole day. Customer count is
all-time.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional

from sqlalchemy import and_, case, func, select
from sqlalchemy.orm import Session

from storesync_api.db.models import Customer, Order

TOP_CUSTOMERS_LIMIT = 5
GUEST_LABEL = "Guest"


@dataclass
class StoreMetrics:
    customers: int
    orders: int
    revenue: float
    aov: float
    repeat_rate: float
    top_customers: list[dict[str, Any]] = field(default_factory=list)
    orders_by_date: list[dict[str, Any]] = field(default_factory=list)
    revenue_by_date: list[dict[str, Any]] = field(default_factory=list)


def _window(start: Optional[date], end: Optional[date]) -> list[Any]:
    conditions = []
    if start is not None:
        conditions.append(Order.created_at >= datetime.combine(start, time.min, tzinfo=timezone.utc))
    if end is not None:
        # Inclusive end date: everything before the following midnight
        next_day = datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)
        conditions.append(Order.created_at < next_day)
    return conditions


def _day(value: Any) -> str:
    # Postgres returns date objects, SQLite returns ISO strings
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def compute_metrics(
    db: Session,
    tenant_id: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> StoreMetrics:
    """Aggregate a tenant's customers and orders."""
    window = _window(start, end)
    order_filter = and_(Order.tenant_id == tenant_id, *window)

    customers = db.execute(
        select(func.count(Customer.id)).where(Customer.tenant_id == tenant_id)
    ).scalar_one()

    order_count, revenue, aov = db.execute(
        select(
            func.count(Order.id),
            func.coalesce(func.sum(Order.total_price), 0),
            func.coalesce(func.avg(Order.total_price), 0),
        ).where(order_filter)
    ).one()

    day = func.date(Order.created_at)
    daily_rows = db.execute(
        select(
            day.label("day"),
            func.count(Order.id),
            func.coalesce(func.sum(Order.total_price), 0),
        )
        .where(order_filter)
        .group_by(day)
        .order_by(day)
    ).all()

    # All-time: customers without orders rank at spend 0.
    # Windowed: only customers with an order inside the window.
    name = func.coalesce(Customer.email, GUEST_LABEL)
    spend = func.coalesce(func.sum(Order.total_price), 0)
    top_query = select(name.label("name"), spend.label("spend")).select_from(Customer)
    if window:
        top_query = top_query.join(Order, and_(Order.customer_id == Customer.id, *window))
    else:
        top_query = top_query.outerjoin(Order, Order.customer_id == Customer.id)
    top_rows = db.execute(
        top_query
        .where(Customer.tenant_id == tenant_id)
        .group_by(name)
        .order_by(spend.desc())
        .limit(TOP_CUSTOMERS_LIMIT)
    ).all()

    # Guest orders (customer_id NULL) are not a returning customer
    per_customer = (
        select(Order.customer_id, func.count(Order.id).label("cnt"))
        .where(order_filter, Order.customer_id.is_not(None))
        .group_by(Order.customer_id)
        .subquery()
    )
    buyers, repeat_buyers = db.execute(
        select(
            func.count(per_customer.c.customer_id),
            func.coalesce(func.sum(case((per_customer.c.cnt >= 2, 1), else_=0)), 0),
        )
    ).one()

    return StoreMetrics(
        customers=int(customers),
        orders=int(order_count),
        revenue=float(revenue),
        aov=float(aov),
        repeat_rate=float(repeat_buyers) / buyers if buyers else 0.0,
        top_customers=[{"name": row.name, "spend": float(row.spend)} for row in top_rows],
        orders_by_date=[{"date": _day(row[0]), "orders": int(row[1])} for row in daily_rows],
        revenue_by_date=[{"date": _day(row[0]), "revenue": float(row[2])} for row in daily_rows],
    )
