"""SQLAlchemy ORM Models for StoreSync."""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import (
    BIGINT,
    INTEGER,
    JSON,
    NUMERIC,
    TEXT,
    TIMESTAMP,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# BIGSERIAL on Postgres; SQLite only autoincrements INTEGER PRIMARY KEY
SurrogateKey = BIGINT().with_variant(INTEGER(), "sqlite")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class Tenant(Base):
    """A connected store. shop_domain is the natural key used by every inbound call."""

    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=lambda: str(uuid.uuid4()))
    shop_domain: Mapped[str] = mapped_column(TEXT, nullable=False)
    # NULL until the OAuth handshake completes
    access_token: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    display_name: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    __table_args__ = (UniqueConstraint("shop_domain", name="uq_tenants_shop_domain"),)


class UserStoreLink(Base):
    """Association between an identity-provider subject and a tenant."""

    __tablename__ = "user_stores"

    id: Mapped[int] = mapped_column(SurrogateKey, primary_key=True, autoincrement=True)
    subject_id: Mapped[str] = mapped_column(TEXT, nullable=False)
    tenant_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("tenants.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    __table_args__ = (
        UniqueConstraint("subject_id", "tenant_id", name="uq_user_stores_subject_tenant"),
        Index("idx_user_stores_subject", "subject_id"),
    )


class Customer(Base):
    """Customer record mirrored from the store."""

    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(SurrogateKey, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("tenants.id"), nullable=False
    )
    shopify_customer_id: Mapped[int] = mapped_column(BIGINT, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    first_name: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)

    # Source-system timestamps (not local write time)
    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "shopify_customer_id", name="uq_customers_tenant_shopify_id"),
    )


class Product(Base):
    """Product record; price is the first variant's price at ingestion time."""

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(SurrogateKey, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("tenants.id"), nullable=False
    )
    shopify_product_id: Mapped[int] = mapped_column(BIGINT, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    price: Mapped[Optional[Decimal]] = mapped_column(NUMERIC(12, 2), nullable=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "shopify_product_id", name="uq_products_tenant_shopify_id"),
    )


class Order(Base):
    """Order record. customer_id is NULL for guest checkouts."""

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(SurrogateKey, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("tenants.id"), nullable=False
    )
    shopify_order_id: Mapped[int] = mapped_column(BIGINT, nullable=False)
    customer_id: Mapped[Optional[int]] = mapped_column(
        SurrogateKey, ForeignKey("customers.id"), nullable=True
    )
    total_price: Mapped[Optional[Decimal]] = mapped_column(NUMERIC(12, 2), nullable=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "shopify_order_id", name="uq_orders_tenant_shopify_id"),
        Index("idx_orders_tenant_created", "tenant_id", "created_at"),
        Index("idx_orders_customer", "customer_id"),
    )


class Event(Base):
    """Append-only log of received push notifications and client events."""

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(SurrogateKey, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("tenants.id"), nullable=False
    )
    event_type: Mapped[str] = mapped_column(TEXT, nullable=False)
    payload: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    received_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    __table_args__ = (Index("idx_events_tenant_type", "tenant_id", "event_type"),)
