"""Tenant directory: shop domain to tenant record, credential and linked users."""

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from storesync_api.db.models import Tenant, UserStoreLink
from storesync_api.db.statements import insert_for
from storesync_api.errors import CredentialMissingError, TenantNotFoundError

logger = logging.getLogger(__name__)


def _get_tenant(db: Session, shop_domain: str) -> Optional[Tenant]:
    stmt = select(Tenant).where(Tenant.shop_domain == shop_domain)
    return db.execute(stmt).scalar_one_or_none()


def resolve_tenant(db: Session, shop_domain: str) -> str:
    """Return the tenant id for a shop domain.

    Raises:
        TenantNotFoundError: If the store was never connected
    """
    stmt = select(Tenant.id).where(Tenant.shop_domain == shop_domain)
    tenant_id = db.execute(stmt).scalar_one_or_none()
    if tenant_id is None:
        raise TenantNotFoundError(shop_domain)
    return tenant_id


def resolve_access_credential(db: Session, shop_domain: str) -> str:
    """Return the Admin API access token for a shop domain.

    Raises:
        TenantNotFoundError: If the store was never connected
        CredentialMissingError: If the tenant exists but OAuth never completed
    """
    tenant = _get_tenant(db, shop_domain)
    if tenant is None:
        logger.warning("No tenant found for credential lookup", extra={"shop": shop_domain})
        raise TenantNotFoundError(shop_domain)

    logger.info(
        "Resolved tenant for credential lookup",
        extra={
            "tenant_name": tenant.display_name,
            "credential_present": bool(tenant.access_token),
        },
    )

    if not tenant.access_token:
        raise CredentialMissingError(shop_domain)
    return tenant.access_token


def upsert_tenant(db: Session, shop_domain: str, access_token: str) -> str:
    """Create the tenant, or replace its credential if it already exists.

    A re-install always issues a fresh token, so the newest one wins.

    Returns:
        Tenant id
    """
    stmt = insert_for(db, Tenant.__table__).values(
        id=str(uuid.uuid4()),
        shop_domain=shop_domain,
        access_token=access_token,
        display_name=shop_domain,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["shop_domain"],
        set_={"access_token": stmt.excluded.access_token},
    )
    db.execute(stmt)
    db.commit()

    tenant_id = resolve_tenant(db, shop_domain)
    logger.info("Tenant credential stored", extra={"tenant": tenant_id})
    return tenant_id


def link_user(db: Session, subject_id: str, shop_domain: str) -> str:
    """Associate a user with an existing tenant. Idempotent.

    Raises:
        TenantNotFoundError: If no tenant exists for the domain

    Returns:
        Tenant id
    """
    tenant_id = resolve_tenant(db, shop_domain)

    stmt = insert_for(db, UserStoreLink.__table__).values(
        subject_id=subject_id,
        tenant_id=tenant_id,
    )
    stmt = stmt.on_conflict_do_nothing(
        index_elements=["subject_id", "tenant_id"]
    )
    result = db.execute(stmt)
    db.commit()

    if result.rowcount > 0:
        logger.info("User linked to store", extra={"tenant": tenant_id})
    return tenant_id


def list_user_stores(db: Session, subject_id: str) -> list[Tenant]:
    """Tenants linked to a user, most recently connected first."""
    stmt = (
        select(Tenant)
        .join(UserStoreLink, UserStoreLink.tenant_id == Tenant.id)
        .where(UserStoreLink.subject_id == subject_id)
        .order_by(UserStoreLink.created_at.desc(), UserStoreLink.id.desc())
    )
    return list(db.execute(stmt).scalars().all())


def find_user_store(
    db: Session, subject_id: str, store_id: Optional[str] = None
) -> Optional[Tenant]:
    """A single tenant linked to the user.

    With store_id, that tenant if the user is linked to it; otherwise the most
    recently connected one. None when nothing matches.
    """
    stmt = (
        select(Tenant)
        .join(UserStoreLink, UserStoreLink.tenant_id == Tenant.id)
        .where(UserStoreLink.subject_id == subject_id)
    )
    if store_id is not None:
        stmt = stmt.where(Tenant.id == store_id)
    stmt = stmt.order_by(UserStoreLink.created_at.desc(), UserStoreLink.id.desc()).limit(1)
    return db.execute(stmt).scalar_one_or_none()


def is_user_linked(db: Session, subject_id: str, shop_domain: str) -> Optional[str]:
    """Tenant id if the user is linked to the shop, else None."""
    stmt = (
        select(Tenant.id)
        .join(UserStoreLink, UserStoreLink.tenant_id == Tenant.id)
        .where(UserStoreLink.subject_id == subject_id, Tenant.shop_domain == shop_domain)
    )
    return db.execute(stmt).scalar_one_or_none()
