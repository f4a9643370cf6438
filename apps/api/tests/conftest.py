"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
# Inject sys.path for reliable pytest imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))  # => .../apps/api

import os

# Must be set before storesync_api.db.session builds its engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STORESYNC_DB_POOL"] = "nullpool"
os.environ["STORESYNC_JSON_LOGS"] = "false"
os.environ["SHOPIFY_WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ["SHOPIFY_API_KEY"] = "test-client-id"
os.environ["SHOPIFY_API_SECRET"] = "test-client-secret"
os.environ["APP_URL"] = "https://sync.example.test"
os.environ["WEBHOOK_BASE_URL"] = "https://sync.example.test"

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from storesync_api.auth.session_auth import SessionAuthContext, get_session_auth_context
from storesync_api.db.models import Base, Tenant, UserStoreLink
from storesync_api.db.session import get_db
from storesync_api.main import app
from tests.helpers import ACCESS_TOKEN, SHOP, SUBJECT_ID


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Fresh in-memory SQLite database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = SessionLocal()

    try:
        yield session
        session.rollback()
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def test_client(db_session: Session) -> Generator[TestClient, None, None]:
    """TestClient with db_session dependency override."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close - db_session fixture will handle it

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def tenant(db_session: Session) -> Tenant:
    """Connected store with a valid access token."""
    tenant = Tenant(shop_domain=SHOP, access_token=ACCESS_TOKEN, display_name=SHOP)
    db_session.add(tenant)
    db_session.commit()
    db_session.refresh(tenant)
    return tenant


@pytest.fixture
def linked_tenant(db_session: Session, tenant: Tenant) -> Tenant:
    """tenant, linked to SUBJECT_ID."""
    db_session.add(UserStoreLink(subject_id=SUBJECT_ID, tenant_id=tenant.id))
    db_session.commit()
    return tenant


@pytest.fixture
def authed_client(test_client: TestClient) -> TestClient:
    """test_client with session auth resolved to SUBJECT_ID."""

    async def override_auth() -> SessionAuthContext:
        return SessionAuthContext(subject_id=SUBJECT_ID, email="owner@example.test")

    app.dependency_overrides[get_session_auth_context] = override_auth
    return test_client
