"""Shared fixtures: in-memory SQLite store and an HTTPX client against the app."""

import os

# Must be set before interest_service.shared.database.database is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from interest_service.shared.database.database import get_db, init_db
from interest_service.shared.interest.routes import rate_limiter

ADMIN_KEY = "test-admin-key"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    monkeypatch.delenv("STORE_PUBLIC_KEY", raising=False)
    monkeypatch.delenv("STORE_ADMIN_KEY", raising=False)
    rate_limiter.reset()
    yield
    rate_limiter.reset()


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTPX async test client against the interest app."""
    from interest_service.app import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def admin_key(monkeypatch):
    monkeypatch.setenv("STORE_ADMIN_KEY", ADMIN_KEY)
    return ADMIN_KEY
