import os
from contextlib import contextmanager
from functools import partial
from typing import AsyncGenerator

# Settings are read at import time, so the test environment must be in place first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("PAYMENT_WEBHOOK_SECRET", "test-webhook-secret")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from storefront import app
from storefront.core.dependencies import get_current_user, get_db
from storefront.db.base import Base
from storefront.enums import UserRole
from storefront import models as _models  # noqa: F401

from tests.factories import make_user


WEBHOOK_SECRET = os.environ["PAYMENT_WEBHOOK_SECRET"]


@pytest_asyncio.fixture
async def test_engine():
    """
    In-memory SQLite shared by every connection of one test.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)
    session = session_factory()

    try:
        yield session
    finally:
        await session.close()


@pytest_asyncio.fixture
async def customer(db_session):
    return await make_user(db_session, email="customer@example.com")


@pytest_asyncio.fixture
async def other_customer(db_session):
    return await make_user(db_session, email="someone-else@example.com")


@pytest_asyncio.fixture
async def admin(db_session):
    return await make_user(db_session, email="admin@example.com", role=UserRole.ADMIN)


@contextmanager
def override_auth(target_app, user):
    """Temporarily make ``user`` the authenticated caller."""
    previous = target_app.dependency_overrides.get(get_current_user)
    target_app.dependency_overrides[get_current_user] = lambda: user
    try:
        yield
    finally:
        if previous is None:
            target_app.dependency_overrides.pop(get_current_user, None)
        else:
            target_app.dependency_overrides[get_current_user] = previous


@pytest_asyncio.fixture
async def client(db_session, customer) -> AsyncGenerator[AsyncClient, None]:
    """
    AsyncClient against the app with the test session injected and the
    customer fixture authenticated by default.
    """
    async def _get_test_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_current_user] = lambda: customer

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Authorization": "Bearer test-token"},
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def webhook_headers() -> dict:
    return {"X-Webhook-Secret": WEBHOOK_SECRET}


@pytest.fixture
def login_as():
    """``with login_as(admin): ...`` runs requests as another user."""
    return partial(override_auth, app)
