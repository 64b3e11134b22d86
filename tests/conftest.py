"""
Fixtures shared by the inbox test suite.

Each test gets a freshly created schema on the test database, an HTTP client
bound to the app with ``get_db`` pointed at the same session, and helpers for
seeding users and delivered notifications.
"""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from inbox_api.auth.jwt import create_access_token
from inbox_api.config import settings
from inbox_api.database import Base, build_engine, build_sessionmaker, get_db
from inbox_api.main import app
from inbox_api.middleware.rate_limit import reset_limiter

# Registers every table on Base.metadata
from inbox_api.models import User

from factories import create_notification

test_engine = build_engine(settings.test_database_url)
TestSessionLocal = build_sessionmaker(test_engine)


@pytest.fixture(autouse=True)
def clear_rate_limits():
    """Start every test with empty slowapi counters."""
    reset_limiter()
    yield


# --- Database ---


async def _recreate_schema(create: bool) -> None:
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        if create:
            await conn.run_sync(Base.metadata.create_all)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Session on an empty inbox schema; the schema is dropped afterwards."""
    await _recreate_schema(create=True)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    await _recreate_schema(create=False)


@pytest_asyncio.fixture(scope="function")
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """httpx client against the app, sharing ``db_session`` with the test."""

    async def _test_db():
        yield db_session

    app.dependency_overrides[get_db] = _test_db
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


# --- Identity ---


@pytest.fixture
def auth_headers():
    """Build trusted ``X-User-Id`` headers for a user id."""

    def _headers(user_id: str) -> dict[str, str]:
        return {"X-User-Id": str(user_id)}

    return _headers


@pytest.fixture
def bearer_headers():
    """Build ``Authorization: Bearer`` headers carrying a signed token."""

    def _headers(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers


# --- Users ---


async def _create_user(db_session: AsyncSession, username: str) -> dict[str, Any]:
    user = User(username=username, display_name=username.title())
    db_session.add(user)
    await db_session.commit()

    return {
        "id": user.id,
        "user_id": str(user.id),
        "username": user.username,
    }


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> dict[str, Any]:
    """Account that owns the inbox under test."""
    return await _create_user(db_session, "testuser")


@pytest_asyncio.fixture
async def second_user(db_session: AsyncSession) -> dict[str, Any]:
    """Another account, for per-user isolation checks."""
    return await _create_user(db_session, "seconduser")


# --- Notifications ---


@pytest.fixture
def make_notification(db_session: AsyncSession):
    """
    Deliver a notification to a user.

    Usage:
        notification, recipient = await make_notification(user["id"], minutes=5)
    """

    async def _make(user_id, **kwargs):
        return await create_notification(db_session, user_id, **kwargs)

    return _make


@pytest.fixture
def frozen_time():
    """
    Freeze the wall clock with freezegun.

    Usage:
        with frozen_time("2026-03-01 09:00:00"):
            ...
    """
    from freezegun import freeze_time

    def _frozen(moment: str):
        # asyncio keeps its real clock so the event loop is unaffected
        return freeze_time(moment, real_asyncio=True)

    return _frozen
