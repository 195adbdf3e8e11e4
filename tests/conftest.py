"""Shared test fixtures.

Every test gets a fresh in-memory SQLite database built from the ORM metadata.
Redis is not started; the rate limiter serves requests unthrottled without it.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable

os.environ["OFFCAST_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["OFFCAST_ENVIRONMENT"] = "test"
os.environ["OFFCAST_SEED_ON_STARTUP"] = "false"
os.environ["OFFCAST_LOG_FORMAT"] = "console"
os.environ["OFFCAST_LOG_LEVEL"] = "WARNING"
os.environ["OFFCAST_JWT_SECRET"] = "test-secret-key-for-offcast-tests"
os.environ["OFFCAST_GOOGLE_CLIENT_ID"] = "google-test-client"
os.environ["OFFCAST_GOOGLE_CLIENT_SECRET"] = "google-test-secret"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from offcast.auth.jwt import create_access_token
from offcast.channels.seed import seed_default_channels
from offcast.config import get_settings
from offcast.database import close_db, get_engine, get_session, init_db
from offcast.db.base import Base
from offcast.db.models import Channel, User, UserRole
from offcast.main import create_app
from offcast.users.service import OAuthProfile, resolve_or_create


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    """A session on a freshly created schema."""
    get_settings.cache_clear()
    settings = get_settings()
    await init_db(settings.database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async for session in get_session():
        yield session
        break

    await close_db()


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, sharing the test database."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def channels(db: AsyncSession) -> dict[str, Channel]:
    """The default channel catalog, keyed by slug."""
    await seed_default_channels(db)
    await db.commit()
    result = await db.execute(select(Channel))
    return {c.slug: c for c in result.scalars().all()}


MakeUser = Callable[..., Awaitable[User]]


@pytest.fixture
def make_user(db: AsyncSession) -> MakeUser:
    """Factory: a committed user with one linked account."""

    async def _make(
        subscriber_count: int | None = 150_000,
        provider: str = "youtube",
        nickname: str | None = None,
        role: UserRole = UserRole.USER,
    ) -> User:
        profile = OAuthProfile(
            provider=provider,
            provider_account_id=f"{provider}-{uuid.uuid4().hex[:12]}",
            access_token="stored-access-token",
            profile_name=nickname or "creator",
            subscriber_count=subscriber_count,
        )
        user = await resolve_or_create(db, profile)
        assert user is not None
        user.nickname = nickname or f"user{uuid.uuid4().hex[:8]}"
        user.role = role.value
        await db.commit()
        return user

    return _make


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id, get_settings())}"}

    return _headers
