"""
Pytest fixtures for test database, client, and authentication.

Each test gets its own SQLite database file (or TEST_DATABASE_URL when set),
and every request gets its own session, so commits and rollbacks behave as
they do in production.
"""

import os

os.environ.setdefault("REDIS_ENABLED", "false")

from datetime import timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from alumni_api.main import app
from alumni_api.core.clock import utcnow
from alumni_api.core.security import create_access_token, hash_password
from alumni_api.db.base import Base
from alumni_api.db.session import get_db
from alumni_api.models.event import Event, EventStatus
from alumni_api.models.user import User, UserRole
from alumni_api.services.cache_service import get_cache
from alumni_api.services.notification_service import NotificationDispatcher, get_notification_dispatcher

from tests.fakes import InMemoryCache, RecordingNotifier

PASSWORD = "testpassword123"


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    test_engine = create_async_engine(url, echo=False, poolclass=NullPool)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging and inspecting rows directly."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture
async def dispatcher(notifier: RecordingNotifier) -> AsyncGenerator[NotificationDispatcher, None]:
    dispatcher = NotificationDispatcher(notifier)
    yield dispatcher
    await dispatcher.drain()


@pytest_asyncio.fixture(scope="function")
async def client(session_factory, cache, dispatcher) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the DB, cache and notification dependencies overridden."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_cache():
        return cache

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = override_get_cache
    app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(db: AsyncSession, email: str, full_name: str, role: str = UserRole.USER.value) -> User:
    user = User(email=email, full_name=full_name, hashed_password=hash_password(PASSWORD), role=role)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def _headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(data={'sub': str(user.id)})}"}


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "member@alumni.org", "Test Member")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "second@alumni.org", "Second Member")


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "admin@alumni.org", "Site Admin", role=UserRole.SUPER_ADMIN.value)


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    return _headers(test_user)


@pytest.fixture
def other_headers(other_user: User) -> dict:
    return _headers(other_user)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return _headers(admin_user)


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory for extra members: returns (user, headers)."""
    counter = {"n": 0}

    async def _make():
        counter["n"] += 1
        user = await _create_user(db_session, f"extra{counter['n']}@alumni.org", f"Extra Member {counter['n']}")
        return user, _headers(user)

    return _make


@pytest.fixture
def make_event(db_session: AsyncSession, admin_user: User):
    """
    Factory for events inserted directly, bypassing the create-time date check.
    Defaults to a published, free event 30 days out.
    """
    counter = {"n": 0}

    async def _make(**overrides) -> Event:
        counter["n"] += 1
        values = {
            "title": f"Alumni Reunion {counter['n']}",
            "slug": f"alumni-reunion-{counter['n']}",
            "venue": "Main Hall",
            "event_date": utcnow() + timedelta(days=30),
            "status": EventStatus.PUBLISHED.value,
            "registration_fee": 0,
            "guest_fee": 0,
            "created_by_id": admin_user.id,
        }
        values.update(overrides)
        event = Event(**values)
        db_session.add(event)
        await db_session.commit()
        await db_session.refresh(event)
        return event

    return _make


@pytest_asyncio.fixture
async def test_event(make_event) -> Event:
    return await make_event()
