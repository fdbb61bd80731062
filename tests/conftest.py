"""
Pytest configuration and fixtures for testing.
"""
import os

# Settings are read at import time, so the test environment goes first
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")

import asyncio
import pytest
import pytest_asyncio
from typing import Any, AsyncGenerator, Dict, Optional
from datetime import datetime, timedelta, timezone
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from eventhub.main import app, limiter
from eventhub.api.graphql.context import Context, get_bus
from eventhub.auth import Identity
from eventhub.core.security import hash_password, create_user_token
from eventhub.db.session import Base, get_session
from eventhub.db.models import (
    Event,
    EventCategory,
    EventStatus,
    Registration,
    RegistrationStatus,
    RoleEnum,
    User,
)
from eventhub.events.bus import EventBus

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite://")

# One shared in-memory connection so every session sees the same tables
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    poolclass=StaticPool,
    connect_args={"check_same_thread": False},
    echo=False,
)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

PASSWORD = "secret123"


def future(days: int = 7) -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=days)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database for each test and hand out a session on it.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def bus() -> AsyncGenerator[EventBus, None]:
    """A running event bus, stopped after the test."""
    event_bus = EventBus(queue_size=10)
    event_bus.start()
    yield event_bus
    event_bus.stop()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, bus: EventBus) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client for testing the GraphQL endpoint.
    Overrides the database session and event bus dependencies.
    """
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_bus] = lambda: bus

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _make_user(db: AsyncSession, name: str, email: str, role: RoleEnum) -> User:
    user = User(name=name, email=email, hashed_password=hash_password(PASSWORD), role=role)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user with USER role."""
    return await _make_user(db_session, "Test User", "testuser@example.com", RoleEnum.USER)


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    """A second attendee, for ownership checks."""
    return await _make_user(db_session, "Other User", "other@example.com", RoleEnum.USER)


@pytest_asyncio.fixture
async def test_organizer(db_session: AsyncSession) -> User:
    """Create a test user with ORGANIZER role."""
    return await _make_user(db_session, "Test Organizer", "organizer@example.com", RoleEnum.ORGANIZER)


@pytest_asyncio.fixture
async def test_admin(db_session: AsyncSession) -> User:
    """Create a test user with ADMIN role."""
    return await _make_user(db_session, "Test Admin", "admin@example.com", RoleEnum.ADMIN)


@pytest.fixture
def user_token(test_user: User) -> str:
    return create_user_token(test_user)


@pytest.fixture
def other_token(other_user: User) -> str:
    return create_user_token(other_user)


@pytest.fixture
def organizer_token(test_organizer: User) -> str:
    return create_user_token(test_organizer)


@pytest.fixture
def admin_token(test_admin: User) -> str:
    return create_user_token(test_admin)


async def _make_event(
    db: AsyncSession,
    organizer: User,
    capacity: int = 50,
    status: EventStatus = EventStatus.PUBLISHED,
    title: str = "Test Event",
    days: int = 7,
) -> Event:
    event = Event(
        title=title,
        description="A test event description",
        date=future(days),
        location="Test Location",
        capacity=capacity,
        category=EventCategory.CONFERENCE,
        status=status,
        organizer_id=organizer.id,
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return event


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession, test_organizer: User) -> Event:
    """A published event with plenty of seats."""
    return await _make_event(db_session, test_organizer)


@pytest_asyncio.fixture
async def draft_event(db_session: AsyncSession, test_organizer: User) -> Event:
    return await _make_event(db_session, test_organizer, status=EventStatus.DRAFT, title="Draft Event")


@pytest_asyncio.fixture
async def test_registration(db_session: AsyncSession, test_user: User, test_event: Event) -> Registration:
    """A PENDING registration of test_user for test_event."""
    registration = Registration(
        user_id=test_user.id,
        event_id=test_event.id,
        status=RegistrationStatus.PENDING,
    )
    db_session.add(registration)
    await db_session.commit()
    await db_session.refresh(registration)
    return registration


@pytest.fixture(autouse=True)
def mock_password_hashing(monkeypatch):
    """
    Replace bcrypt with a trivial reversible scheme; bcrypt's work factor
    makes every fixture user cost a noticeable fraction of a second.
    """
    class MockPasswordContext:
        def hash(self, password: str) -> str:
            return f"$2b$12$mockedhash{password}"

        def verify(self, plain: str, hashed: str) -> bool:
            return hashed == f"$2b$12$mockedhash{plain}"

    from eventhub.core import security
    monkeypatch.setattr(security, "pwd_context", MockPasswordContext())


@pytest.fixture(autouse=True)
def disable_rate_limiting(monkeypatch):
    """Disable rate limiting for all tests."""
    monkeypatch.setattr(limiter, "enabled", False)


@pytest.fixture
def event_factory(db_session: AsyncSession, test_organizer: User):
    """Create extra events owned by test_organizer."""
    async def factory(**kwargs) -> Event:
        return await _make_event(db_session, test_organizer, **kwargs)
    return factory


@pytest.fixture
def gql(client: AsyncClient):
    """POST a GraphQL operation and return the decoded response body."""
    async def execute(
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        response = await client.post(
            "/graphql", json={"query": query, "variables": variables or {}}, headers=headers
        )
        assert response.status_code == 200, response.text
        return response.json()
    return execute


@pytest.fixture
def make_context(bus: EventBus):
    """Resolver context for executing the schema directly, outside HTTP."""
    def factory(session: AsyncSession, user: Optional[User] = None) -> Context:
        identity = Identity(user_id=user.id, role=user.role) if user else Identity()
        return Context(session=session, bus=bus, identity=identity)
    return factory


@pytest.fixture
def wait_for_subscribers(bus: EventBus):
    """Block until ``count`` subscribers are attached to ``topic``."""
    async def wait(topic, count: int = 1, timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while bus.subscriber_count(topic) < count:
            if loop.time() > deadline:
                raise AssertionError(f"no subscriber on {topic} after {timeout}s")
            await asyncio.sleep(0.01)
    return wait
