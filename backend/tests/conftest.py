"""
Pytest fixtures for test database, client, and authentication.

Each test gets a fresh SQLite database file (aiosqlite) so several sessions
can run concurrently against real, separate connections, the way API
workers share one database.
"""

import os

# Cheap hashing for tests; must be set before settings are first read
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from datetime import date, timedelta
from typing import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from event_booking.main import app
from event_booking.core import clock
from event_booking.core.security import create_access_token, hash_password
from event_booking.db.base import Base
from event_booking.db.session import get_db
from event_booking.models.event import Event
from event_booking.models.user import User
from event_booking.services.interfaces.local_admission import LocalAdmissionGate
from event_booking.services.strategy_factory import get_admission


def days_from_today(days: int) -> date:
    return clock.today() + timedelta(days=days)


def auth_header_for(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}


def booking_payload(event_id: int, quantity: int = 1, **overrides) -> dict:
    payload = {
        "event_id": event_id,
        "attendee_name": "Ada Lovelace",
        "attendee_email": "ada@example.com",
        "quantity": quantity,
    }
    payload.update(overrides)
    return payload


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Create tables in a throwaway database file, dispose afterwards."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def gate() -> LocalAdmissionGate:
    return LocalAdmissionGate(timeout=5.0)


@pytest_asyncio.fixture(scope="function")
async def client(session_factory, gate) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with a fresh DB session per request, like production."""

    async def override_get_db():
        async with session_factory() as session:
            yield session
            await session.commit()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_admission] = lambda: gate

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def create_user(db: AsyncSession, email: str, name: str, role: str = "user") -> User:
    user = User(
        email=email,
        name=name,
        hashed_password=hash_password("testpassword123"),
        role=role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "test@example.com", "Test User")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "other@example.com", "Other User")


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "admin@example.com", "Admin", role="admin")


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict:
    return auth_header_for(test_user)


@pytest_asyncio.fixture
async def other_headers(other_user: User) -> dict:
    return auth_header_for(other_user)


@pytest_asyncio.fixture
async def admin_headers(admin_user: User) -> dict:
    return auth_header_for(admin_user)


@pytest_asyncio.fixture
async def make_event(db_session: AsyncSession, admin_user: User) -> Callable[..., Awaitable[Event]]:
    """Factory inserting events directly, bypassing create-time validation."""

    async def _make_event(
        title: str = "Test Concert",
        event_date: date | None = None,
        start_time: str = "19:00",
        end_time: str = "22:00",
        capacity: int = 100,
        price: float = 25.0,
    ) -> Event:
        event = Event(
            title=title,
            description="A test event",
            date=event_date or days_from_today(30),
            start_time=start_time,
            end_time=end_time,
            location="Test Venue",
            capacity=capacity,
            price=price,
            created_by=admin_user.id,
        )
        db_session.add(event)
        await db_session.commit()
        await db_session.refresh(event)
        return event

    return _make_event


@pytest_asyncio.fixture
async def test_event(make_event) -> Event:
    """An upcoming event with 100 spots."""
    return await make_event()


@pytest_asyncio.fixture
async def small_event(make_event) -> Event:
    """An upcoming event with 2 spots."""
    return await make_event(title="Small Workshop", capacity=2)
