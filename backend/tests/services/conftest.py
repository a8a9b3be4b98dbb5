"""Service test fixtures — async DB, room services and FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use the test session factory
    - db_manager patched so the readiness probe hits the test engine
    - Every test gets its own ConnectionRegistry / EventBus / RoomLocks

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for service tests
      (row locks from SELECT ... FOR UPDATE are not exercised here)
    - StaticPool: every session shares the one in-memory connection, so data
      committed by one request is visible to the next
    - make_coordinator opens a new session per call, mirroring one request each
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

from giftroom.db.base import Base
from giftroom.infrastructure.database import get_db, DatabaseSessionManager
import giftroom.infrastructure.database as db_module
import giftroom.models  # noqa: F401
from giftroom.models.letter import Letter
from giftroom.models.user import User
from giftroom.main import app
from giftroom.services.connection_registry import ConnectionRegistry
from giftroom.services.event_bus import EventBus
from giftroom.services.room_coordinator import RoomCoordinator
from giftroom.services.room_locks import RoomLocks


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def bus(registry):
    return EventBus(registry)


@pytest.fixture
def locks():
    return RoomLocks()


@pytest.fixture
async def make_coordinator(test_session_factory, bus, locks):
    """Factory: RoomCoordinator over a fresh session (one per 'request')."""
    sessions = []

    def _make(**kwargs) -> RoomCoordinator:
        session = test_session_factory()
        sessions.append(session)
        return RoomCoordinator(session, bus, locks, **kwargs)

    yield _make
    for session in sessions:
        await session.close()


@pytest.fixture
async def seed(test_session_factory):
    """Helpers that insert users and letters, returning their ids."""

    class _Seed:
        async def user(self, name: str) -> int:
            async with test_session_factory() as session:
                user = User(name=name, username=name.lower())
                session.add(user)
                await session.commit()
                return user.id

        async def letter(self, owner_id: int, heading: str = "Wishes") -> int:
            async with test_session_factory() as session:
                letter = Letter(
                    owner_id=owner_id, heading=heading,
                    message=f"Dear Santa: {heading}",
                )
                session.add(letter)
                await session.commit()
                return letter.id

    return _Seed()


@pytest.fixture
async def client(test_engine, test_session_factory, registry, bus, locks):
    """FastAPI test client with DB dependency and fan-out state overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.connections = registry
    app.state.event_bus = bus
    app.state.room_locks = locks

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
