"""Service test fixtures — file-backed SQLite storage, RoomService, FastAPI test client.

Invariants:
    - Every test gets a fresh SQLite database file under tmp_path
    - Every test gets its own ChangeBus and RoomCommandQueue (no cross-test leaks)
    - get_room_service dependency overridden to use the test RoomService
    - db_manager patched so readiness checks hit the test database

Design Decisions:
    - File-backed SQLite over :memory: — each storage call opens its own
      session, and an in-memory database would be private to one connection
    - Group coin alternates A, B, A, B... so rosters are deterministic
"""

import itertools
import random

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from wolfgame.api.dependencies import get_room_service
from wolfgame.config import Settings
from wolfgame.db.base import Base
from wolfgame.infrastructure.change_bus import ChangeBus
from wolfgame.infrastructure.database import DatabaseSessionManager
from wolfgame.infrastructure.storage import SqlStorage
from wolfgame.services.room_commands import RoomCommandQueue
from wolfgame.services.room_service import RoomService
import wolfgame.infrastructure.database as db_module
import wolfgame.models  # noqa: F401
from wolfgame.main import app


def alternating_coin():
    """Coin that lands A, B, A, B, ..."""
    flips = itertools.cycle([0.0, 0.9])
    return lambda: next(flips)


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'wolfgame.db'}", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def test_db_manager(test_engine):
    manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    manager.engine = test_engine
    manager._session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )
    return manager


@pytest.fixture
def bus():
    return ChangeBus()


@pytest.fixture
def storage(test_db_manager, bus):
    return SqlStorage(test_db_manager, bus)


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite+aiosqlite:///unused.db",
        poll_interval_seconds=0.05,
        sse_heartbeat_seconds=0.05,
    )


@pytest.fixture
def service(storage, settings):
    return RoomService(
        storage, settings,
        commands=RoomCommandQueue(),
        rng=random.Random(7),
        coin=alternating_coin(),
    )


@pytest.fixture
async def host_room(service):
    """Room ABC123 with its host player. Returns (room, host)."""
    room, host, _ = await service.create_room("ABC123", "Test Room", 8, 4)
    return room, host


@pytest.fixture
async def voting_room(service, host_room):
    """Room in voting with Alice(A), Bob(B), Carol(A), Dave(B), Eve(A).

    Three against two, so no group has won when voting opens.

    Returns (room, players_by_name).
    """
    room, _ = host_room
    players = {}
    for name in ("Alice", "Bob", "Carol", "Dave", "Eve"):
        _, player = await service.join_room(room["code"], name)
        players[name] = player
    room = await service.start_round(room["code"], room["host_id"])
    return room, players


@pytest.fixture
async def client(service, test_db_manager):
    """FastAPI test client with RoomService dependency overridden."""
    app.dependency_overrides[get_room_service] = lambda: service

    original_manager = db_module.db_manager
    db_module.db_manager = test_db_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
