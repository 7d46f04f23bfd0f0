"""Room Registry — verifies code generation, idempotent creation and host singleton.

Invariants:
    - createOrGetRoom with an explicit code is idempotent (one row, same id)
    - Codes are normalized before insert and lookup
    - Code generation gives up after max_attempts collisions
    - Exactly one host player per room, even under concurrent calls
"""

import asyncio
import random

import pytest

from wolfgame.core.domain_types import Table
from wolfgame.core.errors import CodeGenerationExhausted, RoomNotFound
from wolfgame.core.room_codes import generate_room_code
from wolfgame.services.room_registry import RoomRegistry


async def test_create_with_explicit_code_is_idempotent(service, storage):
    first, _, created = await service.create_room("abc123", "Room", 8, 4)
    second, _, created_again = await service.create_room("ABC123 ", "Other name", 6, 2)

    assert first["id"] == second["id"]
    assert created is True
    assert created_again is False
    assert second["room_name"] == "Room"
    rows = await storage.select(Table.ROOMS, {"code": "ABC123"})
    assert len(rows) == 1


async def test_concurrent_creates_converge_on_one_room(service, storage):
    results = await asyncio.gather(
        *(service.create_room("RACE01", None, 8, 4) for _ in range(3)),
    )
    assert len({room["id"] for room, _, _ in results}) == 1
    assert len({host["id"] for _, host, _ in results}) == 1
    assert sum(created for _, _, created in results) == 1
    hosts = await storage.select(Table.PLAYERS, {"is_host": True})
    assert len(hosts) == 1


async def test_create_without_code_generates_one(service):
    room, host, created = await service.create_room(None, None, 8, 4)
    assert created is True
    assert len(room["code"]) == 6
    assert room["status"] == "waiting"
    assert room["current_round"] == 1
    assert room["room_name"] == "Wolf Game Room"
    assert host["is_host"] is True
    assert host["player_group"] is None


async def test_generation_exhausted_after_max_attempts(storage):
    taken = generate_room_code(random.Random(1))
    await RoomRegistry(storage).create_or_get_room(taken, None, 8, 4)

    class FixedRandom(random.Random):
        def choices(self, population, k=1, **kw):
            return list(taken)

    registry = RoomRegistry(storage, max_attempts=3, rng=FixedRandom())
    with pytest.raises(CodeGenerationExhausted):
        await registry.generate_unique_code()


async def test_ensure_host_player_is_reused(service, host_room):
    room, host = host_room
    again = await service.registry.ensure_host_player(room)
    assert again["id"] == host["id"]


async def test_concurrent_host_inserts_keep_one_host(service, storage):
    room, created = await service.registry.create_or_get_room("HOST02", None, 8, 4)
    assert created is True

    # No command queue here: every call races to the partial unique index
    hosts = await asyncio.gather(
        *(service.registry.ensure_host_player(room) for _ in range(4)),
    )

    assert len({host["id"] for host in hosts}) == 1
    rows = await storage.select(Table.PLAYERS, {"room_id": room["id"], "is_host": True})
    assert len(rows) == 1


async def test_get_room_unknown_code_raises(service):
    with pytest.raises(RoomNotFound):
        await service.registry.get_room("ZZZZZZ")
