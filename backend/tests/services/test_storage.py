"""SQL Storage — verifies the storage contract over SQLite.

Invariants:
    - insert returns the written row (defaults filled in)
    - insert on a unique violation raises DuplicateRecordError(table)
    - update filter acts as compare-and-swap: no match → None, no event
    - Events published after commit, one per affected row
"""

import pytest
from uuid import uuid4

from wolfgame.core.domain_types import ChangeKind, Table
from wolfgame.core.errors import DuplicateRecordError


def _room(code="ROW001"):
    return {
        "code": code, "room_name": "Room", "max_players": 8,
        "max_group_a": 4, "status": "waiting",
        "host_id": uuid4(), "current_round": 1,
    }


async def test_insert_returns_row_with_defaults(storage):
    row = await storage.insert(Table.ROOMS, _room())
    assert row["id"] is not None
    assert row["created_at"] is not None
    assert row["winner"] is None


async def test_duplicate_code_raises_duplicate_record(storage):
    await storage.insert(Table.ROOMS, _room("DUP001"))
    with pytest.raises(DuplicateRecordError) as exc:
        await storage.insert(Table.ROOMS, _room("DUP001"))
    assert exc.value.table == "rooms"
    assert isinstance(exc.value.__cause__, DuplicateRecordError)
    assert exc.value.__cause__.__cause__ is not None


async def test_second_host_rejected_by_index(storage):
    room = await storage.insert(Table.ROOMS, _room())
    host = {"room_id": room["id"], "name": "Host", "player_group": None,
            "is_active": True, "is_host": True}
    await storage.insert(Table.PLAYERS, host)
    with pytest.raises(DuplicateRecordError):
        await storage.insert(Table.PLAYERS, host)


async def test_update_is_compare_and_swap(storage):
    room = await storage.insert(Table.ROOMS, _room())
    moved = await storage.update(
        Table.ROOMS, {"id": room["id"], "current_round": 1}, {"current_round": 2},
    )
    stale = await storage.update(
        Table.ROOMS, {"id": room["id"], "current_round": 1}, {"current_round": 3},
    )
    assert moved["current_round"] == 2
    assert stale is None


async def test_events_published_per_row(storage, bus):
    events = []
    bus.subscribe(Table.ROOMS, {}, events.append)
    room = await storage.insert(Table.ROOMS, _room())
    await storage.update(Table.ROOMS, {"id": room["id"]}, {"status": "voting"})
    await storage.update(Table.ROOMS, {"id": room["id"], "status": "waiting"}, {"status": "finished"})
    removed = await storage.delete(Table.ROOMS, {"id": room["id"]})

    assert removed == 1
    assert [e.kind for e in events] == [
        ChangeKind.INSERT, ChangeKind.UPDATE, ChangeKind.DELETE,
    ]
    assert events[-1].old["id"] == room["id"]


async def test_select_orders_by_columns(storage):
    for code in ("ORD003", "ORD001", "ORD002"):
        await storage.insert(Table.ROOMS, _room(code))
    rows = await storage.select(Table.ROOMS, {}, order_by=["code"])
    assert [r["code"] for r in rows] == ["ORD001", "ORD002", "ORD003"]
