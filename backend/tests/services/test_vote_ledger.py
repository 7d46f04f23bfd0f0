"""Vote Ledger — verifies one vote per (voter, round), cancel, and purge.

Invariants:
    - Re-voting updates the existing row (never a second row)
    - Cancel then revote leaves exactly one row, pointing at the new target
    - Votes are recorded against the room's current round
    - Rule violations are rejected before any write
"""

import pytest

from wolfgame.core.domain_types import Table
from wolfgame.core.errors import (
    InvalidStateTransition, InvalidTarget, VoterIsHost,
)


async def _votes(storage, room):
    return await storage.select(Table.VOTES, {"room_id": room["id"]})


async def test_revote_updates_single_row(service, storage, voting_room):
    room, p = voting_room
    await service.cast_vote(room["code"], p["Alice"]["id"], p["Bob"]["id"])
    await service.cast_vote(room["code"], p["Alice"]["id"], p["Dave"]["id"])

    rows = await _votes(storage, room)
    assert len(rows) == 1
    assert rows[0]["target_id"] == p["Dave"]["id"]
    assert rows[0]["round"] == 1


async def test_cancel_then_revote_leaves_one_row(service, storage, voting_room):
    room, p = voting_room
    await service.cast_vote(room["code"], p["Alice"]["id"], p["Bob"]["id"])
    assert await service.cancel_vote(room["code"], p["Alice"]["id"]) is True
    await service.cast_vote(room["code"], p["Alice"]["id"], p["Carol"]["id"])

    rows = await _votes(storage, room)
    assert len(rows) == 1
    assert rows[0]["target_id"] == p["Carol"]["id"]


async def test_cancel_without_vote_is_noop(service, voting_room):
    room, p = voting_room
    assert await service.cancel_vote(room["code"], p["Alice"]["id"]) is False


async def test_host_cannot_vote(service, host_room, voting_room):
    room, p = voting_room
    _, host = host_room
    with pytest.raises(VoterIsHost):
        await service.cast_vote(room["code"], host["id"], p["Bob"]["id"])


async def test_self_vote_rejected(service, storage, voting_room):
    room, p = voting_room
    with pytest.raises(InvalidTarget):
        await service.cast_vote(room["code"], p["Alice"]["id"], p["Alice"]["id"])
    assert await _votes(storage, room) == []


async def test_vote_outside_voting_rejected(service, host_room):
    room, _ = host_room
    _, alice = await service.join_room(room["code"], "Alice")
    _, bob = await service.join_room(room["code"], "Bob")
    with pytest.raises(InvalidStateTransition):
        await service.cast_vote(room["code"], alice["id"], bob["id"])


async def test_tally_and_all_votes_in(service, voting_room):
    room, p = voting_room
    await service.cast_vote(room["code"], p["Alice"]["id"], p["Bob"]["id"])
    await service.cast_vote(room["code"], p["Carol"]["id"], p["Bob"]["id"])
    await service.cast_vote(room["code"], p["Bob"]["id"], p["Alice"]["id"])

    votes = await service.ledger.votes_for_round(room["id"], 1)
    assert service.ledger.tally(votes) == {p["Bob"]["id"]: 2, p["Alice"]["id"]: 1}
    assert not service.ledger.all_votes_in(votes, 5)

    await service.cast_vote(room["code"], p["Dave"]["id"], p["Alice"]["id"])
    await service.cast_vote(room["code"], p["Eve"]["id"], p["Dave"]["id"])
    votes = await service.ledger.votes_for_round(room["id"], 1)
    assert service.ledger.all_votes_in(votes, 5)
    assert await service.get_vote_count(room["code"], p["Bob"]["id"]) == 2
    assert await service.has_voted(room["code"], p["Dave"]["id"])


async def test_purge_round_removes_only_that_round(service, storage, voting_room):
    room, p = voting_room
    await service.cast_vote(room["code"], p["Alice"]["id"], p["Bob"]["id"])
    await storage.insert(Table.VOTES, {
        "room_id": room["id"], "voter_id": p["Bob"]["id"],
        "target_id": p["Alice"]["id"], "round": 2,
    })
    removed = await service.ledger.purge_round(room["id"], 1)
    assert removed == 1
    rows = await _votes(storage, room)
    assert [r["round"] for r in rows] == [2]
