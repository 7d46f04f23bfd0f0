"""Round Controller — verifies start, reveal, finalize and win transitions.

Invariants:
    - start: host-only, waiting → voting, round reset to 1
    - reveal: host-only, needs votes, persists target + count on the room
    - reveal persistence failure degrades to persisted=False (no raise)
    - finalize: eliminates target, purges round, clears reveal, round += 1
    - A retried finalize after the round advanced is refused
    - Win detected after finalize moves the room to finished
"""

import pytest
from uuid import uuid4

from wolfgame.core.domain_types import Table
from wolfgame.core.errors import (
    InvalidStateTransition, InvalidTarget, NoVotesCast, NotHost,
    RevealRequired,
)
from wolfgame.services.room_commands import RoomCommandQueue
from wolfgame.services.room_service import RoomService

from tests.services.fake_storage import RevealFailingStorage


# ─── start ───────────────────────────────────────────────────

async def test_start_moves_waiting_to_voting(voting_room):
    room, _ = voting_room
    assert room["status"] == "voting"
    assert room["current_round"] == 1
    assert room["winner"] is None


async def test_start_requires_host(service, host_room):
    room, _ = host_room
    with pytest.raises(NotHost):
        await service.start_round(room["code"], uuid4())


async def test_start_twice_rejected(service, voting_room):
    room, _ = voting_room
    with pytest.raises(InvalidStateTransition):
        await service.start_round(room["code"], room["host_id"])


async def test_start_missing_room_is_noop(service):
    assert await service.start_round("GONE00", uuid4()) is None


# ─── reveal ──────────────────────────────────────────────────

async def test_reveal_picks_highest_and_persists(service, storage, voting_room):
    room, p = voting_room
    await service.cast_vote(room["code"], p["Alice"]["id"], p["Bob"]["id"])
    await service.cast_vote(room["code"], p["Carol"]["id"], p["Bob"]["id"])
    await service.cast_vote(room["code"], p["Bob"]["id"], p["Dave"]["id"])

    result = await service.reveal_highest(room["code"], room["host_id"])

    assert result.target_id == p["Bob"]["id"]
    assert result.count == 2
    assert result.persisted is True
    saved = (await storage.select(Table.ROOMS, {"id": room["id"]}))[0]
    assert saved["revealed_target_id"] == p["Bob"]["id"]
    assert saved["revealed_count"] == 2


async def test_reveal_tie_goes_to_earliest_joined(service, voting_room):
    room, p = voting_room
    # Dave (joined last) receives the first vote; Bob joined before Dave
    await service.cast_vote(room["code"], p["Alice"]["id"], p["Dave"]["id"])
    await service.cast_vote(room["code"], p["Carol"]["id"], p["Bob"]["id"])

    result = await service.reveal_highest(room["code"], room["host_id"])
    assert result.target_id == p["Bob"]["id"]
    assert result.count == 1


async def test_reveal_without_votes_raises(service, voting_room):
    room, _ = voting_room
    with pytest.raises(NoVotesCast):
        await service.reveal_highest(room["code"], room["host_id"])


async def test_reveal_requires_host(service, voting_room):
    room, p = voting_room
    await service.cast_vote(room["code"], p["Alice"]["id"], p["Bob"]["id"])
    with pytest.raises(NotHost):
        await service.reveal_highest(room["code"], p["Alice"]["id"])


async def test_reveal_persistence_failure_falls_back(storage, settings, voting_room):
    room, p = voting_room
    failing = RoomService(
        RevealFailingStorage(storage), settings, commands=RoomCommandQueue(),
    )
    await failing.cast_vote(room["code"], p["Alice"]["id"], p["Bob"]["id"])

    result = await failing.reveal_highest(room["code"], room["host_id"])

    assert result.persisted is False
    assert result.target_id == p["Bob"]["id"]
    saved = (await storage.select(Table.ROOMS, {"id": room["id"]}))[0]
    assert saved["revealed_target_id"] is None


# ─── finalize ────────────────────────────────────────────────

async def test_finalize_eliminates_and_advances_round(service, storage, voting_room):
    room, p = voting_room
    await service.cast_vote(room["code"], p["Alice"]["id"], p["Bob"]["id"])
    await service.cast_vote(room["code"], p["Carol"]["id"], p["Bob"]["id"])
    await service.reveal_highest(room["code"], room["host_id"])

    updated = await service.finalize_elimination(room["code"], room["host_id"])

    assert updated["current_round"] == 2
    assert updated["revealed_target_id"] is None
    assert updated["revealed_count"] is None
    assert updated["status"] == "voting"
    bob = await service.roster.get_player(room["id"], p["Bob"]["id"])
    assert bob["is_active"] is False
    assert await storage.select(Table.VOTES, {"room_id": room["id"]}) == []


async def test_round_increases_by_one_per_finalize(service, host_room):
    room, _ = host_room
    names = ["P1", "P2", "P3", "P4", "P5", "P6"]
    players = {}
    for name in names:
        _, players[name] = await service.join_room(room["code"], name)
    await service.start_round(room["code"], room["host_id"])
    # P1, P3, P5 are A; P2, P4, P6 are B. Eliminate P1 then P3.
    rounds = []
    for victim, voter in (("P1", "P2"), ("P3", "P4")):
        await service.cast_vote(room["code"], players[voter]["id"], players[victim]["id"])
        await service.reveal_highest(room["code"], room["host_id"])
        updated = await service.finalize_elimination(room["code"], room["host_id"])
        rounds.append(updated["current_round"])
    assert rounds == [2, 3]


async def test_finalize_uses_caller_reveal_when_not_persisted(storage, settings, voting_room):
    room, p = voting_room
    failing = RoomService(
        RevealFailingStorage(storage), settings, commands=RoomCommandQueue(),
    )
    await failing.cast_vote(room["code"], p["Alice"]["id"], p["Bob"]["id"])
    result = await failing.reveal_highest(room["code"], room["host_id"])

    updated = await failing.finalize_elimination(
        room["code"], room["host_id"], result.target_id,
    )
    assert updated["current_round"] == 2


async def test_finalize_without_reveal_raises(service, voting_room):
    room, _ = voting_room
    with pytest.raises(RevealRequired):
        await service.finalize_elimination(room["code"], room["host_id"])


async def test_finalize_cannot_target_host(service, host_room, voting_room):
    room, _ = voting_room
    _, host = host_room
    with pytest.raises(InvalidTarget):
        await service.finalize_elimination(room["code"], room["host_id"], host["id"])


async def test_finalize_detects_win(service, voting_room):
    room, p = voting_room
    # A: Alice, Carol, Eve / B: Bob, Dave. Eliminating Bob leaves A:3, B:1 (no win)
    await service.cast_vote(room["code"], p["Alice"]["id"], p["Bob"]["id"])
    await service.reveal_highest(room["code"], room["host_id"])
    updated = await service.finalize_elimination(room["code"], room["host_id"])
    assert updated["status"] == "voting"

    # Eliminating Dave empties group B → A wins
    await service.cast_vote(room["code"], p["Alice"]["id"], p["Dave"]["id"])
    await service.reveal_highest(room["code"], room["host_id"])
    updated = await service.finalize_elimination(room["code"], room["host_id"])
    assert updated["status"] == "finished"
    assert updated["winner"] == "A"


async def test_tie_in_headcount_gives_a_the_win(service, voting_room):
    room, p = voting_room
    # Eliminating Alice leaves A:2 (Carol, Eve), B:2 → tie → A
    await service.cast_vote(room["code"], p["Bob"]["id"], p["Alice"]["id"])
    await service.reveal_highest(room["code"], room["host_id"])
    updated = await service.finalize_elimination(room["code"], room["host_id"])
    assert updated["status"] == "finished"
    assert updated["winner"] == "A"


async def test_retried_finalize_after_advance_is_rejected(service, storage, voting_room):
    room, p = voting_room
    await service.cast_vote(room["code"], p["Alice"]["id"], p["Bob"]["id"])
    result = await service.reveal_highest(room["code"], room["host_id"])
    await service.finalize_elimination(room["code"], room["host_id"], result.target_id)
    await service.cast_vote(room["code"], p["Carol"]["id"], p["Dave"]["id"])

    with pytest.raises(InvalidTarget):
        await service.finalize_elimination(
            room["code"], room["host_id"], result.target_id,
        )

    current = await service.registry.get_room(room["code"])
    assert current["current_round"] == 2
    votes = await storage.select(Table.VOTES, {"room_id": room["id"], "round": 2})
    assert len(votes) == 1


async def test_finalize_rejects_target_other_than_persisted_reveal(service, voting_room):
    room, p = voting_room
    await service.cast_vote(room["code"], p["Alice"]["id"], p["Bob"]["id"])
    await service.reveal_highest(room["code"], room["host_id"])

    with pytest.raises(InvalidTarget):
        await service.finalize_elimination(
            room["code"], room["host_id"], p["Dave"]["id"],
        )
    dave = await service.roster.get_player(room["id"], p["Dave"]["id"])
    assert dave["is_active"] is True


async def test_interrupted_finalize_completes_on_retry(service, voting_room):
    room, p = voting_room
    await service.cast_vote(room["code"], p["Alice"]["id"], p["Bob"]["id"])
    await service.reveal_highest(room["code"], room["host_id"])
    # First attempt stopped right after the elimination step
    await service.roster.eliminate(p["Bob"]["id"])

    updated = await service.finalize_elimination(room["code"], room["host_id"])
    assert updated["current_round"] == 2
    assert updated["revealed_target_id"] is None
