"""Round Controller — the room state machine: start, reveal, finalize, win check.

Invariants:
    - The only writer of room.status: waiting -> voting -> finished
      (playing is reserved and never entered)
    - start / reveal / finalize are host-only (room.host_id must match)
    - current_round advances by exactly 1 per finalize, via compare-and-swap
      on (id, current_round); a duplicated finalize advances once
    - finalize refuses a target that differs from the persisted reveal, and an
      already-eliminated target once the round has moved past its reveal
    - apply_win_condition is idempotent and writes nothing when no group won

Design Decisions:
    - Reveal persistence failure is soft: logged, and the reveal is returned
      with persisted=False so the caller keeps it in memory (RoomClient)
    - Finalize is eliminate -> purge round votes -> advance round. Each step is
      idempotent, so a crash between steps is repaired by re-running finalize
      while the reveal is still persisted; in-process callers are serialized
      by RoomCommandQueue
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from wolfgame.core.domain_types import PlayerGroup, RoomStatus, Table
from wolfgame.core.errors import (
    ErrorContext, InvalidStateTransition, InvalidTarget, NoVotesCast,
    NotHost, RevealRequired, StorageUnavailable,
)
from wolfgame.core.repository_protocols import StorageCollaborator
from wolfgame.core.vote_rules import select_highest, tally
from wolfgame.core.win_condition import evaluate_win_condition
from wolfgame.services.roster_manager import RosterManager
from wolfgame.services.vote_ledger import VoteLedger

logger = logging.getLogger(__name__)

_CLEARED_REVEAL = {"revealed_target_id": None, "revealed_count": None}


@dataclass(frozen=True)
class RevealResult:
    """Outcome of revealHighest."""
    round_number: int
    target_id: UUID
    count: int
    persisted: bool


def _ctx(room: dict) -> ErrorContext:
    return ErrorContext(room_code=room["code"], round_number=room["current_round"])


class RoundController:
    """Owns room status transitions and round progression."""

    def __init__(
        self,
        storage: StorageCollaborator,
        roster: RosterManager,
        ledger: VoteLedger,
    ):
        self._storage = storage
        self._roster = roster
        self._ledger = ledger

    # ─── Host commands ───────────────────────────────────────

    async def start(self, room: dict | None, host_id: UUID | str) -> dict | None:
        """waiting -> voting, round reset to 1, votes and reveal cleared."""
        if room is None:
            return None
        self._require_host(room, host_id, "start the game")
        if room["status"] != RoomStatus.WAITING.value:
            raise InvalidStateTransition(room["status"], "start the game", _ctx(room))

        await self._ledger.purge_room(room["id"])
        started = await self._storage.update(
            Table.ROOMS,
            {"id": room["id"], "status": RoomStatus.WAITING.value},
            {
                "status": RoomStatus.VOTING.value,
                "current_round": 1,
                "winner": None,
                **_CLEARED_REVEAL,
            },
        )
        if started is None:
            # Another host tab started it first
            return await self._reload(room)
        logger.info("Voting started", extra={"room_code": room["code"], "round_number": 1})
        return started

    async def reveal_highest(
        self,
        room: dict,
        host_id: UUID | str,
        votes: list[dict],
        players: list[dict],
    ) -> RevealResult:
        """Disclose the current highest-voted target and persist it on the room."""
        self._require_host(room, host_id, "reveal votes")
        self._require_voting(room, "reveal votes")
        picked = select_highest(tally(votes), [p["id"] for p in players])
        if picked is None:
            raise NoVotesCast(_ctx(room))
        target_id, count = picked
        round_number = room["current_round"]

        try:
            saved = await self._storage.update(
                Table.ROOMS,
                {"id": room["id"], "current_round": round_number},
                {"revealed_target_id": target_id, "revealed_count": count},
            )
        except StorageUnavailable as e:
            logger.warning(
                f"Reveal not persisted, falling back to local reveal: {e.message}",
                extra={"room_code": room["code"], "round_number": round_number},
            )
            return RevealResult(round_number, target_id, count, persisted=False)

        if saved is None:
            logger.warning(
                "Reveal not persisted: round advanced concurrently",
                extra={"room_code": room["code"], "round_number": round_number},
            )
        return RevealResult(round_number, target_id, count, persisted=saved is not None)

    async def finalize_elimination(
        self,
        room: dict,
        host_id: UUID | str,
        revealed_target_id: UUID | None,
        round_number: int,
    ) -> dict:
        """Eliminate the revealed target, purge the round, advance the round."""
        self._require_host(room, host_id, "finalize the elimination")
        self._require_voting(room, "finalize the elimination")
        if revealed_target_id is None:
            raise RevealRequired(_ctx(room))

        target = await self._roster.get_player(room["id"], revealed_target_id)
        if target["is_host"]:
            raise InvalidTarget("the host cannot be eliminated", _ctx(room))
        persisted = room.get("revealed_target_id")
        if persisted is not None and str(persisted) != str(revealed_target_id):
            raise InvalidTarget("target does not match the revealed player", _ctx(room))
        # An inactive target is only accepted while its reveal is still on the
        # room row, i.e. a finalize of this round that stopped before advancing
        if not target["is_active"] and persisted is None:
            raise InvalidTarget("target has already been eliminated", _ctx(room))

        await self._roster.eliminate(revealed_target_id)
        await self._ledger.purge_round(room["id"], round_number)
        advanced = await self._storage.update(
            Table.ROOMS,
            {"id": room["id"], "current_round": round_number},
            {"current_round": round_number + 1, **_CLEARED_REVEAL},
        )
        if advanced is None:
            logger.info(
                "Round already advanced by another finalize",
                extra={"room_code": room["code"], "round_number": round_number},
            )
            advanced = await self._reload(room)
        else:
            logger.info(
                "Round finalized",
                extra={
                    "room_code": room["code"],
                    "round_number": round_number,
                    "player_id": revealed_target_id,
                },
            )

        players = await self._roster.list_players(room["id"])
        return await self.apply_win_condition(advanced, players)

    # ─── Roster-driven transition ────────────────────────────

    async def apply_win_condition(self, room: dict, players: list[dict]) -> dict:
        """voting -> finished when a group has won; otherwise unchanged."""
        if room["status"] != RoomStatus.VOTING.value:
            return room
        winner: PlayerGroup | None = evaluate_win_condition(players)
        if winner is None:
            return room
        finished = await self._storage.update(
            Table.ROOMS,
            {"id": room["id"], "status": RoomStatus.VOTING.value},
            {"status": RoomStatus.FINISHED.value, "winner": winner.value},
        )
        if finished is None:
            return await self._reload(room)
        logger.info(
            f"Group {winner.value} wins",
            extra={"room_code": room["code"], "round_number": room["current_round"]},
        )
        return finished

    # ─── Helpers ─────────────────────────────────────────────

    @staticmethod
    def is_host(room: dict, host_id: UUID | str | None) -> bool:
        return host_id is not None and str(room["host_id"]) == str(host_id)

    def _require_host(self, room: dict, host_id: UUID | str, action: str) -> None:
        if not self.is_host(room, host_id):
            raise NotHost(action, _ctx(room))

    @staticmethod
    def _require_voting(room: dict, action: str) -> None:
        if room["status"] != RoomStatus.VOTING.value:
            raise InvalidStateTransition(room["status"], action, _ctx(room))

    async def _reload(self, room: dict) -> dict:
        rows = await self._storage.select(Table.ROOMS, {"id": room["id"]})
        if not rows:
            raise StorageUnavailable("room vanished during transition", "select")
        return rows[0]
