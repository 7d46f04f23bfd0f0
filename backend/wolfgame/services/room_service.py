"""Room Service — public operations of the game, composed from the four components.

Invariants:
    - Every room code is normalized before use
    - Mutating commands for one room run under RoomCommandQueue.serialize(code)
    - Votes are always recorded against room.current_round (never a client value)
    - Read accessors derive from a fresh RoomView, never from cached state

Design Decisions:
    - Thin facade over RoomRegistry / RosterManager / VoteLedger / RoundController:
      routes and clients call one object, components stay independently testable
    - finalize falls back to the persisted reveal when the caller passes none,
      and uses the caller's value when the reveal only lives in its memory
"""

import logging
import random
from typing import Callable
from uuid import UUID

from wolfgame.config import Settings
from wolfgame.core.domain_types import RoomStatus, Table
from wolfgame.core.errors import ErrorContext, InvalidStateTransition
from wolfgame.core.repository_protocols import StorageCollaborator
from wolfgame.core.room_codes import normalize_room_code
from wolfgame.core.room_view import LocalReveal, RoomView
from wolfgame.services.room_commands import RoomCommandQueue, room_commands
from wolfgame.services.room_registry import RoomRegistry
from wolfgame.services.roster_manager import RosterManager
from wolfgame.services.round_controller import RevealResult, RoundController
from wolfgame.services.vote_ledger import VoteLedger

logger = logging.getLogger(__name__)


class RoomService:
    """createRoom, joinRoom, startRound, castVote, cancelVote, revealHighest,
    finalizeElimination, plus read accessors."""

    def __init__(
        self,
        storage: StorageCollaborator,
        settings: Settings,
        commands: RoomCommandQueue | None = None,
        rng: random.Random | None = None,
        coin: Callable[[], float] | None = None,
    ):
        self.storage = storage
        self.settings = settings
        self._commands = commands or room_commands
        self.registry = RoomRegistry(
            storage,
            max_attempts=settings.room_code_max_attempts,
            default_room_name=settings.default_room_name,
            rng=rng,
        )
        self.roster = RosterManager(storage, self.registry, coin=coin)
        self.ledger = VoteLedger(storage)
        self.controller = RoundController(storage, self.roster, self.ledger)

    # ─── Commands ────────────────────────────────────────────

    async def create_room(
        self,
        code: str | None = None,
        room_name: str | None = None,
        max_players: int | None = None,
        max_group_a: int | None = None,
    ) -> tuple[dict, dict, bool]:
        """Returns (room, host_player, created). Idempotent for an explicit code."""
        room, created = await self.registry.create_or_get_room(
            code,
            room_name,
            max_players or self.settings.default_max_players,
            max_group_a if max_group_a is not None else self.settings.default_max_group_a,
        )
        async with self._commands.serialize(room["code"]):
            host = await self.registry.ensure_host_player(room)
        return room, host, created

    async def join_room(self, code: str, player_name: str) -> tuple[dict, dict]:
        code = normalize_room_code(code)
        async with self._commands.serialize(code):
            return await self.roster.join(code, player_name)

    async def start_round(self, code: str, host_id: UUID | str) -> dict | None:
        code = normalize_room_code(code)
        async with self._commands.serialize(code):
            room = await self.registry.find_room(code)
            return await self.controller.start(room, host_id)

    async def cast_vote(self, code: str, voter_id: UUID, target_id: UUID) -> dict:
        code = normalize_room_code(code)
        async with self._commands.serialize(code):
            room = await self.registry.get_room(code)
            self._require_voting(room, "vote")
            return await self.ledger.cast(
                room["id"], voter_id, target_id, room["current_round"],
            )

    async def cancel_vote(self, code: str, voter_id: UUID) -> bool:
        code = normalize_room_code(code)
        async with self._commands.serialize(code):
            room = await self.registry.get_room(code)
            self._require_voting(room, "cancel a vote")
            return await self.ledger.cancel(
                room["id"], voter_id, room["current_round"],
            )

    async def reveal_highest(self, code: str, host_id: UUID | str) -> RevealResult:
        code = normalize_room_code(code)
        async with self._commands.serialize(code):
            room = await self.registry.get_room(code)
            votes = await self.ledger.votes_for_round(room["id"], room["current_round"])
            players = await self.roster.list_players(room["id"])
            return await self.controller.reveal_highest(room, host_id, votes, players)

    async def finalize_elimination(
        self,
        code: str,
        host_id: UUID | str,
        revealed_target_id: UUID | None = None,
    ) -> dict:
        code = normalize_room_code(code)
        async with self._commands.serialize(code):
            room = await self.registry.get_room(code)
            target = revealed_target_id or room.get("revealed_target_id")
            return await self.controller.finalize_elimination(
                room, host_id, target, room["current_round"],
            )

    # ─── Reads ───────────────────────────────────────────────

    async def load_view(
        self,
        code: str,
        viewer_id: UUID | None = None,
        local_reveal: LocalReveal | None = None,
    ) -> RoomView:
        """Point-in-time view: room, players in join order, current round's votes."""
        room = await self.registry.get_room(code)
        players = await self.roster.list_players(room["id"])
        votes = await self.ledger.votes_for_round(room["id"], room["current_round"])
        return RoomView(
            room=room,
            players=players,
            votes=votes,
            viewer_id=viewer_id,
            local_reveal=local_reveal,
            min_players_to_start=self.settings.min_players_to_start,
        )

    async def get_vote_count(self, code: str, player_id: UUID) -> int:
        return (await self.load_view(code)).get_vote_count(player_id)

    async def has_voted(self, code: str, player_id: UUID) -> bool:
        return (await self.load_view(code, viewer_id=player_id)).has_voted()

    async def can_vote_for(self, code: str, viewer_id: UUID, target_id: UUID) -> bool:
        return (await self.load_view(code, viewer_id=viewer_id)).can_vote_for(target_id)

    # ─── Administration ──────────────────────────────────────

    async def list_rooms(self) -> list[dict]:
        rooms = await self.storage.select(Table.ROOMS, {}, order_by=["created_at"])
        return list(reversed(rooms))

    async def delete_all_rooms(self) -> int:
        """Bulk delete: votes, then players, then rooms. Returns rooms removed."""
        await self.storage.delete(Table.VOTES, {})
        await self.storage.delete(Table.PLAYERS, {})
        removed = await self.storage.delete(Table.ROOMS, {})
        logger.warning(f"Deleted all rooms ({removed})")
        return removed

    @staticmethod
    def _require_voting(room: dict, action: str) -> None:
        if room["status"] != RoomStatus.VOTING.value:
            raise InvalidStateTransition(
                room["status"], action,
                ErrorContext(room_code=room["code"], round_number=room["current_round"]),
            )
