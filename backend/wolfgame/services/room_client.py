"""Room Client — one connected participant (host tab or player device).

Invariants:
    - At most one join request in flight per client instance; a second
      concurrent join returns None without touching storage
    - The client's view comes from its RoomSync, never from local writes
    - A reveal that failed to persist is kept as this client's LocalReveal
      until the round advances

Design Decisions:
    - The join guard is scoped to one instance, not a cross-client lock;
      duplicates across clients are handled by name dedup in RosterManager
    - finalize prefers the view's revealed target (local fallback included)
      so a host whose reveal never reached storage can still finalize
"""

import logging
from uuid import UUID

from wolfgame.core.errors import RevealRequired
from wolfgame.core.room_codes import normalize_room_code
from wolfgame.core.room_view import LocalReveal, RoomView
from wolfgame.services.change_propagation import RoomSync
from wolfgame.services.room_service import RoomService
from wolfgame.services.round_controller import RevealResult

logger = logging.getLogger(__name__)


class RoomClient:
    """Client-side session against one room."""

    def __init__(
        self,
        service: RoomService,
        room_code: str | None = None,
        poll_interval: float | None = None,
    ):
        self._service = service
        self.room_code = normalize_room_code(room_code) if room_code else None
        self._poll_interval = poll_interval
        self.player: dict | None = None
        self.host_id: UUID | None = None
        self.sync: RoomSync | None = None
        self._joining = False

    # ─── Entry ───────────────────────────────────────────────

    async def open_as_host(
        self,
        room_name: str | None = None,
        max_players: int | None = None,
        max_group_a: int | None = None,
    ) -> dict:
        """Create (or re-open) the room and become its host."""
        room, host, _ = await self._service.create_room(
            self.room_code, room_name, max_players, max_group_a,
        )
        self.room_code = room["code"]
        self.host_id = room["host_id"]
        self.player = host
        await self._connect()
        return room

    async def join(self, player_name: str) -> dict | None:
        """Join as a player. None when a join from this client is already running."""
        if self._joining:
            logger.info(
                "Join already in progress, skipping duplicate attempt",
                extra={"room_code": self.room_code},
            )
            return None
        self._joining = True
        try:
            _, player = await self._service.join_room(self.room_code, player_name)
            self.player = player
            await self._connect()
            return player
        finally:
            self._joining = False

    async def _connect(self) -> None:
        if self.sync is not None:
            await self.sync.stop()
        self.sync = RoomSync(
            self._service, self.room_code,
            viewer_id=self.player["id"] if self.player else None,
            poll_interval=self._poll_interval,
        )
        await self.sync.start()

    async def close(self) -> None:
        if self.sync is not None:
            await self.sync.stop()
            self.sync = None

    # ─── Actions ─────────────────────────────────────────────

    async def start_round(self) -> dict | None:
        return await self._after(self._service.start_round(self.room_code, self.host_id))

    async def cast_vote(self, target_id: UUID) -> dict:
        return await self._after(
            self._service.cast_vote(self.room_code, self.player["id"], target_id),
        )

    async def cancel_vote(self) -> bool:
        return await self._after(
            self._service.cancel_vote(self.room_code, self.player["id"]),
        )

    async def reveal_highest(self) -> RevealResult:
        result = await self._service.reveal_highest(self.room_code, self.host_id)
        if self.sync is not None:
            self.sync.local_reveal = None if result.persisted else LocalReveal(
                result.round_number, result.target_id, result.count,
            )
            await self.sync.refresh()
        return result

    async def finalize_elimination(self) -> dict:
        view = self.view
        target = view.revealed_target_id if view else None
        if target is None:
            raise RevealRequired()
        room = await self._service.finalize_elimination(
            self.room_code, self.host_id, target,
        )
        if self.sync is not None:
            self.sync.local_reveal = None
            await self.sync.refresh()
        return room

    async def _after(self, action):
        result = await action
        if self.sync is not None:
            await self.sync.refresh()
        return result

    # ─── Read accessors ──────────────────────────────────────

    @property
    def view(self) -> RoomView | None:
        return self.sync.view if self.sync else None

    def get_vote_count(self, player_id: UUID) -> int:
        return self.view.get_vote_count(player_id) if self.view else 0

    def has_voted(self) -> bool:
        return self.view.has_voted() if self.view else False

    def can_vote_for(self, player_id: UUID) -> bool:
        return self.view.can_vote_for(player_id) if self.view else False
