"""Room Registry — unique room codes, idempotent room creation, host player bootstrap.

Invariants:
    - Codes are normalized (strip + upper) before any storage access
    - create_or_get_room with an explicit code is idempotent: a duplicate
      insert is recovered by fetching the existing row (DuplicateRoomCode
      never leaves this module) and reported with created=False
    - ensure_host_player leaves exactly one is_host row per room

Design Decisions:
    - Code generation retries against storage up to max_attempts (default 10)
      instead of assuming 36^6 never collides
    - The host singleton rides on a partial unique index; a lost insert race
      re-selects the winner's row instead of failing
"""

import logging
import random
import uuid

from wolfgame.core.domain_types import RoomCode, RoomStatus, Table
from wolfgame.core.errors import (
    CodeGenerationExhausted, DuplicateRecordError, DuplicateRoomCode,
    RoomNotFound, StorageUnavailable,
)
from wolfgame.core.repository_protocols import StorageCollaborator
from wolfgame.core.room_codes import generate_room_code, normalize_room_code

logger = logging.getLogger(__name__)

HOST_PLAYER_NAME = "Host"


class RoomRegistry:
    """Creates rooms and resolves room codes."""

    def __init__(
        self,
        storage: StorageCollaborator,
        max_attempts: int = 10,
        default_room_name: str = "Wolf Game Room",
        rng: random.Random | None = None,
    ):
        self._storage = storage
        self._max_attempts = max_attempts
        self._default_room_name = default_room_name
        self._rng = rng

    async def generate_unique_code(self) -> RoomCode:
        """Random code not yet present in storage."""
        for attempt in range(1, self._max_attempts + 1):
            code = generate_room_code(self._rng)
            existing = await self._storage.select(Table.ROOMS, {"code": code})
            if not existing:
                return code
            logger.warning(
                f"Room code collision on attempt {attempt}, regenerating",
                extra={"room_code": code},
            )
        raise CodeGenerationExhausted(self._max_attempts)

    async def create_or_get_room(
        self,
        code: str | None,
        room_name: str | None,
        max_players: int,
        max_group_a: int,
    ) -> tuple[dict, bool]:
        """Insert a room, or return the existing one for an explicit code.

        Returns (room, created); created is False when the code already existed.
        """
        if code:
            code = normalize_room_code(code)
            try:
                room = await self._insert_room(code, room_name, max_players, max_group_a)
                return room, True
            except DuplicateRoomCode:
                logger.info(
                    "Room already exists, using existing",
                    extra={"room_code": code},
                )
                existing = await self.find_room(code)
                if existing is None:
                    # Deleted between our insert and the fetch
                    raise StorageUnavailable(
                        "room vanished after duplicate insert", "select",
                    )
                return existing, False

        code = await self.generate_unique_code()
        room = await self._insert_room(code, room_name, max_players, max_group_a)
        return room, True

    async def _insert_room(
        self, code: RoomCode, room_name: str | None,
        max_players: int, max_group_a: int,
    ) -> dict:
        try:
            room = await self._storage.insert(Table.ROOMS, {
                "code": code,
                "room_name": room_name or self._default_room_name,
                "max_players": max_players,
                "max_group_a": max_group_a,
                "status": RoomStatus.WAITING.value,
                "host_id": uuid.uuid4(),
                "current_round": 1,
            })
        except DuplicateRecordError as e:
            raise DuplicateRoomCode(code) from e
        logger.info(
            f"Created room '{room['room_name']}'",
            extra={"room_code": code, "room_id": room["id"]},
        )
        return room

    async def ensure_host_player(self, room: dict) -> dict:
        """Return the room's host player, creating it on first call."""
        existing = await self._find_host(room["id"])
        if existing:
            return existing
        try:
            host = await self._storage.insert(Table.PLAYERS, {
                "room_id": room["id"],
                "name": HOST_PLAYER_NAME,
                "player_group": None,
                "is_active": True,
                "is_host": True,
            })
        except DuplicateRecordError:
            # Another tab created it between our check and insert
            winner = await self._find_host(room["id"])
            if winner is None:
                raise StorageUnavailable("host player vanished", "select")
            return winner
        logger.info(
            "Created host player",
            extra={"room_code": room["code"], "player_id": host["id"]},
        )
        return host

    async def _find_host(self, room_id) -> dict | None:
        hosts = await self._storage.select(
            Table.PLAYERS, {"room_id": room_id, "is_host": True},
            order_by=["created_at", "id"],
        )
        return hosts[0] if hosts else None

    async def find_room(self, code: str) -> dict | None:
        rooms = await self._storage.select(
            Table.ROOMS, {"code": normalize_room_code(code)},
        )
        return rooms[0] if rooms else None

    async def get_room(self, code: str) -> dict:
        """Resolve code -> room or raise RoomNotFound."""
        room = await self.find_room(code)
        if room is None:
            raise RoomNotFound(normalize_room_code(code))
        return room
