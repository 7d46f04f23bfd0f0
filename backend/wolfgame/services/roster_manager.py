"""Roster Manager — admits players, assigns groups, eliminates.

Invariants:
    - Player names are compared after strip(); a rejoin with an existing
      non-host name returns that row (no new insert)
    - Capacity counts every active player, host included, against max_players
    - player_group is chosen once at insert and never written again
    - eliminate only writes is_active = false (idempotent)

Design Decisions:
    - Name-based dedup is best-effort: two different names joining at the
      same instant can both pass the capacity check. In-process ordering
      comes from RoomCommandQueue; there is no cross-process lock
"""

import logging
import random
from typing import Callable
from uuid import UUID

from wolfgame.core.domain_types import Table
from wolfgame.core.errors import ErrorContext, PlayerNotFound, RoomFull
from wolfgame.core.group_assignment import assign_group, count_active_players
from wolfgame.core.repository_protocols import StorageCollaborator
from wolfgame.services.room_registry import RoomRegistry

logger = logging.getLogger(__name__)

DEFAULT_PLAYER_NAME = "Player"


class RosterManager:
    """Player admission and elimination."""

    def __init__(
        self,
        storage: StorageCollaborator,
        registry: RoomRegistry,
        coin: Callable[[], float] | None = None,
    ):
        self._storage = storage
        self._registry = registry
        self._coin = coin or random.random

    async def join(self, room_code: str, player_name: str) -> tuple[dict, dict]:
        """Admit `player_name` to the room. Returns (room, player)."""
        room = await self._registry.get_room(room_code)
        name = (player_name or DEFAULT_PLAYER_NAME).strip() or DEFAULT_PLAYER_NAME
        players = await self.list_players(room["id"])

        same_name = next(
            (p for p in players if not p["is_host"] and p["name"].strip() == name),
            None,
        )
        if same_name:
            logger.info(
                f"Rejoin as existing player '{name}'",
                extra={"room_code": room["code"], "player_id": same_name["id"]},
            )
            return room, same_name

        if count_active_players(players) >= room["max_players"]:
            raise RoomFull(
                room["max_players"], ErrorContext(room_code=room["code"]),
            )

        group = assign_group(players, room["max_group_a"], self._coin)
        player = await self._storage.insert(Table.PLAYERS, {
            "room_id": room["id"],
            "name": name,
            "player_group": group.value,
            "is_active": True,
            "is_host": False,
        })
        logger.info(
            f"Player '{name}' joined group {group.value}",
            extra={"room_code": room["code"], "player_id": player["id"]},
        )
        return room, player

    async def eliminate(self, player_id: UUID) -> dict:
        """Mark the player inactive. Re-eliminating is a no-op."""
        player = await self._storage.update(
            Table.PLAYERS, {"id": player_id, "is_active": True}, {"is_active": False},
        )
        if player is not None:
            logger.info("Player eliminated", extra={"player_id": player_id})
            return player
        existing = await self._storage.select(Table.PLAYERS, {"id": player_id})
        if not existing:
            raise PlayerNotFound(str(player_id))
        return existing[0]

    async def list_players(self, room_id: UUID) -> list[dict]:
        """All players in join order (host included)."""
        return await self._storage.select(
            Table.PLAYERS, {"room_id": room_id}, order_by=["created_at", "id"],
        )

    async def get_player(self, room_id: UUID, player_id: UUID) -> dict:
        rows = await self._storage.select(
            Table.PLAYERS, {"room_id": room_id, "id": player_id},
        )
        if not rows:
            raise PlayerNotFound(str(player_id))
        return rows[0]
