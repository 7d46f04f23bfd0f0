"""API Dependencies — RoomService construction and room-code path validation.

Invariants:
    - One RoomService per request, sharing the process-wide change bus and
      command queue (so writers notify every connected RoomSync)
    - Path room codes are normalized before reaching a route handler

Design Decisions:
    - get_room_service is the single override point for tests
"""

from fastapi import Path

from wolfgame.config import get_settings
from wolfgame.core.errors import InvalidRoomCode
from wolfgame.core.room_codes import is_valid_room_code, normalize_room_code
from wolfgame.infrastructure import database
from wolfgame.infrastructure.change_bus import change_bus
from wolfgame.infrastructure.storage import SqlStorage
from wolfgame.services.room_service import RoomService


def get_room_service() -> RoomService:
    """FastAPI dependency for the room service."""
    if not database.db_manager:
        raise RuntimeError("Database not initialized")
    return RoomService(SqlStorage(database.db_manager, change_bus), get_settings())


def room_code_path(code: str = Path(..., max_length=32)) -> str:
    """Normalized room code from the URL path."""
    normalized = normalize_room_code(code)
    if not is_valid_room_code(normalized):
        raise InvalidRoomCode(code)
    return normalized
