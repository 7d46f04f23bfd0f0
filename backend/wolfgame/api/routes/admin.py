"""Admin Routes — debug listing and bulk deletion of rooms.

Invariants:
    - DELETE /admin/rooms is the only path that removes rooms
    - Listing never exposes host_id

Design Decisions:
    - No auth: intended for local/debug deployments only
"""

import logging

from fastapi import APIRouter, Depends

from wolfgame.api.dependencies import get_room_service
from wolfgame.core.room_view import public_room
from wolfgame.services.room_service import RoomService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


@router.get("/rooms")
async def list_rooms(service: RoomService = Depends(get_room_service)):
    """All rooms, newest first."""
    rooms = await service.list_rooms()
    return {"rooms": [public_room(r) for r in rooms], "total": len(rooms)}


@router.delete("/rooms")
async def delete_all_rooms(service: RoomService = Depends(get_room_service)):
    deleted = await service.delete_all_rooms()
    return {"deleted": deleted}
