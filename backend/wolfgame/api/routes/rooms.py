"""Room Routes — createRoom, joinRoom and the voting round over REST.

Invariants:
    - Path room codes are normalized by room_code_path before any handler runs
    - host_id leaves the API exactly once: in the createRoom response that
      actually inserted the room; re-creating an existing code returns null
    - Every command delegates to RoomService; routes hold no game rules

Design Decisions:
    - Responses are built from core/room_view.py JSON helpers so REST and SSE
      payloads share one shape
    - startRound on a missing room is a no-op in the service; the route turns
      it into 404 so HTTP callers see why nothing happened
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from wolfgame.api.dependencies import get_room_service, room_code_path
from wolfgame.core.errors import RoomNotFound
from wolfgame.core.room_view import player_to_json, public_room, vote_to_json
from wolfgame.schemas.room import (
    FinalizeRequest,
    HostAction,
    JoinRequest,
    JoinResponse,
    RevealResponse,
    RoomCreate,
    RoomCreatedResponse,
    RoomResponse,
    VoteCreate,
    VoteResponse,
)
from wolfgame.services.room_service import RoomService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/rooms", tags=["rooms"])


@router.post(
    "", response_model=RoomCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_room(
    body: RoomCreate, service: RoomService = Depends(get_room_service),
):
    """Create a room (or re-open it when the code already exists)."""
    room, host, created = await service.create_room(
        body.code, body.room_name, body.max_players, body.max_group_a,
    )
    return {
        "room": public_room(room),
        "host_player": player_to_json(host),
        "host_id": room["host_id"] if created else None,
    }


@router.get("/{code}", response_model=RoomResponse)
async def get_room(
    code: str = Depends(room_code_path),
    service: RoomService = Depends(get_room_service),
):
    return public_room(await service.registry.get_room(code))


@router.post("/{code}/join", response_model=JoinResponse)
async def join_room(
    body: JoinRequest,
    code: str = Depends(room_code_path),
    service: RoomService = Depends(get_room_service),
):
    """Join as a player. Rejoining with the same name returns the same player."""
    room, player = await service.join_room(code, body.player_name)
    return {"room": public_room(room), "player": player_to_json(player)}


@router.post("/{code}/start", response_model=RoomResponse)
async def start_round(
    body: HostAction,
    code: str = Depends(room_code_path),
    service: RoomService = Depends(get_room_service),
):
    room = await service.start_round(code, body.host_id)
    if room is None:
        raise RoomNotFound(code)
    return public_room(room)


@router.post(
    "/{code}/votes", response_model=VoteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def cast_vote(
    body: VoteCreate,
    code: str = Depends(room_code_path),
    service: RoomService = Depends(get_room_service),
):
    vote = await service.cast_vote(code, body.voter_id, body.target_id)
    return vote_to_json(vote)


@router.delete("/{code}/votes/{voter_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_vote(
    voter_id: UUID,
    code: str = Depends(room_code_path),
    service: RoomService = Depends(get_room_service),
):
    await service.cancel_vote(code, voter_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{code}/reveal", response_model=RevealResponse)
async def reveal_highest(
    body: HostAction,
    code: str = Depends(room_code_path),
    service: RoomService = Depends(get_room_service),
):
    """Reveal the highest-voted player. persisted=false means only this
    response carries the result; pass it back to /finalize."""
    result = await service.reveal_highest(code, body.host_id)
    return {
        "round": result.round_number,
        "target_id": str(result.target_id),
        "count": result.count,
        "persisted": result.persisted,
    }


@router.post("/{code}/finalize", response_model=RoomResponse)
async def finalize_elimination(
    body: FinalizeRequest,
    code: str = Depends(room_code_path),
    service: RoomService = Depends(get_room_service),
):
    room = await service.finalize_elimination(
        code, body.host_id, body.revealed_target_id,
    )
    return public_room(room)


@router.get("/{code}/state")
async def get_state(
    code: str = Depends(room_code_path),
    player_id: UUID | None = Query(None),
    service: RoomService = Depends(get_room_service),
):
    """Derived view for one viewer: vote counts, has_voted, can_vote_for."""
    view = await service.load_view(code, viewer_id=player_id)
    return view.to_snapshot()
