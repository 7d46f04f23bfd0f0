"""Room Events — Server-Sent Events stream of a viewer's room snapshot.

Invariants:
    - One RoomSync per connected stream; stopped when the client disconnects
    - First event is always the current snapshot ("state")
    - Later events are emitted only when the derived snapshot changed
    - A heartbeat comment is sent when nothing changed for sse_heartbeat_seconds

Design Decisions:
    - The room is looked up before the response starts so RoomNotFound is a
      normal 404, not an error event in a 200 stream
    - The RoomSync is created inside the generator: a client that disconnects
      before the first chunk leaves no poll task or subscriptions behind
    - Domain errors mid-stream use WolfGameError.to_sse_event()
"""

import json
import logging
from collections.abc import AsyncIterator
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from wolfgame.api.dependencies import get_room_service, room_code_path
from wolfgame.core.errors import WolfGameError
from wolfgame.services.change_propagation import RoomSync
from wolfgame.services.room_service import RoomService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/rooms", tags=["rooms"])

# ADR: SSE headers prevent proxy/browser buffering of streamed events.
_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}


@router.get("/{code}/events")
async def stream_room(
    code: str = Depends(room_code_path),
    player_id: UUID | None = Query(None),
    service: RoomService = Depends(get_room_service),
):
    """SSE stream of room snapshots for one viewer."""
    await service.registry.get_room(code)
    return StreamingResponse(
        room_event_stream(service, code, player_id),
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
    )


async def room_event_stream(
    service: RoomService, code: str, player_id: UUID | None = None,
) -> AsyncIterator[str]:
    """Snapshot events for one viewer. The RoomSync lives only while iterated."""
    heartbeat = service.settings.sse_heartbeat_seconds
    sync = RoomSync(service, code, viewer_id=player_id)
    try:
        view = await sync.start()
        yield _sse_line(_state_event(view.to_snapshot()))
        # start() already queued the initial view
        await sync.next_update(timeout=0)
        while True:
            update = await sync.next_update(timeout=heartbeat)
            if update is None:
                yield ": heartbeat\n\n"
                continue
            yield _sse_line(_state_event(update.to_snapshot()))
    except WolfGameError as e:
        logger.error(
            f"Room stream error: {e.message}",
            extra={"room_code": code, "error_code": e.code},
        )
        yield _sse_line(e.to_sse_event())
    finally:
        await sync.stop()
        logger.debug("Room stream closed", extra={"room_code": code})


def _state_event(snapshot: dict) -> dict:
    return {"type": "state", "data": snapshot}


def _sse_line(event: dict) -> str:
    """Format event as SSE data line."""
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"
