"""Health & Readiness Probes — is the process up, and can it serve rooms?

Invariants:
    - GET /health/ always returns 200 if the process is up (liveness)
    - GET /health/ready returns 503 when the database is unreachable or the
      rooms, players and votes tables are not there yet (migrations pending)
    - Readiness also reports live room activity: open change subscriptions
      (one set per connected RoomSync) and rooms with commands in flight

Design Decisions:
    - Activity numbers come from the process-wide change bus and command
      queue, the same ones every request's RoomService shares
"""

import logging
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from wolfgame.core.domain_types import Table
from wolfgame.infrastructure import database
from wolfgame.infrastructure.change_bus import change_bus
from wolfgame.services.room_commands import room_commands

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    return {"status": "healthy", "service": "wolfgame-api"}


@router.get("/ready")
async def readiness_check():
    manager = database.db_manager
    if not manager or not await manager.health_check():
        return _not_ready("database_unavailable")

    missing = await manager.missing_tables([t.value for t in Table])
    if missing:
        logger.warning(f"Readiness: tables missing {missing}")
        return _not_ready("schema_missing", missing_tables=missing)

    return {
        "status": "ready",
        "checks": {"database": "healthy", "schema": "migrated"},
        "activity": {
            "live_subscriptions": change_bus.subscriber_count,
            "busy_rooms": room_commands.busy_rooms,
        },
    }


def _not_ready(reason: str, **details) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "not_ready", "reason": reason, **details},
    )
