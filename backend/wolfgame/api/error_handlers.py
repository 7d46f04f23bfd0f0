"""Error Handlers — map game failures to the JSON error envelope and the room log.

Invariants:
    - WolfGameError → exc.to_response() with exc.http_status
    - RequestValidationError → 400 VALIDATION_ERROR with field details
    - Anything else → 500 INTERNAL_ERROR, never leaking internals
    - Every log record carries the room code (from the error context, else
      the {code} path parameter) so one room's failures can be followed

Design Decisions:
    - Log level follows ErrorSeverity: rule violations (NotHost, RoomFull,
      InvalidTarget...) are warnings, storage outages are errors
    - Extracted from main.py to keep the entry point to wiring only
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from wolfgame.core.errors import ErrorSeverity, WolfGameError

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


def register_error_handlers(app: FastAPI) -> None:
    """Register the game, validation and catch-all handlers on the app."""

    @app.exception_handler(WolfGameError)
    async def wolfgame_error_handler(request: Request, exc: WolfGameError):
        logger.log(
            _LOG_LEVELS.get(exc.severity, logging.ERROR),
            f"{exc.code} on {request.method} {request.url.path}: {exc.message}",
            extra=game_error_extra(request, exc),
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        fields = [_field_name(e["loc"]) for e in exc.errors()]
        logger.warning(
            f"Rejected {request.method} {request.url.path}: invalid {', '.join(fields)}",
            extra={**_request_extra(request), "error_code": "VALIDATION_ERROR"},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_validation_error_response(exc),
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}: {exc}",
            exc_info=True,
            extra={**_request_extra(request), "error_code": "INTERNAL_ERROR"},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def game_error_extra(request: Request, exc: WolfGameError) -> dict:
    """Log extras for a game error: room, player and round from its context."""
    ctx = exc.context
    extra = {**_request_extra(request), "error_code": exc.code}
    if ctx.room_code:
        extra["room_code"] = ctx.room_code
    if ctx.player_id:
        extra["player_id"] = ctx.player_id
    if ctx.round_number is not None:
        extra["round_number"] = ctx.round_number
    return extra


def _request_extra(request: Request) -> dict:
    extra = {"path": request.url.path}
    code = request.path_params.get("code")
    if code:
        extra["room_code"] = str(code).strip().upper()
    return extra


def _field_name(loc) -> str:
    # Drop the "body"/"query"/"path" prefix FastAPI adds
    parts = [str(p) for p in loc]
    if len(parts) > 1 and parts[0] in ("body", "query", "path"):
        parts = parts[1:]
    return ".".join(parts)


def _validation_error_response(exc: RequestValidationError) -> dict:
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
