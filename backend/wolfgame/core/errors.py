"""Error Hierarchy — typed, categorized exceptions for all Wolf Game failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces REST envelope; to_sse_event() produces SSE envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with WolfGameError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - RoomNotFound / RoomFull are terminal for the caller (severity ERROR);
      rule violations are WARNING so clients render a "try again" affordance
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    AUTHORIZATION = "authorization"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    room_code: str | None = None
    player_id: str | None = None
    round_number: int | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class WolfGameError(Exception):
    """Base exception for all Wolf Game errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "room_code": self.context.room_code,
                    "player_id": self.context.player_id,
                    "round_number": self.context.round_number,
                },
            }
        }

    def to_sse_event(self) -> dict:
        """Convert to SSE error event."""
        return {
            "type": "error",
            "data": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "severity": self.severity.value,
                "recoverable": self.severity in (
                    ErrorSeverity.INFO, ErrorSeverity.WARNING,
                ),
            },
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class InvalidRoomCode(WolfGameError):
    """Room code is not 6 characters of [A-Z0-9] after normalization."""
    def __init__(self, raw: str, context: ErrorContext | None = None):
        super().__init__(
            f"Invalid room code '{raw}': expected 6 letters or digits",
            "INVALID_ROOM_CODE", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )


class RoomNotFound(WolfGameError):
    """No room exists for the requested code."""
    def __init__(self, room_code: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.room_code = room_code
        super().__init__(
            f"Room with code '{room_code}' not found. "
            "Check the room code or ask the host to create the room first.",
            "ROOM_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )


class PlayerNotFound(WolfGameError):
    """Referenced player does not belong to the room."""
    def __init__(self, player_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.player_id = player_id
        super().__init__(
            f"Player '{player_id}' not found in this room",
            "PLAYER_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, ctx, 404,
        )


class RoomFull(WolfGameError):
    """Active player count already at max_players."""
    def __init__(self, max_players: int, context: ErrorContext | None = None):
        super().__init__(
            f"Room is full ({max_players}/{max_players} players)",
            "ROOM_FULL", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
        )
        self.max_players = max_players


class VoterIsHost(WolfGameError):
    """The host never votes."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "The host cannot vote",
            "VOTER_IS_HOST", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 400,
        )


class VoterEliminated(WolfGameError):
    """Eliminated players no longer vote."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Eliminated players cannot vote",
            "VOTER_ELIMINATED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 400,
        )


class InvalidTarget(WolfGameError):
    """Vote or elimination target is not a valid choice (self, host, eliminated, or not the revealed player)."""
    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Invalid target: {reason}",
            "INVALID_TARGET", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 400,
        )
        self.reason = reason


class NotHost(WolfGameError):
    """Host-only action attempted without the room's host identity."""
    def __init__(self, action: str, context: ErrorContext | None = None):
        super().__init__(
            f"Only the host can {action}",
            "NOT_HOST", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )
        self.action = action


class InvalidStateTransition(WolfGameError):
    """Action not allowed in the room's current status."""
    def __init__(
        self, current: str, action: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Cannot {action} while room is '{current}'",
            "INVALID_STATE_TRANSITION", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )
        self.current = current
        self.action = action


class NoVotesCast(WolfGameError):
    """Reveal requested before any vote exists for the round."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "No votes have been cast this round",
            "NO_VOTES_CAST", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 400,
        )


class RevealRequired(WolfGameError):
    """Finalize requested without a revealed target."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Reveal the highest-voted player before finalizing",
            "REVEAL_REQUIRED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 400,
        )


class DuplicateRecordError(WolfGameError):
    """Insert rejected by a uniqueness constraint."""
    def __init__(self, table: str, context: ErrorContext | None = None):
        super().__init__(
            f"Duplicate record in '{table}'",
            "DUPLICATE_RECORD", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )
        self.table = table


class DuplicateRoomCode(DuplicateRecordError):
    """Room code already taken. Recovered inside the room registry."""
    def __init__(self, room_code: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.room_code = room_code
        super().__init__("rooms", ctx)
        self.code = "DUPLICATE_ROOM_CODE"
        self.room_code = room_code


# ─── Infrastructure Errors (500-level) ──────────────────────────

class CodeGenerationExhausted(WolfGameError):
    """No free room code found within the attempt budget."""
    def __init__(self, attempts: int, context: ErrorContext | None = None):
        super().__init__(
            f"Unable to generate unique room code after {attempts} attempts",
            "CODE_GENERATION_EXHAUSTED", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.attempts = attempts


class StorageUnavailable(WolfGameError):
    """Any storage read/write failure not otherwise classified."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Storage {operation} failed: {message}",
            "STORAGE_UNAVAILABLE", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
