"""Room Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - RoomCreate.code: optional; stripped, upper-cased, exactly 6 of [A-Z0-9]
    - RoomCreate.max_group_a never exceeds max_players
    - JoinRequest.player_name: 1-50 chars after strip
    - Host actions carry host_id (UUID); player actions carry the player's id

Design Decisions:
    - field_validator for side-effect-free transforms (strip/upper) — keeps models pure
    - Response models use str ids: rows are converted by core/room_view.py helpers
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from uuid import UUID

from wolfgame.core.room_codes import is_valid_room_code, normalize_room_code


class RoomCreate(BaseModel):
    """Room creation — explicit code makes the call idempotent."""
    code: str | None = None
    room_name: str | None = Field(None, max_length=100)
    max_players: int = Field(8, ge=1, le=100)
    max_group_a: int = Field(4, ge=0, le=100)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        v = normalize_room_code(v)
        if not is_valid_room_code(v):
            raise ValueError("code must be 6 characters of A-Z or 0-9")
        return v

    @field_validator("room_name")
    @classmethod
    def strip_room_name(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    @model_validator(mode="after")
    def check_group_cap(self):
        if self.max_group_a > self.max_players:
            raise ValueError("max_group_a cannot exceed max_players")
        return self


class JoinRequest(BaseModel):
    """Join — player name is the dedup key within a room."""
    player_name: str = Field(min_length=1, max_length=50)

    @field_validator("player_name")
    @classmethod
    def strip_player_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("player_name cannot be empty or whitespace")
        return v


class HostAction(BaseModel):
    """Host-only command — host_id is the credential returned by createRoom."""
    host_id: UUID


class FinalizeRequest(HostAction):
    """Finalize — revealed_target_id only needed when the reveal was not persisted."""
    revealed_target_id: UUID | None = None


class VoteCreate(BaseModel):
    voter_id: UUID
    target_id: UUID


# --- Responses ---------------------------------------------------------------

class RoomResponse(BaseModel):
    """Public room data (never includes host_id)."""
    id: str
    code: str
    room_name: str
    max_players: int
    max_group_a: int
    status: str
    current_round: int
    winner: str | None = None
    revealed_target_id: str | None = None
    revealed_count: int | None = None


class PlayerResponse(BaseModel):
    id: str
    room_id: str
    name: str
    player_group: str | None
    group_label: str
    is_active: bool
    is_host: bool


class VoteResponse(BaseModel):
    id: str
    room_id: str
    voter_id: str
    target_id: str
    round: int


class RoomCreatedResponse(BaseModel):
    """Returned to the room creator only: includes the host credential."""
    room: RoomResponse
    host_player: PlayerResponse
    host_id: UUID | None = None


class JoinResponse(BaseModel):
    room: RoomResponse
    player: PlayerResponse


class RevealResponse(BaseModel):
    round: int
    target_id: str
    count: int
    persisted: bool
