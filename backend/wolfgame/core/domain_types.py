"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - RoomId, PlayerId, VoteId wrap UUIDs
    - RoomCode is always 6 chars of [A-Z0-9] once normalized (see room_codes.py)
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and compare equal to the raw DB column value
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

RoomId = NewType("RoomId", UUID)
PlayerId = NewType("PlayerId", UUID)
VoteId = NewType("VoteId", UUID)
RoomCode = NewType("RoomCode", str)


# ─── Enums ───────────────────────────────────────────────────────

class RoomStatus(str, Enum):
    """Room lifecycle states — maps to DB `status` column.

    PLAYING is reserved: kept in the domain so legacy rows still parse,
    but the round controller never enters or leaves it.
    """
    WAITING = "waiting"
    PLAYING = "playing"
    VOTING = "voting"
    FINISHED = "finished"


class PlayerGroup(str, Enum):
    """The two factions. Host players carry no group (NULL in the DB)."""
    A = "A"
    B = "B"


class Table(str, Enum):
    """Tables exposed by the storage collaborator."""
    ROOMS = "rooms"
    PLAYERS = "players"
    VOTES = "votes"


class ChangeKind(str, Enum):
    """Row-level change notification kinds."""
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


_GROUP_LABELS = {
    PlayerGroup.A: "Wolf",
    PlayerGroup.B: "Villagers",
}


def group_label(group: PlayerGroup | str | None) -> str:
    """User-facing name for a group code."""
    if not group:
        return "No Group"
    return _GROUP_LABELS.get(PlayerGroup(group), str(group))
