"""Room View — a client's derived, read-only picture of one room.

Invariants:
    - Built only from rows read back from storage (never from local writes)
    - votes holds the current round's votes only
    - A local reveal (persistence fallback) overrides the persisted reveal fields
    - to_snapshot() is JSON-safe and stable for equal inputs (used for change detection)

Design Decisions:
    - Frozen dataclass: every refresh produces a new view; no incremental patching,
      so out-of-order or duplicated notifications cannot corrupt it
    - can_vote_for mirrors the client affordance (cancel before re-voting),
      while VoteLedger.cast itself still accepts overwrites
"""

from dataclasses import dataclass, field
from uuid import UUID

from wolfgame.core.domain_types import RoomStatus, group_label
from wolfgame.core.vote_rules import all_votes_in, eligible_voters, tally
from wolfgame.core.win_condition import split_groups


@dataclass(frozen=True)
class LocalReveal:
    """Reveal kept in memory when persisting it to the room failed."""
    round_number: int
    target_id: UUID
    count: int


@dataclass(frozen=True)
class RoomView:
    """Derived state for one viewer of a room."""

    room: dict
    players: list[dict] = field(default_factory=list)
    votes: list[dict] = field(default_factory=list)
    viewer_id: UUID | None = None
    local_reveal: LocalReveal | None = None
    min_players_to_start: int = 4

    # ─── Roster ──────────────────────────────────────────────

    @property
    def status(self) -> RoomStatus:
        return RoomStatus(self.room["status"])

    @property
    def current_round(self) -> int:
        return self.room["current_round"]

    @property
    def viewer(self) -> dict | None:
        if self.viewer_id is None:
            return None
        return next((p for p in self.players if p["id"] == self.viewer_id), None)

    @property
    def active_players(self) -> list[dict]:
        return eligible_voters(self.players)

    @property
    def group_a(self) -> list[dict]:
        return split_groups(self.players)[0]

    @property
    def group_b(self) -> list[dict]:
        return split_groups(self.players)[1]

    @property
    def ready_to_start(self) -> bool:
        """Advisory only: the host may start with fewer players."""
        return len(self.active_players) >= self.min_players_to_start

    # ─── Votes ───────────────────────────────────────────────

    @property
    def all_votes_in(self) -> bool:
        return all_votes_in(self.votes, len(self.active_players))

    @property
    def revealed_target_id(self) -> UUID | None:
        if self._local_reveal_applies:
            return self.local_reveal.target_id
        return self.room.get("revealed_target_id")

    @property
    def revealed_count(self) -> int | None:
        if self._local_reveal_applies:
            return self.local_reveal.count
        return self.room.get("revealed_count")

    @property
    def _local_reveal_applies(self) -> bool:
        return (
            self.local_reveal is not None
            and self.local_reveal.round_number == self.current_round
        )

    def get_vote_count(self, player_id: UUID) -> int:
        return sum(1 for v in self.votes if v["target_id"] == player_id)

    def has_voted(self) -> bool:
        return any(v["voter_id"] == self.viewer_id for v in self.votes)

    def can_vote_for(self, player_id: UUID) -> bool:
        viewer = self.viewer
        if viewer is None or viewer["is_host"] or not viewer["is_active"]:
            return False
        if self.status != RoomStatus.VOTING or self.has_voted():
            return False
        if player_id == viewer["id"]:
            return False
        target = next((p for p in self.players if p["id"] == player_id), None)
        return bool(target and target["is_active"] and not target["is_host"])

    # ─── Serialization ───────────────────────────────────────

    def to_snapshot(self) -> dict:
        """JSON-safe dict for API responses and SSE events."""
        counts = tally(self.votes)
        winner = self.room.get("winner")
        return {
            "room": public_room(self.room),
            "current_round": self.current_round,
            "status": self.status.value,
            "winner": winner,
            "winner_label": group_label(winner) if winner else None,
            "players": [
                {
                    **player_to_json(p),
                    "vote_count": counts.get(p["id"], 0),
                    "can_vote_for": self.can_vote_for(p["id"]),
                }
                for p in self.players
            ],
            "group_counts": {"A": len(self.group_a), "B": len(self.group_b)},
            "votes_cast": len(self.votes),
            "all_votes_in": self.all_votes_in,
            "ready_to_start": self.ready_to_start,
            "viewer_id": str(self.viewer_id) if self.viewer_id else None,
            "has_voted": self.has_voted(),
            "revealed_target_id": _str_or_none(self.revealed_target_id),
            "revealed_count": self.revealed_count,
        }


def _str_or_none(value) -> str | None:
    return str(value) if value is not None else None


def public_room(room: dict) -> dict:
    """Room row without host_id (the host's credential)."""
    return {
        "id": str(room["id"]),
        "code": room["code"],
        "room_name": room["room_name"],
        "max_players": room["max_players"],
        "max_group_a": room["max_group_a"],
        "status": room["status"],
        "current_round": room["current_round"],
        "winner": room.get("winner"),
        "revealed_target_id": _str_or_none(room.get("revealed_target_id")),
        "revealed_count": room.get("revealed_count"),
    }


def player_to_json(player: dict) -> dict:
    return {
        "id": str(player["id"]),
        "room_id": str(player["room_id"]),
        "name": player["name"],
        "player_group": player["player_group"],
        "group_label": group_label(player["player_group"]),
        "is_active": player["is_active"],
        "is_host": player["is_host"],
    }


def vote_to_json(vote: dict) -> dict:
    return {
        "id": str(vote["id"]),
        "room_id": str(vote["room_id"]),
        "voter_id": str(vote["voter_id"]),
        "target_id": str(vote["target_id"]),
        "round": vote["round"],
    }
