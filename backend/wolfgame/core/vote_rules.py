"""Vote Rules — eligibility, tally, completeness, and highest-vote selection.

Invariants:
    - The host never votes and is never a target
    - A voter never targets itself; targets must be active
    - tally counts one vote per row; storage guarantees one row per (voter, round)
    - select_highest is deterministic: ties resolve to the earliest-joined player

Design Decisions:
    - Raise typed domain errors (not error dicts): callers are services that
      propagate them to the API layer unchanged
    - Tie-break by join order instead of mapping iteration order: every client
      computes the same reveal regardless of vote arrival order
"""

from collections import Counter
from uuid import UUID

from wolfgame.core.errors import (
    InvalidTarget, VoterEliminated, VoterIsHost,
)


def check_vote_allowed(voter: dict, target: dict | None) -> None:
    """Raise if `voter` may not vote for `target`."""
    if voter["is_host"]:
        raise VoterIsHost()
    if not voter["is_active"]:
        raise VoterEliminated()
    if target is None:
        raise InvalidTarget("target is not in this room")
    if target["id"] == voter["id"]:
        raise InvalidTarget("players cannot vote for themselves")
    if target["is_host"]:
        raise InvalidTarget("the host cannot be voted for")
    if not target["is_active"]:
        raise InvalidTarget("target has already been eliminated")


def eligible_voters(players: list[dict]) -> list[dict]:
    """Active non-host players."""
    return [p for p in players if p["is_active"] and not p["is_host"]]


def tally(votes: list[dict]) -> dict[UUID, int]:
    """target_id -> number of votes."""
    return dict(Counter(v["target_id"] for v in votes))


def all_votes_in(votes: list[dict], eligible_voter_count: int) -> bool:
    """True once every eligible voter has a vote row for the round."""
    return len(votes) >= eligible_voter_count


def select_highest(
    counts: dict[UUID, int], join_order: list[UUID] | None = None,
) -> tuple[UUID, int] | None:
    """Target with the most votes, or None when nothing was cast.

    Ties go to the target appearing first in `join_order` (players ordered by
    creation); targets missing from `join_order` sort after it by id string.
    """
    if not counts:
        return None
    top = max(counts.values())
    tied = [target for target, n in counts.items() if n == top]
    rank = {pid: i for i, pid in enumerate(join_order or [])}
    winner = min(tied, key=lambda pid: (rank.get(pid, len(rank)), str(pid)))
    return winner, top
