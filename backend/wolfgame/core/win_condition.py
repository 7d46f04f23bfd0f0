"""Win Condition — decides whether a group has won from the current roster.

Invariants:
    - Only active, non-host players are considered
    - Precedence: empty roster -> no decision; A empty -> B; B empty -> A;
      equal non-zero counts -> A
    - Pure and idempotent: safe to evaluate on every roster refresh

Design Decisions:
    - Equal headcount favors group A (wolves reach parity with villagers)
    - Empty roster returns None so a freshly started room with no players
      never produces a spurious winner
"""

from wolfgame.core.domain_types import PlayerGroup


def split_groups(players: list[dict]) -> tuple[list[dict], list[dict]]:
    """Active non-host players partitioned into (group A, group B)."""
    active = [p for p in players if p["is_active"] and not p["is_host"]]
    group_a = [p for p in active if p["player_group"] == PlayerGroup.A.value]
    group_b = [p for p in active if p["player_group"] == PlayerGroup.B.value]
    return group_a, group_b


def evaluate_win_condition(players: list[dict]) -> PlayerGroup | None:
    """Winning group, or None when the game goes on."""
    group_a, group_b = split_groups(players)
    if not group_a and not group_b:
        return None
    if not group_a:
        return PlayerGroup.B
    if not group_b:
        return PlayerGroup.A
    if len(group_a) == len(group_b):
        return PlayerGroup.A
    return None
