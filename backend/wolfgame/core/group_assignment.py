"""Group Assignment — soft-capped faction assignment at join time.

Invariants:
    - Only active, non-host group-A players count toward the group-A cap
    - Room capacity counts every active row, the host included
    - Below the cap: fair coin flip between A and B
    - At or above the cap: B unconditionally (no coin flip)
    - The cap is evaluated at assignment time only; nothing rebalances later

Design Decisions:
    - Soft cap, not a balancing guarantee: group A fills up to max_group_a over
      time, the final A/B split is only approximately balanced
    - coin injected as a zero-arg callable returning [0, 1): deterministic tests
"""

import random
from typing import Callable

from wolfgame.core.domain_types import PlayerGroup


def count_active_group(players: list[dict], group: PlayerGroup) -> int:
    """Active non-host players in `group`."""
    return sum(
        1 for p in players
        if p["is_active"] and not p["is_host"] and p["player_group"] == group.value
    )


def count_active_players(players: list[dict]) -> int:
    """Active players, host included (capacity is checked against this)."""
    return sum(1 for p in players if p["is_active"])


def assign_group(
    players: list[dict],
    max_group_a: int,
    coin: Callable[[], float] | None = None,
) -> PlayerGroup:
    """Pick the joiner's group under the group-A soft cap."""
    group_a_count = count_active_group(players, PlayerGroup.A)
    if group_a_count >= max_group_a:
        return PlayerGroup.B
    flip = coin or random.random
    return PlayerGroup.A if flip() < 0.5 else PlayerGroup.B
