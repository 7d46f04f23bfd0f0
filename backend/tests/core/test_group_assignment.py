"""Group Assignment — verifies the group-A soft cap and coin flip.

Invariants:
    - At the cap, the joiner goes to B without flipping the coin
    - Below the cap, the coin decides
    - Eliminated players and the host do not count toward the cap
    - The host occupies a seat in the room capacity count
"""

from uuid import uuid4

from wolfgame.core.domain_types import PlayerGroup
from wolfgame.core.group_assignment import (
    assign_group, count_active_group, count_active_players,
)


def _player(group, active=True, host=False):
    return {
        "id": uuid4(), "player_group": group,
        "is_active": active, "is_host": host,
    }


def _never_flip():
    raise AssertionError("coin must not be flipped at the cap")


def test_at_cap_assigns_b_without_flipping():
    players = [_player("A"), _player("A"), _player("B")]
    assert assign_group(players, max_group_a=2, coin=_never_flip) == PlayerGroup.B


def test_below_cap_low_flip_assigns_a():
    players = [_player("A")]
    assert assign_group(players, max_group_a=2, coin=lambda: 0.1) == PlayerGroup.A


def test_below_cap_high_flip_assigns_b():
    players = [_player("A")]
    assert assign_group(players, max_group_a=2, coin=lambda: 0.7) == PlayerGroup.B


def test_eliminated_group_a_players_free_the_cap():
    players = [_player("A"), _player("A", active=False)]
    assert assign_group(players, max_group_a=2, coin=lambda: 0.0) == PlayerGroup.A


def test_zero_cap_always_b():
    assert assign_group([], max_group_a=0, coin=_never_flip) == PlayerGroup.B


def test_capacity_counts_host_but_group_counts_do_not():
    players = [
        _player(None, host=True),
        _player("A"),
        _player("B"),
        _player("B", active=False),
    ]
    assert count_active_players(players) == 3
    assert count_active_group(players, PlayerGroup.A) == 1
    assert count_active_group(players, PlayerGroup.B) == 1
