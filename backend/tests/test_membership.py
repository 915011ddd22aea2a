"""
Tests for the membership engine: join/drop transitions, promotion, and the
roster/waitlist invariants over long random operation sequences.
"""

import random

import pytest

from signups.domain.membership import MembershipAction, Placement, apply_action, drop, join
from tests.factories import make_game


def assert_invariants(game):
    assert len(game.roster) <= game.capacity
    assert len(set(game.roster)) == len(game.roster)
    assert len(set(game.waitlist)) == len(game.waitlist)
    assert not set(game.roster) & set(game.waitlist)


def test_join_open_game_goes_to_roster():
    game = make_game()
    result = join(game, "alice")
    assert result.changed
    assert result.placement == Placement.ROSTER
    assert result.game.roster == ("alice",)
    assert result.game.waitlist == ()


def test_join_does_not_touch_callers_game():
    game = make_game()
    join(game, "alice")
    assert game.roster == ()


def test_join_full_game_goes_to_waitlist_tail():
    """Roster at capacity: roster unchanged, newcomer appended to waitlist."""
    game = make_game(roster=("alice", "bob"), waitlist=("carol",))
    result = join(game, "erin")
    assert result.changed
    assert result.placement == Placement.WAITLIST
    assert result.game.roster == ("alice", "bob")
    assert result.game.waitlist == ("carol", "erin")


@pytest.mark.parametrize("principal,placement", [("alice", Placement.ROSTER), ("carol", Placement.WAITLIST)])
def test_join_is_idempotent(principal, placement):
    game = make_game(roster=("alice", "bob"), waitlist=("carol",))
    result = join(game, principal)
    assert not result.changed
    assert result.placement == placement
    assert result.game is game


def test_join_twice_equals_join_once():
    game = make_game()
    once = join(game, "alice").game
    twice = join(once, "alice")
    assert not twice.changed
    assert twice.game == once


def test_drop_from_roster_promotes_waitlist_head():
    game = make_game(roster=("A", "B"), waitlist=("C", "D"))
    result = drop(game, "A")
    assert result.changed
    assert result.promoted == "C"
    assert result.game.roster == ("B", "C")
    assert result.game.waitlist == ("D",)


def test_drop_from_roster_with_empty_waitlist():
    game = make_game(roster=("A", "B"))
    result = drop(game, "B")
    assert result.changed
    assert result.promoted is None
    assert result.game.roster == ("A",)


def test_drop_from_waitlist_does_not_promote():
    game = make_game(roster=("A", "B"), waitlist=("C", "D"))
    result = drop(game, "D")
    assert result.changed
    assert result.promoted is None
    assert result.game.roster == ("A", "B")
    assert result.game.waitlist == ("C",)


def test_drop_unknown_principal_is_noop():
    game = make_game(roster=("A",))
    result = drop(game, "Z")
    assert not result.changed
    assert result.placement == Placement.NONE
    assert result.game is game


def test_drop_twice_equals_drop_once():
    game = make_game(roster=("A", "B"), waitlist=("C",))
    once = drop(game, "A").game
    twice = drop(once, "A")
    assert not twice.changed
    assert twice.game == once


@pytest.mark.parametrize("num_teams,team_size", [(0, 5), (2, 0), (-1, 3), (-2, -3)])
def test_non_positive_capacity_waitlists_everyone(num_teams, team_size):
    game = make_game(num_teams=num_teams, team_size=team_size)
    assert game.capacity == 0
    result = join(game, "alice")
    assert result.placement == Placement.WAITLIST
    assert result.game.roster == ()
    assert result.game.waitlist == ("alice",)


def test_apply_action_dispatches_by_action():
    game = make_game()
    joined = apply_action(game, "alice", MembershipAction.JOIN)
    assert joined.game.roster == ("alice",)
    dropped = apply_action(joined.game, "alice", "drop")
    assert dropped.game.roster == ()


@pytest.mark.parametrize("seed", range(5))
def test_invariants_hold_for_random_sequences(seed):
    rng = random.Random(seed)
    players = [f"p{i}" for i in range(8)]
    game = make_game(num_teams=2, team_size=2)

    for _ in range(300):
        action = rng.choice([MembershipAction.JOIN, MembershipAction.DROP])
        was_roster = game.roster
        result = apply_action(game, rng.choice(players), action)
        game = result.game
        assert_invariants(game)
        if action == MembershipAction.DROP and result.changed and len(game.roster) < len(was_roster):
            # a roster slot only stays open when nobody is waiting
            assert game.waitlist == ()
