"""
Membership engine: pure roster/waitlist transitions.

Join:
  already on roster or waitlist -> no change
  roster below capacity         -> append to roster
  otherwise                     -> append to waitlist

Drop:
  on roster   -> remove, then promote the waitlist head (if any) to the roster
  on waitlist -> remove, no promotion
  otherwise   -> no change

No I/O and no exceptions; the caller validates the principal.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from signups.domain.game import Game


class MembershipAction(str, Enum):
    JOIN = "join"
    DROP = "drop"


class Placement(str, Enum):
    ROSTER = "roster"
    WAITLIST = "waitlist"
    NONE = "none"


@dataclass(frozen=True)
class MembershipResult:
    game: Game
    changed: bool
    placement: Placement
    promoted: Optional[str] = None


def placement_of(game: Game, principal: str) -> Placement:
    if principal in game.roster:
        return Placement.ROSTER
    if principal in game.waitlist:
        return Placement.WAITLIST
    return Placement.NONE


def join(game: Game, principal: str) -> MembershipResult:
    current = placement_of(game, principal)
    if current is not Placement.NONE:
        return MembershipResult(game=game, changed=False, placement=current)

    if len(game.roster) < game.capacity:
        updated = replace(game, roster=game.roster + (principal,))
        return MembershipResult(game=updated, changed=True, placement=Placement.ROSTER)

    updated = replace(game, waitlist=game.waitlist + (principal,))
    return MembershipResult(game=updated, changed=True, placement=Placement.WAITLIST)


def drop(game: Game, principal: str) -> MembershipResult:
    if principal in game.roster:
        roster = tuple(p for p in game.roster if p != principal)
        waitlist = game.waitlist
        promoted = None
        if waitlist:
            # one slot freed, one slot filled, strictly FIFO
            promoted, waitlist = waitlist[0], waitlist[1:]
            roster = roster + (promoted,)
        updated = replace(game, roster=roster, waitlist=waitlist)
        return MembershipResult(
            game=updated, changed=True, placement=Placement.NONE, promoted=promoted
        )

    if principal in game.waitlist:
        waitlist = tuple(p for p in game.waitlist if p != principal)
        updated = replace(game, waitlist=waitlist)
        return MembershipResult(game=updated, changed=True, placement=Placement.NONE)

    return MembershipResult(game=game, changed=False, placement=Placement.NONE)


_TRANSITIONS = {
    MembershipAction.JOIN: join,
    MembershipAction.DROP: drop,
}


def apply_action(game: Game, principal: str, action: MembershipAction) -> MembershipResult:
    return _TRANSITIONS[MembershipAction(action)](game, principal)
