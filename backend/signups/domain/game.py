"""
The Game value and the rules that are independent of any store.

A Game is immutable: every membership transition produces a new value via
dataclasses.replace, and the store's conditional update is the only place a
new value becomes durable.
"""

import re
from dataclasses import dataclass, field
from typing import Tuple

from signups.core.exceptions import InvalidInput

GAME_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
PRINCIPAL_MAX_LENGTH = 255


@dataclass(frozen=True)
class Game:
    id: str
    owner: str
    name: str
    category: str
    location: str
    start_time: int  # epoch seconds
    duration_mins: int
    num_teams: int
    team_size: int
    sign_up_fee_cents: int = 0
    split_fee_cents: int = 0
    roster: Tuple[str, ...] = field(default_factory=tuple)
    waitlist: Tuple[str, ...] = field(default_factory=tuple)
    version: int = 1

    @property
    def capacity(self) -> int:
        """
        Maximum roster size. A non-positive team count or team size means
        the game can never seat anyone, so everyone who joins is waitlisted.
        """
        if self.num_teams <= 0 or self.team_size <= 0:
            return 0
        return self.num_teams * self.team_size


def validate_game_id(game_id: str) -> str:
    if not isinstance(game_id, str) or not GAME_ID_PATTERN.match(game_id):
        raise InvalidInput(f"Malformed game id: {game_id!r}")
    return game_id


def validate_principal(principal: str) -> str:
    if not isinstance(principal, str) or not principal.strip():
        raise InvalidInput("A principal is required")
    if len(principal) > PRINCIPAL_MAX_LENGTH:
        raise InvalidInput(f"Principal exceeds {PRINCIPAL_MAX_LENGTH} characters")
    return principal
