"""
Domain layer: the Game value and the membership engine.
No I/O lives here.
"""

from .game import Game, validate_game_id, validate_principal
from .membership import (
    MembershipAction,
    MembershipResult,
    Placement,
    apply_action,
    drop,
    join,
)

__all__ = [
    'Game', 'validate_game_id', 'validate_principal',
    'MembershipAction', 'MembershipResult', 'Placement',
    'apply_action', 'drop', 'join',
]
