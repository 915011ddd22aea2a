"""
Builders for test games.
"""

from datetime import datetime, timezone, timedelta

from signups.domain.game import Game

START_TIME = int((datetime.now(timezone.utc) + timedelta(days=7)).timestamp())


def make_game(**overrides) -> Game:
    """A game for two teams of one (capacity 2) unless overridden."""
    fields = dict(
        id="",
        owner="owner@example.com",
        name="Tuesday Night Hoops",
        category="basketball",
        location="Rec Center Court 2",
        start_time=START_TIME,
        duration_mins=90,
        num_teams=2,
        team_size=1,
        sign_up_fee_cents=500,
        split_fee_cents=0,
    )
    fields.update(overrides)
    return Game(**fields)
