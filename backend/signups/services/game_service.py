"""
Game service: creation, lookup and category listings.
Membership changes live in membership_service.
"""

import time
from contextlib import aclosing
from typing import Optional

from signups.core.config import get_settings
from signups.core.exceptions import InvalidInput
from signups.core.logging import get_logger
from signups.domain.game import Game, validate_game_id
from signups.schemas.game import GameCreate
from signups.stores.base import GameStore

logger = get_logger(__name__)
settings = get_settings()

SECONDS_PER_DAY = 24 * 60 * 60


async def create_game(store: GameStore, game_data: GameCreate, owner: str) -> Game:
    """Create a new game with an empty roster and waitlist."""
    game = Game(
        id="",
        owner=owner,
        name=game_data.name,
        category=game_data.category,
        location=game_data.location,
        start_time=int(game_data.start_time.timestamp()),
        duration_mins=game_data.duration_mins,
        num_teams=game_data.num_teams,
        team_size=game_data.team_size,
        sign_up_fee_cents=game_data.sign_up_fee_cents,
        split_fee_cents=game_data.split_fee_cents,
    )
    created = await store.create(game)
    logger.info(
        "game_created",
        game_id=created.id,
        category=created.category,
        capacity=created.capacity,
        owner=owner,
    )
    return created


async def get_game(store: GameStore, game_id: str) -> Game:
    """Get a single game by ID."""
    validate_game_id(game_id)
    return await store.get(game_id)


def normalize_max_results(max_results: Optional[int]) -> int:
    """Values below 1 fall back to the default; large values are capped."""
    if max_results is None or max_results < 1:
        return settings.GAMES_DEFAULT_MAX_RESULTS
    return min(max_results, settings.GAMES_MAX_RESULTS_LIMIT)


async def list_games(
    store: GameStore,
    category: Optional[str],
    max_results: Optional[int] = None,
    now: Optional[float] = None,
) -> list[Game]:
    """
    Games in `category` starting within the lookback window or later,
    earliest first, at most `max_results` of them.
    """
    if not category or not category.strip():
        raise InvalidInput("category is required")

    limit = normalize_max_results(max_results)
    now = time.time() if now is None else now
    since = int(now) - settings.GAMES_LOOKBACK_DAYS * SECONDS_PER_DAY

    games: list[Game] = []
    async with aclosing(store.query_by_category(category, since)) as stream:
        async for game in stream:
            games.append(game)
            if len(games) >= limit:
                break

    logger.info("games_listed", category=category, count=len(games), max_results=limit)
    return games
