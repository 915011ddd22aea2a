"""
Game endpoints: create, browse by category, and concurrency-safe join/drop.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from signups.core.security import get_current_principal
from signups.core.logging import get_logger
from signups.domain.membership import MembershipAction
from signups.schemas.game import GameCreate, GameListResponse, GameResponse
from signups.services.cache_service import (
    get_cached_games,
    get_listing_generation,
    invalidate_category_cache,
    set_cached_games,
)
from signups.services.game_service import create_game, get_game, list_games, normalize_max_results
from signups.services.membership_service import apply_membership_change
from signups.stores import GameStore, get_game_store

logger = get_logger(__name__)
router = APIRouter(prefix="/games", tags=["Games"])


@router.post("/", response_model=GameResponse, status_code=status.HTTP_201_CREATED)
async def create_game_endpoint(
    game_data: GameCreate,
    principal: str = Depends(get_current_principal),
    store: GameStore = Depends(get_game_store),
):
    """Create a new game owned by the caller. Roster and waitlist start empty."""
    game = await create_game(store, game_data, owner=principal)
    await invalidate_category_cache(game.category)
    return GameResponse.from_game(game)


@router.get("/", response_model=GameListResponse)
async def list_games_endpoint(
    category: Optional[str] = Query(None),
    max_results: Optional[int] = Query(None),
    store: GameStore = Depends(get_game_store),
):
    """
    List games in a category, earliest start first.
    Results are cached in Redis and invalidated whenever a game in the
    category is created, joined or dropped.
    """
    limit = normalize_max_results(max_results)

    # captured before the store read so a concurrent invalidation wins
    generation = await get_listing_generation(category) if category else None
    if generation is not None:
        cached = await get_cached_games(category, limit, generation)
        if cached:
            logger.info("games_list_cache_hit", category=category)
            cached["cached"] = True
            return GameListResponse(**cached)

    games = await list_games(store, category, limit)

    response_data = {
        "games": [GameResponse.from_game(g).model_dump(mode="json") for g in games],
        "category": category,
        "max_results": limit,
        "cached": False,
    }
    if generation is not None:
        await set_cached_games(category, limit, generation, response_data)

    return GameListResponse(**response_data)


@router.get("/{game_id}", response_model=GameResponse)
async def get_game_endpoint(
    game_id: str,
    store: GameStore = Depends(get_game_store),
):
    """Get a single game by ID. Not cached (clients need the live roster)."""
    game = await get_game(store, game_id)
    return GameResponse.from_game(game)


async def _change_membership(
    store: GameStore, game_id: str, principal: str, action: MembershipAction
) -> GameResponse:
    result = await apply_membership_change(store, game_id, principal, action)
    if result.changed:
        await invalidate_category_cache(result.game.category)
    return GameResponse.from_game(result.game)


@router.post("/{game_id}/join", response_model=GameResponse)
@router.post("/{game_id}/register", response_model=GameResponse, include_in_schema=False)
async def join_game_endpoint(
    game_id: str,
    principal: str = Depends(get_current_principal),
    store: GameStore = Depends(get_game_store),
):
    """
    Join a game. Lands on the roster while there is room, otherwise on the
    waitlist. Joining again is a no-op.

    Uses optimistic locking; if the game keeps changing underneath the
    request it gives up after a bounded number of retries with a 409.
    """
    return await _change_membership(store, game_id, principal, MembershipAction.JOIN)


@router.post("/{game_id}/drop", response_model=GameResponse)
async def drop_from_game_endpoint(
    game_id: str,
    principal: str = Depends(get_current_principal),
    store: GameStore = Depends(get_game_store),
):
    """
    Leave a game. Dropping from the roster promotes the head of the waitlist.
    Dropping a game you are not in is a no-op.
    """
    return await _change_membership(store, game_id, principal, MembershipAction.DROP)
