"""
In-memory game store.

Stand-in for the external store when running locally or under test. It keeps
the same contract as SqlGameStore: reads return snapshots, and the version
check plus write in conditional_update happen under one lock so two writers
racing on the same version cannot both succeed.
"""

import asyncio
import uuid
from dataclasses import replace
from typing import AsyncIterator, Dict

from signups.core.exceptions import GameAlreadyExists, GameNotFound, VersionConflict
from signups.domain.game import Game
from signups.stores.base import GameStore


class InMemoryGameStore(GameStore):

    def __init__(self, read_delay: float = 0.0):
        self._games: Dict[str, Game] = {}
        self._lock = asyncio.Lock()
        # Reads always yield to the event loop; a delay widens the window
        # between read and conditional write, like a network round trip.
        self.read_delay = read_delay

    async def get(self, game_id: str) -> Game:
        game = self._games.get(game_id)
        await asyncio.sleep(self.read_delay)
        if game is None:
            raise GameNotFound(game_id)
        return game

    async def create(self, game: Game) -> Game:
        async with self._lock:
            game_id = game.id or str(uuid.uuid4())
            if game_id in self._games:
                raise GameAlreadyExists(game_id)
            stored = replace(game, id=game_id, version=1)
            self._games[game_id] = stored
            return stored

    async def conditional_update(self, game: Game, expected_version: int) -> Game:
        async with self._lock:
            current = self._games.get(game.id)
            if current is None:
                raise GameNotFound(game.id)
            if current.version != expected_version:
                raise VersionConflict(game.id, expected_version)
            # id, owner and capacity are immutable
            stored = replace(
                game,
                owner=current.owner,
                num_teams=current.num_teams,
                team_size=current.team_size,
                version=current.version + 1,
            )
            self._games[game.id] = stored
            return stored

    async def query_by_category(self, category: str, since: int) -> AsyncIterator[Game]:
        matches = sorted(
            (g for g in self._games.values() if g.category == category and g.start_time >= since),
            key=lambda g: (g.start_time, g.id),
        )
        for game in matches:
            yield game

    def __len__(self) -> int:
        return len(self._games)


_default_store: InMemoryGameStore = None


def get_memory_store() -> InMemoryGameStore:
    """Process-wide store used when GAME_STORE=memory."""
    global _default_store
    if _default_store is None:
        _default_store = InMemoryGameStore()
    return _default_store
