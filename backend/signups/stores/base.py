"""
Game store interface.
Allows swapping the persistence backend without changing membership logic.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator

from signups.domain.game import Game


class GameStore(ABC):
    """
    Key-value store of games with an optimistic-concurrency write.

    Implementations:
    - SqlGameStore: SQLAlchemy async session (PostgreSQL / SQLite)
    - InMemoryGameStore: process-local dict, for development and tests
    """

    @abstractmethod
    async def get(self, game_id: str) -> Game:
        """
        Fetch a game by id.

        Raises:
            GameNotFound: no game has this id
            StoreUnavailable: transient backend failure
        """

    @abstractmethod
    async def create(self, game: Game) -> Game:
        """
        Persist a new game at version 1.

        An empty `game.id` is replaced with a fresh UUID4 string.

        Raises:
            GameAlreadyExists: a supplied id is already taken
        """

    @abstractmethod
    async def conditional_update(self, game: Game, expected_version: int) -> Game:
        """
        Overwrite the mutable fields of `game` only if the stored version
        still equals `expected_version`. Returns the stored game with its
        new version.

        Raises:
            VersionConflict: the stored version moved on
            GameNotFound: the game does not exist
        """

    @abstractmethod
    def query_by_category(self, category: str, since: int) -> AsyncIterator[Game]:
        """
        Lazily yield games in `category` starting at or after `since`
        (epoch seconds), ordered by start time ascending. Callers truncate.
        """
