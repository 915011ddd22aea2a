"""
Game store implementations and the FastAPI dependency that picks one.
"""

from typing import AsyncGenerator

from signups.core.config import get_settings
from signups.db.session import get_sessionmaker
from .base import GameStore
from .memory import InMemoryGameStore, get_memory_store
from .sql import SqlGameStore


async def get_game_store() -> AsyncGenerator[GameStore, None]:
    """Yield the configured store, one SQL session per request."""
    if get_settings().GAME_STORE == "memory":
        yield get_memory_store()
        return

    async with get_sessionmaker()() as session:
        yield SqlGameStore(session)


__all__ = ['GameStore', 'InMemoryGameStore', 'SqlGameStore', 'get_game_store', 'get_memory_store']
