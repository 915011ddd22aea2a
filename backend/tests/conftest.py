"""
Pytest fixtures for stores, the HTTP client, and authentication.

API tests run against an in-memory game store injected through the
get_game_store dependency; store contract tests also run the SQL store on
a throwaway SQLite database.
"""

import os
from contextlib import asynccontextmanager

# Configure the app before anything from signups is imported
os.environ["ENVIRONMENT"] = "test"
os.environ["REDIS_ENABLED"] = "false"
os.environ["GAME_STORE"] = "memory"
os.environ["MEMBERSHIP_BACKOFF_BASE_SECONDS"] = "0"

from typing import AsyncGenerator, AsyncIterator, Callable

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from signups.main import app
from signups.core.security import create_access_token
from signups.db.base import Base
from signups.domain.game import Game
from signups.stores import InMemoryGameStore, SqlGameStore, get_game_store

from tests.factories import make_game


@pytest.fixture
def memory_store() -> InMemoryGameStore:
    return InMemoryGameStore()


@asynccontextmanager
async def sqlite_session(db_path) -> AsyncIterator[AsyncSession]:
    """Session on a fresh SQLite file with the games table created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with session_factory() as session:
            yield session
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def sql_session(tmp_path) -> AsyncGenerator[AsyncSession, None]:
    async with sqlite_session(tmp_path / "signups.db") as session:
        yield session


@pytest_asyncio.fixture(params=["memory", "sql"])
async def store(request, tmp_path):
    """Each store contract test runs once per implementation."""
    if request.param == "memory":
        yield InMemoryGameStore()
        return

    async with sqlite_session(tmp_path / "signups.db") as session:
        yield SqlGameStore(session)


@pytest_asyncio.fixture(scope="function")
async def client(memory_store: InMemoryGameStore) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the store dependency with an in-memory store."""

    async def override_get_game_store():
        yield memory_store

    app.dependency_overrides[get_game_store] = override_get_game_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def headers_for() -> Callable[[str], dict]:
    """Authorization headers for an arbitrary principal."""

    def _headers(principal: str) -> dict:
        return {"Authorization": f"Bearer {create_access_token(principal)}"}

    return _headers


@pytest.fixture
def auth_headers(headers_for) -> dict:
    return headers_for("player@example.com")


@pytest_asyncio.fixture
async def test_game(memory_store: InMemoryGameStore) -> Game:
    """Capacity-2 game with an empty roster."""
    return await memory_store.create(make_game())


@pytest_asyncio.fixture
async def full_game(memory_store: InMemoryGameStore) -> Game:
    """Capacity-2 game whose roster is full and one player is waiting."""
    game = await memory_store.create(make_game(name="Full Run"))
    game = await memory_store.conditional_update(
        make_game(id=game.id, name="Full Run", roster=("alice", "bob"), waitlist=("carol",)),
        expected_version=game.version,
    )
    return game
