"""
SQL game store with optimistic locking.

CONCURRENCY STRATEGY
====================

Problem:
  Two players join the last open slot simultaneously.
  Both read roster=[A] at capacity 2, both append themselves, both write.
  Result: the last writer wins and the other player's spot silently
  disappears (or, with server-side list appends, the roster overflows).

Solution:
  Every game row carries a `version`. A membership change is written with

    UPDATE games SET roster = :roster, waitlist = :waitlist, version = version + 1
    WHERE id = :id AND version = :expected_version

  The UPDATE returns the row it wrote (RETURNING), so the caller gets the
  state it committed without a second read. If no row comes back the row
  moved on since we read it; the caller (membership_service) re-reads and
  recomputes. No row locks are held between the read and the write.

  Reads use populate_existing so a retry never reuses a stale copy from the
  session identity map, and a failed write is rolled back before the retry.
"""

import uuid
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import AsyncIterator

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from signups.core.exceptions import GameAlreadyExists, GameNotFound, StoreUnavailable, VersionConflict
from signups.core.logging import get_logger
from signups.domain.game import Game
from signups.models.game import GameRecord
from signups.stores.base import GameStore

logger = get_logger(__name__)

TRANSIENT_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError, ConnectionError)
QUERY_BATCH_SIZE = 50


def record_to_game(record: GameRecord) -> Game:
    return Game(
        id=record.id,
        owner=record.owner,
        name=record.name,
        category=record.category,
        location=record.location,
        start_time=int(record.start_time),
        duration_mins=record.duration_mins,
        num_teams=record.num_teams,
        team_size=record.team_size,
        sign_up_fee_cents=record.sign_up_fee_cents,
        split_fee_cents=record.split_fee_cents,
        roster=tuple(record.roster or ()),
        waitlist=tuple(record.waitlist or ()),
        version=record.version,
    )


class SqlGameStore(GameStore):

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def _translate_errors(self, operation: str):
        try:
            yield
        except TRANSIENT_ERRORS as e:
            await self._rollback_quietly()
            logger.warning("game_store_unavailable", operation=operation, error=str(e))
            raise StoreUnavailable() from e

    async def _rollback_quietly(self) -> None:
        try:
            await self.session.rollback()
        except SQLAlchemyError as e:
            logger.warning("game_store_rollback_failed", error=str(e))

    async def get(self, game_id: str) -> Game:
        async with self._translate_errors("get"):
            result = await self.session.execute(
                select(GameRecord)
                .where(GameRecord.id == game_id)
                .execution_options(populate_existing=True)
            )
            record = result.scalar_one_or_none()
        if record is None:
            raise GameNotFound(game_id)
        return record_to_game(record)

    async def create(self, game: Game) -> Game:
        game_id = game.id or str(uuid.uuid4())
        async with self._translate_errors("create"):
            if await self.session.get(GameRecord, game_id) is not None:
                raise GameAlreadyExists(game_id)

            record = GameRecord(
                id=game_id,
                owner=game.owner,
                name=game.name,
                category=game.category,
                location=game.location,
                start_time=game.start_time,
                duration_mins=game.duration_mins,
                num_teams=game.num_teams,
                team_size=game.team_size,
                sign_up_fee_cents=game.sign_up_fee_cents,
                split_fee_cents=game.split_fee_cents,
                roster=list(game.roster),
                waitlist=list(game.waitlist),
                version=1,
            )
            self.session.add(record)
            try:
                await self.session.commit()
            except IntegrityError as e:
                # lost a create race on the same id
                await self.session.rollback()
                raise GameAlreadyExists(game_id) from e
            await self.session.refresh(record)

        return record_to_game(record)

    async def conditional_update(self, game: Game, expected_version: int) -> Game:
        async with self._translate_errors("conditional_update"):
            update_result = await self.session.execute(
                update(GameRecord)
                .where(
                    GameRecord.id == game.id,
                    GameRecord.version == expected_version,
                )
                .values(
                    name=game.name,
                    category=game.category,
                    location=game.location,
                    start_time=game.start_time,
                    duration_mins=game.duration_mins,
                    sign_up_fee_cents=game.sign_up_fee_cents,
                    split_fee_cents=game.split_fee_cents,
                    roster=list(game.roster),
                    waitlist=list(game.waitlist),
                    version=GameRecord.version + 1,
                )
                .returning(
                    GameRecord.owner,
                    GameRecord.num_teams,
                    GameRecord.team_size,
                    GameRecord.version,
                )
                .execution_options(synchronize_session=False)
            )
            written = update_result.first()

            if written is None:
                await self.session.rollback()
                exists = await self.session.get(GameRecord, game.id)
                if exists is None:
                    raise GameNotFound(game.id)
                raise VersionConflict(game.id, expected_version)

            await self.session.commit()

        # exactly the row this UPDATE wrote, not whatever a later writer left
        return replace(
            game,
            owner=written.owner,
            num_teams=written.num_teams,
            team_size=written.team_size,
            version=written.version,
        )

    async def query_by_category(self, category: str, since: int) -> AsyncIterator[Game]:
        query = (
            select(GameRecord)
            .where(GameRecord.category == category, GameRecord.start_time >= since)
            .order_by(GameRecord.start_time.asc(), GameRecord.id.asc())
            .execution_options(yield_per=QUERY_BATCH_SIZE)
        )
        # a connection can also drop while batches are being fetched
        async with self._translate_errors("query_by_category"):
            result = await self.session.stream_scalars(query)
            try:
                async for record in result:
                    yield record_to_game(record)
            finally:
                await result.close()
