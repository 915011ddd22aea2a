"""
Async engine and session factory.

The engine is created lazily so that importing the app (tests, the in-memory
store) never requires a reachable database or an installed driver.
"""

from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from signups.core.config import get_settings


@lru_cache()
def get_engine() -> AsyncEngine:
    settings = get_settings()
    kwargs = {"echo": settings.DEBUG, "pool_pre_ping": True}
    if not settings.DATABASE_URL.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
        )
    return create_async_engine(settings.DATABASE_URL, **kwargs)


@lru_cache()
def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)


async def dispose_engine() -> None:
    if get_engine.cache_info().currsize:
        await get_engine().dispose()
