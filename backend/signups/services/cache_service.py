"""
Redis caching service for category listings.

CACHING STRATEGY
================

What we cache:
  - Category listing responses (JSON-serialized)
  - Cache key pattern: "games:list:{category}:gen={generation}:max={max_results}"
  - Per-category generation counter: "games:gen:{category}"

Why:
  - Browsing a category is the most frequent read
  - A listing only changes when a game in that category is created, joined
    or dropped

Invalidation strategy:
  - On create/join/drop: INCR the category generation, then delete every
    listing key of the category (SCAN over "games:list:{category}:*")
  - A reader that missed, queried the store and is about to write back
    captured the generation first, so a listing older than the latest
    invalidation is written under a dead generation and never served
  - TTL-based expiry as safety net (5 minutes)

Why NOT cache individual games:
  - Join/drop must read the authoritative version; a cached game would only
    turn into extra version conflicts

Redis is advisory. Any Redis error is logged and the request carries on
uncached.
"""

import json
from typing import Optional

import redis.asyncio as redis
from signups.core.config import get_settings
from signups.core.logging import get_logger
from signups.core.metrics import record_cache_operation, redis_connection_errors

logger = get_logger(__name__)
settings = get_settings()

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            # Test connection
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            redis_connection_errors.inc()
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def _category_prefix(category: str) -> str:
    return f"games:list:{category}:"


def _generation_key(category: str) -> str:
    return f"games:gen:{category}"


def _make_game_list_key(category: str, generation: int, max_results: int) -> str:
    return f"{_category_prefix(category)}gen={generation}:max={max_results}"


async def get_listing_generation(category: str) -> Optional[int]:
    """
    Current cache generation of `category`, or None when caching is off.

    Read it before querying the store and pass it to set_cached_games: a
    listing computed before an invalidation lands under the old generation,
    which no reader looks up any more.
    """
    client = await get_redis()
    if not client:
        return None

    try:
        return int(await client.get(_generation_key(category)) or 0)
    except Exception as e:
        logger.error("cache_generation_error", category=category, error=str(e))
        return None


async def get_cached_games(category: str, max_results: int, generation: int) -> Optional[dict]:
    """Retrieve cached category listing."""
    client = await get_redis()
    if not client:
        return None

    key = _make_game_list_key(category, generation, max_results)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=data is not None)
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_games(category: str, max_results: int, generation: int, data: dict) -> None:
    """Cache category listing with TTL."""
    client = await get_redis()
    if not client:
        return

    key = _make_game_list_key(category, generation, max_results)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_category_cache(category: str) -> None:
    """Move `category` to a new generation and drop its cached listings."""
    client = await get_redis()
    if not client:
        return

    try:
        generation = await client.incr(_generation_key(category))
        deleted = 0
        async for key in client.scan_iter(match=f"{_category_prefix(category)}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", category=category, generation=generation, keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", category=category, error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
