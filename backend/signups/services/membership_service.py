"""
Membership coordinator: makes join/drop durable against the game store.

The store cannot append to or remove from the roster atomically, so every
change is a read-modify-write cycle:

  1. Read the game (and its version)
  2. Run the membership engine on that snapshot
  3. No change (already joined / already gone) -> return, nothing written
  4. Conditional write expecting the version from step 1
  5. Version conflict -> back off with jitter, go to 1
     (bounded by RetryPolicy.max_attempts, then MembershipConflict)

Transient store failures are retried on a separate, smaller budget and are
re-raised as StoreUnavailable once it runs out.

Each attempt either lands completely or not at all, so cancelling the caller
mid-loop cannot leave a half-applied change behind.
"""

import asyncio
import random
import time
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Optional

from signups.core.config import get_settings
from signups.core.exceptions import (
    GameNotFound,
    MembershipConflict,
    StoreUnavailable,
    VersionConflict,
)
from signups.core.logging import get_logger
from signups.core.metrics import (
    membership_latency,
    record_membership_change,
    record_membership_retry,
)
from signups.domain.game import validate_game_id, validate_principal
from signups.domain.membership import MembershipAction, MembershipResult, apply_action
from signups.stores.base import GameStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 5
    backoff_base: float = 0.01
    backoff_max: float = 0.25
    unavailable_max_attempts: int = 3

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        settings = get_settings()
        return cls(
            max_attempts=settings.MEMBERSHIP_MAX_ATTEMPTS,
            backoff_base=settings.MEMBERSHIP_BACKOFF_BASE_SECONDS,
            backoff_max=settings.MEMBERSHIP_BACKOFF_MAX_SECONDS,
            unavailable_max_attempts=settings.STORE_UNAVAILABLE_MAX_ATTEMPTS,
        )

    def backoff(self, failures: int) -> float:
        """Exponential backoff with jitter for the n-th consecutive failure."""
        if self.backoff_base <= 0:
            return 0.0
        delay = self.backoff_base * (2 ** (failures - 1)) + random.uniform(0, self.backoff_base)
        return min(delay, self.backoff_max)


async def apply_membership_change(
    store: GameStore,
    game_id: str,
    principal: str,
    action: MembershipAction,
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> MembershipResult:
    """
    Apply a join or drop for `principal` on `game_id` with optimistic locking.
    Returns the resulting game state and whether anything was written.
    """
    validate_game_id(game_id)
    validate_principal(principal)
    action = MembershipAction(action)
    policy = policy or RetryPolicy.from_settings()

    conflicts = 0
    outages = 0
    start = time.perf_counter()
    log = logger.bind(game_id=game_id, principal=principal, action=action.value)

    with membership_latency.labels(action=action.value).time():
        while True:
            try:
                game = await store.get(game_id)
                result = apply_action(game, principal, action)

                if not result.changed:
                    log.info("membership_change_noop", placement=result.placement.value)
                    record_membership_change(action.value, "noop")
                    return result

                saved = await store.conditional_update(result.game, expected_version=game.version)

            except GameNotFound:
                log.warning("membership_change_failed", reason="game_not_found")
                record_membership_change(action.value, "not_found")
                raise

            except VersionConflict:
                conflicts += 1
                record_membership_retry("version_conflict")
                if conflicts >= policy.max_attempts:
                    log.warning("membership_change_failed", reason="conflict", attempts=conflicts)
                    record_membership_change(action.value, "conflict")
                    raise MembershipConflict(game_id, conflicts)
                delay = policy.backoff(conflicts)
                log.info("membership_retry", reason="version_conflict", attempt=conflicts, delay=round(delay, 4))
                await sleep(delay)
                continue

            except StoreUnavailable:
                outages += 1
                record_membership_retry("store_unavailable")
                if outages >= policy.unavailable_max_attempts:
                    log.error("membership_change_failed", reason="store_unavailable", attempts=outages)
                    record_membership_change(action.value, "unavailable")
                    raise
                delay = policy.backoff(outages)
                log.info("membership_retry", reason="store_unavailable", attempt=outages, delay=round(delay, 4))
                await sleep(delay)
                continue

            log.info(
                "membership_change_applied",
                placement=result.placement.value,
                promoted=result.promoted,
                version=saved.version,
                conflicts=conflicts,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            record_membership_change(action.value, "applied")
            return replace(result, game=saved)


async def join_game(store: GameStore, game_id: str, principal: str, **kwargs) -> MembershipResult:
    return await apply_membership_change(store, game_id, principal, MembershipAction.JOIN, **kwargs)


async def drop_from_game(store: GameStore, game_id: str, principal: str, **kwargs) -> MembershipResult:
    return await apply_membership_change(store, game_id, principal, MembershipAction.DROP, **kwargs)
