#!/usr/bin/env python3
"""
Join race: naive read-then-write vs. the optimistic membership coordinator.

Many players join one small game at the same time against an in-memory store
with a simulated read latency. The naive path reads, appends and writes back
whatever it computed; the coordinator writes only if the version it read is
still current and otherwise retries with backoff.

Run: python experiments/join_race.py
"""

import asyncio
import statistics
import time
from dataclasses import dataclass, field, replace
from typing import List

from signups.core.exceptions import MembershipConflict
from signups.domain.game import Game
from signups.domain.membership import join
from signups.services.membership_service import RetryPolicy, join_game
from signups.stores import InMemoryGameStore

READ_DELAY = 0.002


@dataclass
class Metrics:
    applied: int = 0
    gave_up: int = 0
    writes: int = 0
    response_times: List[float] = field(default_factory=list)

    def percentile(self, p: float) -> float:
        if not self.response_times:
            return 0
        sorted_times = sorted(self.response_times)
        idx = int(len(sorted_times) * p)
        return sorted_times[min(idx, len(sorted_times) - 1)]


class CountingStore(InMemoryGameStore):

    def __init__(self, metrics: Metrics):
        super().__init__(read_delay=READ_DELAY)
        self.metrics = metrics

    async def conditional_update(self, game, expected_version):
        self.metrics.writes += 1
        return await super().conditional_update(game, expected_version)


def new_game(num_teams: int, team_size: int) -> Game:
    return Game(
        id="race",
        owner="organizer@example.com",
        name="Race Game",
        category="basketball",
        location="Gym",
        start_time=int(time.time()) + 86400,
        duration_mins=60,
        num_teams=num_teams,
        team_size=team_size,
    )


async def naive_join(store: InMemoryGameStore, metrics: Metrics, principal: str):
    """Read, append, overwrite: whatever landed in between is lost."""
    start = time.perf_counter()
    game = await store.get("race")
    updated = join(game, principal).game
    # overwrite unconditionally by writing against the current version
    async with store._lock:
        current = store._games["race"]
        store._games["race"] = replace(updated, version=current.version + 1)
    metrics.writes += 1
    metrics.applied += 1
    metrics.response_times.append((time.perf_counter() - start) * 1000)


async def coordinated_join(store: InMemoryGameStore, metrics: Metrics, principal: str, policy: RetryPolicy):
    start = time.perf_counter()
    try:
        await join_game(store, "race", principal, policy=policy)
        metrics.applied += 1
    except MembershipConflict:
        metrics.gave_up += 1
    metrics.response_times.append((time.perf_counter() - start) * 1000)


def print_header(text: str):
    print(f"\n{'=' * 70}")
    print(f"{text:^70}")
    print(f"{'=' * 70}\n")


def print_metrics(name: str, metrics: Metrics, duration: float, players: int, game: Game):
    signed_up = len(game.roster) + len(game.waitlist)
    print(f"{name}:")
    print(f"  Duration:        {duration:.2f}s")
    print(f"  Applied:         {metrics.applied}")
    print(f"  Gave up (409):   {metrics.gave_up}")
    print(f"  Writes:          {metrics.writes}")
    print(f"  Writes/request:  {metrics.writes / players:.2f}")
    print(f"  Roster:          {len(game.roster)}/{game.capacity}")
    print(f"  Waitlist:        {len(game.waitlist)}")
    print(f"  Lost sign-ups:   {metrics.applied - signed_up}")
    if metrics.response_times:
        print(f"  Avg latency:     {statistics.mean(metrics.response_times):.1f}ms")
        print(f"  P95 latency:     {metrics.percentile(0.95):.1f}ms")
        print(f"  P99 latency:     {metrics.percentile(0.99):.1f}ms")
    print()


async def run_naive(players: int, num_teams: int, team_size: int):
    metrics = Metrics()
    store = InMemoryGameStore(read_delay=READ_DELAY)
    await store.create(new_game(num_teams, team_size))

    start = time.perf_counter()
    await asyncio.gather(*(naive_join(store, metrics, f"p{i}") for i in range(players)))
    return metrics, time.perf_counter() - start, await store.get("race")


async def run_coordinated(players: int, num_teams: int, team_size: int):
    metrics = Metrics()
    store = CountingStore(metrics)
    await store.create(new_game(num_teams, team_size))
    policy = RetryPolicy(max_attempts=10, backoff_base=0.001, backoff_max=0.05)

    start = time.perf_counter()
    await asyncio.gather(*(coordinated_join(store, metrics, f"p{i}", policy) for i in range(players)))
    return metrics, time.perf_counter() - start, await store.get("race")


async def main():
    scenarios = [
        ("Moderate", 20, 2, 5),
        ("High", 200, 2, 5),
        ("Low", 50, 10, 10),
    ]

    for name, players, num_teams, team_size in scenarios:
        print_header(f"{name.upper()} CONTENTION: {players} players / {num_teams * team_size} slots")

        m1, d1, g1 = await run_naive(players, num_teams, team_size)
        print_metrics("Naive read-then-write", m1, d1, players, g1)

        m2, d2, g2 = await run_coordinated(players, num_teams, team_size)
        print_metrics("Optimistic + backoff", m2, d2, players, g2)


if __name__ == "__main__":
    asyncio.run(main())
