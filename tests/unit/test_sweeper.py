"""Unit tests for treasureproxy.sweeper."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from treasureproxy.buckets import resolve_bucket
from treasureproxy.cache import HourBucketCache
from treasureproxy.models.cache import HOUR_MS
from treasureproxy.sweeper import CacheSweeper

if TYPE_CHECKING:
    from tests.conftest import FakeClock


async def _wait_until(predicate, timeout: float = 2.0) -> None:
    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout)


class TestCacheSweeper:
    async def test_periodic_sweep_evicts_stale(
        self, cache: HourBucketCache, clock: FakeClock
    ) -> None:
        await cache.store(resolve_bucket("00", clock()), ["old"])
        clock.advance(25 * HOUR_MS)
        await cache.store(resolve_bucket("00", clock()), ["new"])

        sweeper = CacheSweeper(cache, interval_seconds=0.01)
        sweeper.start()
        try:
            await _wait_until(lambda: len(cache) == 1)
        finally:
            await sweeper.stop()

        entry = await cache.get(resolve_bucket("00", clock()))
        assert entry is not None
        assert entry.payload == ["new"]

    async def test_start_stop(self, cache: HourBucketCache) -> None:
        sweeper = CacheSweeper(cache, interval_seconds=3600)
        assert sweeper.running is False
        sweeper.start()
        assert sweeper.running is True
        await sweeper.stop()
        assert sweeper.running is False

    async def test_start_is_idempotent(self, cache: HourBucketCache) -> None:
        sweeper = CacheSweeper(cache, interval_seconds=3600)
        sweeper.start()
        first = sweeper._task
        sweeper.start()
        assert sweeper._task is first
        await sweeper.stop()

    async def test_stop_without_start(self, cache: HourBucketCache) -> None:
        await CacheSweeper(cache).stop()

    async def test_sweep_error_does_not_stop_schedule(self, cache: HourBucketCache) -> None:
        calls = 0
        original = cache.evict_stale

        async def flaky_evict(now: int | None = None) -> int:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("boom")
            return await original(now)

        cache.evict_stale = flaky_evict  # type: ignore[method-assign]
        sweeper = CacheSweeper(cache, interval_seconds=0.01)
        sweeper.start()
        try:
            await _wait_until(lambda: calls >= 2)
            assert sweeper.running is True
        finally:
            await sweeper.stop()
