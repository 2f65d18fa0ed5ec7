"""Scheduled eviction task.

The sweeper is an explicit asyncio task started and cancelled by the server
lifespan. It is independent of request handling: it only touches the cache
through ``evict_stale()``, which holds the cache lock for the dict mutation
alone.
"""

from __future__ import annotations

import asyncio
import contextlib

import structlog

from treasureproxy.cache import HourBucketCache

log = structlog.get_logger()


class CacheSweeper:
    def __init__(self, cache: HourBucketCache, interval_seconds: float = 3600) -> None:
        self._cache = cache
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="cache-sweeper")
        log.info("sweeper_started", interval_seconds=self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        log.info("sweeper_stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self._cache.evict_stale()
            except Exception:
                # Keep the schedule alive; the next tick retries.
                log.error("sweeper_error", exc_info=True)
