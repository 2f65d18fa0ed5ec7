"""In-memory hour-bucket cache with single-flight upstream fetches.

Entries are keyed by bucket key (start of the snapshot hour, ms since epoch)
and never mutated: a bucket is either absent or holds one frozen
``CacheEntry``. Memory stays bounded by ``evict_stale()``, which the
``CacheSweeper`` calls on a timer and ``fetch_and_store()`` calls whenever an
insert pushes the cache past ``max_buckets``.

All map access goes through one ``asyncio.Lock``. The lock is held only
around dict reads and writes, never across the upstream call.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from treasureproxy.buckets import format_bucket, now_ms
from treasureproxy.models.cache import HOUR_MS, CacheEntry

log = structlog.get_logger()

FetchFn = Callable[[str], Awaitable[Any]]


def _consume_exception(task: asyncio.Task[CacheEntry]) -> None:
    """Mark a shared fetch's failure as retrieved even if every waiter was cancelled."""
    if not task.cancelled() and task.exception() is not None:
        log.debug("cache_fetch_failed", error=repr(task.exception()))


class HourBucketCache:
    """Process-local snapshot cache owned by the application lifespan."""

    def __init__(
        self,
        retention_hours: float = 24,
        max_buckets: int = 24,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._retention_ms = int(retention_hours * HOUR_MS)
        self._max_buckets = max_buckets
        self._clock = clock
        self._entries: dict[int, CacheEntry] = {}
        self._inflight: dict[int, asyncio.Task[CacheEntry]] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, bucket_key: object) -> bool:
        return bucket_key in self._entries

    def now(self) -> int:
        return self._clock()

    # ------------------------------------------------------------------
    # Lookup / insert
    # ------------------------------------------------------------------

    async def get(self, bucket_key: int) -> CacheEntry | None:
        """Return the entry for ``bucket_key``, or ``None`` on a miss."""
        async with self._lock:
            return self._entries.get(bucket_key)

    async def store(
        self, bucket_key: int, payload: Any, stored_at: int | None = None
    ) -> CacheEntry:
        """Insert an entry, replacing any existing one for the same bucket."""
        entry = CacheEntry(
            bucket_key=bucket_key,
            payload=payload,
            stored_at=self._clock() if stored_at is None else stored_at,
        )
        async with self._lock:
            self._entries[bucket_key] = entry
        return entry

    async def fetch_and_store(
        self, bucket_key: int, identifier: str, fetch: FetchFn
    ) -> CacheEntry:
        """Fetch ``identifier`` upstream and cache the result under ``bucket_key``.

        Concurrent callers missing on the same bucket share one upstream call
        and all receive its entry, or its exception. Failures are never cached.
        """
        async with self._lock:
            task = self._inflight.get(bucket_key)
            if task is None:
                task = asyncio.create_task(self._fetch(bucket_key, identifier, fetch))
                task.add_done_callback(_consume_exception)
                self._inflight[bucket_key] = task
            else:
                log.debug("cache_fetch_coalesced", bucket=format_bucket(bucket_key), id=identifier)

        # shield: a cancelled request must not cancel a fetch other requests await
        entry = await asyncio.shield(task)

        if len(self._entries) > self._max_buckets:
            log.info("cache_over_capacity", size=len(self._entries), max_buckets=self._max_buckets)
            await self.evict_stale()
        return entry

    async def _fetch(self, bucket_key: int, identifier: str, fetch: FetchFn) -> CacheEntry:
        try:
            payload = await fetch(identifier)
            entry = await self.store(bucket_key, payload)
        finally:
            async with self._lock:
                self._inflight.pop(bucket_key, None)
        log.info("cache_stored", bucket=format_bucket(bucket_key), id=identifier)
        return entry

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def evict_stale(self, now: int | None = None) -> int:
        """Drop entries that have been stored for the whole retention window.

        An entry is evicted once ``stored_at <= now - retention``. Returns the
        number of entries removed.
        """
        if now is None:
            now = self._clock()
        cutoff = now - self._retention_ms

        async with self._lock:
            stale = [key for key, entry in self._entries.items() if entry.stored_at <= cutoff]
            for key in stale:
                del self._entries[key]
            remaining = len(self._entries)

        for key in stale:
            log.info("cache_evicted", bucket=format_bucket(key))
        log.info("cache_sweep_complete", evicted=len(stale), remaining=remaining)
        return len(stale)
