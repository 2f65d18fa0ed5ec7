"""Handler for ``GET /api/treasure/{id}``."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from treasureproxy.buckets import format_bucket, resolve_bucket

if TYPE_CHECKING:
    from treasureproxy.state import AppState

log = structlog.get_logger()


async def handle(identifier: str, state: AppState) -> Any:
    """Return the snapshot payload for an hours-ago identifier.

    Serves from the cache when the identifier's hour bucket is present and
    otherwise fetches, stores and returns the upstream body. Raises
    ``InvalidIdentifier`` or ``UpstreamError``; anything else is an internal
    failure for the caller to report.
    """
    bucket_key = resolve_bucket(identifier, state.cache.now())
    bucket = format_bucket(bucket_key)

    entry = await state.cache.get(bucket_key)
    if entry is not None:
        log.info("cache_hit", bucket=bucket, id=identifier)
        return entry.payload

    if state.fetcher is None:
        raise RuntimeError("No upstream fetcher configured")

    log.info("cache_miss", bucket=bucket, id=identifier)
    entry = await state.cache.fetch_and_store(bucket_key, identifier, state.fetcher.fetch_snapshot)
    return entry.payload
