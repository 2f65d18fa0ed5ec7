"""Hour-bucket arithmetic.

A bucket key is the millisecond epoch timestamp of the start of an hour.
Clients address snapshots by "hours ago" (``"00"`` is the current hour,
``"01"`` the one before, ...); the bucket key turns that relative address into
an absolute one so a snapshot stays cached under the same key while the
client-side identifier for it keeps shifting.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime

from treasureproxy.errors import InvalidIdentifier
from treasureproxy.models.cache import HOUR_MS


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def hour_floor(timestamp_ms: int) -> int:
    """Truncate a ms timestamp to the start of its hour."""
    return timestamp_ms - timestamp_ms % HOUR_MS


def resolve_bucket(identifier: str, now: int | None = None) -> int:
    """Map an hours-ago identifier to the bucket key of that hour.

    Raises ``InvalidIdentifier`` unless ``identifier`` is a non-negative ASCII
    integer. No upper bound is applied: far-past hours resolve normally and
    simply never hit.
    """
    # ASCII digits only: the raw identifier is templated into the upstream URL
    if not (identifier.isascii() and identifier.isdigit()):
        raise InvalidIdentifier(identifier)
    try:
        hours_ago = int(identifier)
    except ValueError:
        # Beyond the interpreter's int-string conversion limit
        raise InvalidIdentifier(identifier) from None
    if now is None:
        now = now_ms()
    return hour_floor(now - hours_ago * HOUR_MS)


def format_bucket(bucket_key: int) -> str:
    """ISO-8601 rendering for log events; the raw key when out of datetime range."""
    try:
        return datetime.fromtimestamp(bucket_key / 1000, UTC).isoformat()
    except (OverflowError, OSError, ValueError):
        return str(bucket_key)
