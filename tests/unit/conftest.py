"""Unit-specific fixtures (no network I/O)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from treasureproxy.cache import HourBucketCache

if TYPE_CHECKING:
    from tests.conftest import FakeClock


@pytest.fixture()
def cache(clock: FakeClock) -> HourBucketCache:
    """Empty cache driven by the fake clock."""
    return HourBucketCache(clock=clock)
