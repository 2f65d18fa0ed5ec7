from __future__ import annotations

from treasureproxy.models.api import ErrorOutput, HealthOutput
from treasureproxy.models.cache import HOUR_MS, CacheEntry

__all__ = [
    # cache
    "CacheEntry",
    "HOUR_MS",
    # api
    "HealthOutput",
    "ErrorOutput",
]
