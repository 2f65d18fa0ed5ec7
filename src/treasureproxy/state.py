from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from treasureproxy.cache import HourBucketCache
from treasureproxy.config import Settings

if TYPE_CHECKING:
    import httpx

    from treasureproxy.fetcher import Fetcher
    from treasureproxy.sweeper import CacheSweeper


@dataclass
class AppState:
    """Everything a request handler needs, built once by the server lifespan."""

    settings: Settings = field(default_factory=Settings)
    cache: HourBucketCache = field(default_factory=HourBucketCache)
    http_client: httpx.AsyncClient | None = None
    fetcher: Fetcher | None = None
    sweeper: CacheSweeper | None = None
