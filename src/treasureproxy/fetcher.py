"""Upstream snapshot fetcher.

The upstream addresses snapshots by the same hours-ago identifier the client
sent, so the raw identifier is templated into the URL; the bucket key never
leaves the process.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from treasureproxy.config import UpstreamSettings
from treasureproxy.errors import UpstreamError

log = structlog.get_logger()


def build_http_client(settings: UpstreamSettings | None = None) -> httpx.AsyncClient:
    """Create the shared upstream client. Owned and closed by the server lifespan."""
    if settings is None:
        settings = UpstreamSettings()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={"User-Agent": settings.user_agent, "Accept": "application/json"},
        follow_redirects=True,
    )


class Fetcher:
    def __init__(self, client: httpx.AsyncClient, settings: UpstreamSettings | None = None) -> None:
        self._client = client
        self._settings = settings or UpstreamSettings()

    def url_for(self, identifier: str) -> str:
        return self._settings.url_template.format(id=identifier)

    async def fetch_snapshot(self, identifier: str) -> Any:
        """GET the snapshot for ``identifier`` and return its decoded JSON body.

        Raises ``UpstreamError`` for non-success responses and timeouts. Other
        transport errors and malformed JSON propagate unchanged.
        """
        url = self.url_for(identifier)
        log.info("upstream_fetch", url=url, id=identifier)

        try:
            response = await self._client.get(url)
        except httpx.TimeoutException:
            log.warning("upstream_timeout", url=url, timeout=self._settings.timeout_seconds)
            raise UpstreamError(504, "Gateway Timeout") from None

        if not response.is_success:
            log.warning(
                "upstream_error",
                url=url,
                status_code=response.status_code,
                reason=response.reason_phrase,
            )
            raise UpstreamError(response.status_code, response.reason_phrase)

        # json.JSONDecodeError (a ValueError) surfaces as an internal failure
        return response.json()
