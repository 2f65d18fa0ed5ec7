"""Integration test fixtures.

Provides the FastAPI app wired through its real lifespan (fresh cache, real
httpx client) with the upstream mocked by respx.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import respx
from fastapi.testclient import TestClient

from treasureproxy.config import Settings, UpstreamSettings
from treasureproxy.server import create_app
from tests.conftest import UPSTREAM_TEMPLATE


@pytest.fixture()
def settings() -> Settings:
    return Settings(upstream=UpstreamSettings(url_template=UPSTREAM_TEMPLATE))


@pytest.fixture()
def upstream() -> Iterator[respx.MockRouter]:
    with respx.mock(base_url="https://upstream.test", assert_all_called=False) as router:
        yield router


@pytest.fixture()
def client(settings: Settings, upstream: respx.MockRouter) -> Iterator[TestClient]:
    with TestClient(create_app(settings)) as test_client:
        yield test_client
