"""Shared fixtures."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path

UPSTREAM_TEMPLATE = "https://upstream.test/treasure/{id}.json"

# 2026-01-01T12:34:56.789Z
FIXED_NOW = 1_767_270_896_789


class FakeClock:
    """Mutable ms clock for cache tests."""

    def __init__(self, now: int = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def subprocess_env(tmp_path: Path) -> dict[str, str]:
    """Environment for server subprocesses, isolated from any user config file."""
    env = os.environ.copy()
    env["HOME"] = str(tmp_path)
    return {k: v for k, v in env.items() if not k.startswith("TREASUREPROXY__")}
