from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class HealthOutput(BaseModel):
    status: Literal["ok"] = "ok"
    message: str


class ErrorOutput(BaseModel):
    error: str
    message: str | None = None  # Only set for internal failures
