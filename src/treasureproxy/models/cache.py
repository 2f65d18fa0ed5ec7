from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

HOUR_MS = 60 * 60 * 1000


class CacheEntry(BaseModel):
    """Upstream snapshot cached under the hour it belongs to."""

    model_config = ConfigDict(frozen=True)

    bucket_key: int  # ms since epoch, start of the snapshot hour
    payload: Any  # Upstream JSON body, passed through as-is
    stored_at: int  # ms since epoch when written; drives eviction

    @model_validator(mode="after")
    def validate_timestamps(self) -> CacheEntry:
        if self.bucket_key % HOUR_MS != 0:
            raise ValueError(f"bucket_key is not on an hour boundary: {self.bucket_key}")
        if self.stored_at < self.bucket_key:
            raise ValueError("stored_at must not precede the start of its bucket hour")
        return self
