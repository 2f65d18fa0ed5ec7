"""Error types raised by the proxy core.

Every failure the core knows how to describe is a ``TreasureProxyError``; the
HTTP layer turns it into a JSON body with ``to_payload()`` and the matching
status code. Anything else is an internal failure and is reported as a 500.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    INVALID_IDENTIFIER = "INVALID_IDENTIFIER"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class TreasureProxyError(Exception):
    """Base error carrying an error code, an HTTP status and a retry hint."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.recoverable = recoverable

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message}


class InvalidIdentifier(TreasureProxyError):
    """The client's hours-ago identifier is not a non-negative integer."""

    def __init__(self, identifier: str) -> None:
        super().__init__(
            ErrorCode.INVALID_IDENTIFIER,
            "Invalid ID format. Must be a number (00, 01, 02, etc.)",
            status_code=400,
        )
        self.identifier = identifier


class UpstreamError(TreasureProxyError):
    """The upstream answered with a non-success status (or timed out)."""

    def __init__(self, status_code: int, reason: str) -> None:
        super().__init__(
            ErrorCode.UPSTREAM_ERROR,
            f"Failed to fetch data: {status_code} {reason}",
            status_code=status_code,
            recoverable=status_code >= 500,
        )
        self.reason = reason
