"""Exception taxonomy shared by the fetch/parse pipeline."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


class DashboardError(Exception):
    """Base class for all pipeline errors."""


class TransportError(DashboardError):
    """Raised when an upstream request fails (connectivity, timeout, non-2xx)."""

    def __init__(self, message: str, *, status: int | None = None, url: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.url = url


class UpstreamRateLimitError(TransportError):
    """HTTP 429 from an upstream API; callers may retry with backoff."""


class EmptyPayloadError(TransportError):
    """The upstream returned a successful but empty body."""


class ParseError(DashboardError):
    """Raised when a payload is malformed for the format it claims to be."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class UnsupportedFormatError(DashboardError):
    def __init__(self, extension: str, supported: Sequence[str]) -> None:
        super().__init__(f"Unsupported file format: {extension or 'unknown'}")
        self.extension = extension
        self.supported = list(supported)


class MenuUnavailableError(DashboardError):
    """Menu could not be loaded; message is user facing (German)."""


@dataclass(slots=True)
class PartialAggregationFailure:
    """Diagnostic record for a board or stack skipped during task aggregation.

    Never raised. The task aggregator collects these on its snapshot so the
    overall call still succeeds with whatever data was reachable.
    """

    board_id: int | str
    error: str
    stack_id: int | str | None = None
    stage: str = "board"

    def to_dict(self) -> dict[str, object]:
        return {
            "board_id": self.board_id,
            "stack_id": self.stack_id,
            "stage": self.stage,
            "error": self.error,
        }


__all__ = [
    "DashboardError",
    "EmptyPayloadError",
    "MenuUnavailableError",
    "ParseError",
    "PartialAggregationFailure",
    "TransportError",
    "UnsupportedFormatError",
    "UpstreamRateLimitError",
]
