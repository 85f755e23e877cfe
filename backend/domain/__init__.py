"""Domain layer definitions."""

from .records import ParseResult, RawPayload, Record

__all__ = [
    "ParseResult",
    "RawPayload",
    "Record",
]
