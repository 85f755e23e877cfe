"""Transient pipeline values passed between transport, parsers and services."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

Record = dict[str, str | None]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class RawPayload:
    """Bytes fetched from one upstream resource, discarded after parsing."""

    content: bytes
    content_type: str = ""
    source_path: str = ""
    status_code: int = 200
    fetched_at: datetime = field(default_factory=utcnow)

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def is_empty(self) -> bool:
        return not self.content.strip()


@dataclass(slots=True)
class ParseResult:
    """Ordered records produced by one of the format parsers."""

    records: list[Record]
    headers: list[str]
    total_count: int = -1
    source_meta: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.total_count < 0:
            self.total_count = len(self.records)
        elif self.total_count != len(self.records):
            raise ValueError("total_count must equal the number of records")

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": [dict(record) for record in self.records],
            "headers": list(self.headers),
            "total_records": self.total_count,
            "source_meta": dict(self.source_meta),
        }
