"""Time-bounded key/value store backing the image lookups."""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Protocol

_MISSING = object()


@dataclass(frozen=True, slots=True)
class CacheEntry:
    key: str
    value: Any
    expires_at: float


class CacheStore(Protocol):
    """Contract for TTL stores; ``None`` is a storable value."""

    def lookup(self, key: str) -> Any: ...

    def put(self, key: str, value: Any, ttl: float) -> None: ...

    def forget(self, key: str) -> bool: ...

    def clear(self) -> None: ...


class InMemoryTTLCache:
    """Process-local store; entries are replaced wholesale, never mutated."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def _live_entry(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            self._entries.pop(key, None)
            return None
        return entry

    def lookup(self, key: str) -> Any:
        """Return the cached value or the ``_MISSING`` sentinel."""

        with self._lock:
            entry = self._live_entry(key)
        return _MISSING if entry is None else entry.value

    def put(self, key: str, value: Any, ttl: float) -> None:
        entry = CacheEntry(key=key, value=value, expires_at=self._clock() + ttl)
        with self._lock:
            self._entries[key] = entry

    def forget(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def is_missing(value: Any) -> bool:
    return value is _MISSING


__all__ = ["CacheEntry", "CacheStore", "InMemoryTTLCache", "is_missing"]
