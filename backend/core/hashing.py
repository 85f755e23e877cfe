from __future__ import annotations

import hashlib


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def sha256_text(text: str) -> str:
    return sha256_bytes(text.encode("utf-8"))


def query_fingerprint(query: str) -> str:
    """Cache key for free-text lookups; case and surrounding whitespace are ignored."""

    return sha256_text(query.strip().lower())
