"""Food image lookups with negative caching and bounded retries."""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Iterable
from urllib.parse import urlparse

from backend.core.errors import DashboardError, UpstreamRateLimitError
from backend.core.hashing import query_fingerprint
from backend.core.schema import ImageResult
from backend.infrastructure.cache import CacheStore, InMemoryTTLCache, is_missing
from backend.infrastructure.image_search import ImageSearchClient

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 86400
MAX_ATTEMPTS = 3
BATCH_DELAY_SECONDS = 0.1
SEARCH_CONTEXT_TERM = "food"
CACHE_PREFIX = "food_image_"


def build_search_query(query: str) -> str:
    return f"{query.strip()} {SEARCH_CONTEXT_TERM}"


def is_valid_image_url(url: Any) -> bool:
    """Accept well-formed http(s) URLs.

    No image extension is required; search results often link to image
    endpoints without one.
    """

    if not isinstance(url, str) or not url:
        return False
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        return False
    return True


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _as_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def select_image(items: list[dict[str, Any]], query: str, now: datetime) -> ImageResult | None:
    for item in items:
        link = item.get("link")
        if not is_valid_image_url(link):
            continue
        image = item.get("image") if isinstance(item.get("image"), dict) else {}
        return ImageResult(
            url=link,
            title=_as_str(item.get("title")) or "",
            width=_as_int(image.get("width")),
            height=_as_int(image.get("height")),
            thumbnail_url=_as_str(image.get("thumbnailLink")),
            source_page_url=_as_str(image.get("contextLink")),
            query=query,
            cached_at=now,
        )
    return None


class ImageEnrichmentCache:
    """Read-through cache in front of :class:`ImageSearchClient`.

    Found and not-found outcomes are cached for ``ttl`` seconds; failed
    lookups (network or parse errors, exhausted retries) are not cached and
    surface as ``None``.
    """

    def __init__(
        self,
        client: ImageSearchClient,
        *,
        store: CacheStore | None = None,
        ttl: float = CACHE_TTL_SECONDS,
        max_attempts: int = MAX_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._client = client
        self._store = store if store is not None else InMemoryTTLCache()
        self._ttl = ttl
        self._max_attempts = max_attempts
        self._sleep = sleep
        self._clock = clock

    @staticmethod
    def cache_key(query: str) -> str:
        return CACHE_PREFIX + query_fingerprint(query)

    def search(self, query: str, use_cache: bool = True) -> ImageResult | None:
        if not query or not query.strip():
            return None

        key = self.cache_key(query)
        if use_cache:
            cached = self._store.lookup(key)
            if not is_missing(cached):
                return cached

        try:
            result = self._search_with_retry(query)
        except DashboardError as exc:
            logger.warning("Image search failed", extra={"ctx_query": query, "ctx_error": str(exc)})
            return None

        self._store.put(key, result, self._ttl)
        return result

    def _search_with_retry(self, query: str) -> ImageResult | None:
        search_query = build_search_query(query)
        attempt = 0
        while True:
            try:
                items = self._client.search(search_query, num=3)
            except UpstreamRateLimitError:
                delay: float = 2 ** attempt
                attempt += 1
                if attempt >= self._max_attempts:
                    raise
            except DashboardError:
                attempt += 1
                if attempt >= self._max_attempts:
                    raise
                delay = 1
            else:
                return select_image(items, query, self._clock())
            logger.info("Retrying image search", extra={"ctx_attempt": attempt, "ctx_delay": delay})
            self._sleep(delay)

    def search_many(self, queries: Iterable[str], use_cache: bool = True) -> dict[str, ImageResult | None]:
        queries = list(queries)
        results: dict[str, ImageResult | None] = {}
        for index, query in enumerate(queries):
            results[query] = self.search(query, use_cache)
            if index < len(queries) - 1:
                self._sleep(BATCH_DELAY_SECONDS)
        return results

    def forget(self, query: str) -> bool:
        return self._store.forget(self.cache_key(query))

    def clear(self) -> None:
        self._store.clear()


__all__ = [
    "ImageEnrichmentCache",
    "build_search_query",
    "is_valid_image_url",
    "select_image",
]
