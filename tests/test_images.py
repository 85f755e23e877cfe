from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

import pytest

from backend.application.images import (
    ImageEnrichmentCache,
    build_search_query,
    is_valid_image_url,
    select_image,
)
from backend.core.errors import TransportError, UpstreamRateLimitError
from backend.infrastructure.cache import InMemoryTTLCache, is_missing

NOW = datetime(2024, 5, 14, 12, 0, tzinfo=timezone.utc)


class FakeSearchClient:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls: list[str] = []

    def search(self, query: str, *, num: int = 3):
        self.calls.append(query)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def sleeps() -> list[float]:
    return []


def _cache(client, sleeps, store=None) -> ImageEnrichmentCache:
    return ImageEnrichmentCache(client, store=store, sleep=sleeps.append, clock=lambda: NOW)


HIT = [
    {"link": "not a url"},
    {
        "link": "https://img.example.test/schnitzel.jpg",
        "title": "Schnitzel",
        "image": {"width": 640, "height": "480", "thumbnailLink": "https://img.example.test/t.jpg"},
    },
]


def test_select_image_skips_invalid_links():
    result = select_image(HIT, "Schnitzel", NOW)

    assert result is not None
    assert result.url == "https://img.example.test/schnitzel.jpg"
    assert result.width == 640
    assert result.height == 480
    assert result.source_page_url is None
    assert result.cached_at == NOW


def test_url_validation():
    assert is_valid_image_url("https://a.example.test/x")
    assert not is_valid_image_url("ftp://a.example.test/x.jpg")
    assert not is_valid_image_url(None)
    assert build_search_query("  Suppe ") == "Suppe food"


def test_negative_result_is_cached_case_insensitively(sleeps):
    client = FakeSearchClient([[]])
    cache = _cache(client, sleeps)

    assert cache.search("Schnitzel") is None
    assert cache.search(" schnitzel ") is None
    assert len(client.calls) == 1


def test_found_result_is_cached(sleeps):
    client = FakeSearchClient([HIT])
    cache = _cache(client, sleeps)

    first = cache.search("Schnitzel")
    second = cache.search("SCHNITZEL")

    assert first is not None and second == first
    assert client.calls == ["Schnitzel food"]


def test_rate_limit_retries_three_times_then_gives_up(sleeps):
    client = FakeSearchClient([UpstreamRateLimitError("slow down", status=429)])
    cache = _cache(client, sleeps)

    assert cache.search("Linsen") is None
    assert len(client.calls) == 3
    assert sleeps == [1, 2]


def test_other_failures_retry_after_one_second(sleeps):
    client = FakeSearchClient([TransportError("boom", status=500), HIT])
    cache = _cache(client, sleeps)

    assert cache.search("Schnitzel") is not None
    assert sleeps == [1]
    assert len(client.calls) == 2


def test_failures_are_not_cached(sleeps):
    client = FakeSearchClient(
        [TransportError("down"), TransportError("down"), TransportError("down"), HIT]
    )
    cache = _cache(client, sleeps)

    assert cache.search("Schnitzel") is None
    assert cache.search("Schnitzel") is not None
    assert len(client.calls) == 4


def test_blank_query_short_circuits(sleeps):
    client = FakeSearchClient([HIT])
    cache = _cache(client, sleeps)

    assert cache.search("   ") is None
    assert client.calls == []


def test_use_cache_false_bypasses_lookup(sleeps):
    client = FakeSearchClient([[]])
    cache = _cache(client, sleeps)

    cache.search("Pasta")
    cache.search("Pasta", use_cache=False)

    assert len(client.calls) == 2


def test_entries_expire_after_ttl(sleeps):
    clock = Clock()
    client = FakeSearchClient([[]])
    cache = _cache(client, sleeps, store=InMemoryTTLCache(clock=clock))

    cache.search("Pasta")
    clock.now = 86399
    cache.search("Pasta")
    clock.now = 86400
    cache.search("Pasta")

    assert len(client.calls) == 2


def test_search_many_pauses_between_items(sleeps):
    client = FakeSearchClient([[]])
    cache = _cache(client, sleeps)

    results = cache.search_many(["A", "B", "C"])

    assert results == {"A": None, "B": None, "C": None}
    assert sleeps == [0.1, 0.1]


def test_forget_and_clear(sleeps):
    client = FakeSearchClient([[]])
    cache = _cache(client, sleeps)

    cache.search("Pasta")
    assert cache.forget("pasta") is True
    cache.search("Pasta")
    cache.clear()
    cache.search("Pasta")

    assert len(client.calls) == 3


def test_cache_key_is_normalized():
    assert ImageEnrichmentCache.cache_key("Schnitzel") == ImageEnrichmentCache.cache_key("  schnitzel")
    assert ImageEnrichmentCache.cache_key("Schnitzel").startswith("food_image_")


def test_store_keeps_none_as_a_value():
    clock = Clock()
    store = InMemoryTTLCache(clock=clock)

    store.put("k", None, 10)

    assert store.lookup("k") is None
    assert len(store) == 1
    clock.now = 10
    assert is_missing(store.lookup("k"))
    assert len(store) == 0
    assert store.forget("k") is False
