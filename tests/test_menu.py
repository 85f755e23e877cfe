from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

import httpx
import pytest

from backend.application.menu import (
    MenuService,
    filter_relevant_days,
    fix_german_characters,
    normalize_menu,
    parse_feed_date,
    parse_menu,
)
from backend.core.errors import MenuUnavailableError, TransportError
from backend.infrastructure import HttpTransport, MenuFeedClient

TODAY = date(2024, 5, 14)


def _day(value: date, *items: str) -> str:
    return f'<tagesplan datum="{value:%d.%m.%Y}">{"".join(items)}</tagesplan>'


def _item(name: str, art: str = "Essen 1") -> str:
    return (
        f'<menue art="{art}" zusatz="vegan"><name>{name}</name>'
        "<allergene>Gl</allergene><kennzeichnungen>1,2</kennzeichnungen>"
        "<preis><studierende>3,50</studierende><angestellte>5,00</angestellte>"
        "<gaeste>6,50</gaeste><schueler>3,00</schueler></preis></menue>"
    )


def _feed(*days: str, mensa: str = "Mensa Rempartstraße") -> bytes:
    return f"<plan><ort><mensa>{mensa}</mensa>{''.join(days)}</ort></plan>".encode("utf-8")


FEED = _feed(
    _day(TODAY - timedelta(days=1), _item("Gestern")),
    _day(TODAY, _item("Linsen"), _item("Schnitzel", art="Essen 2")),
    _day(TODAY + timedelta(days=1), _item("Pasta")),
)


def test_keeps_today_then_tomorrow():
    data = normalize_menu(FEED, TODAY)

    days = data["days"]
    assert [day.is_today for day in days] == [True, False]
    assert days[1].is_tomorrow is True
    assert [item.name for item in days[0].items] == ["Linsen", "Schnitzel"]
    assert days[0].weekday == "Dienstag"
    assert days[0].date_formatted == "2024-05-14"
    assert data["mensa_name"] == "Mensa Rempartstraße"


def test_normalize_is_idempotent():
    assert normalize_menu(FEED, TODAY) == normalize_menu(FEED, TODAY)


def test_item_fields_are_mapped():
    item = normalize_menu(FEED, TODAY)["days"][0].items[1]

    assert item.category == "Essen 2"
    assert item.tags == "vegan"
    assert item.allergens == "Gl"
    assert item.additives == "1,2"
    assert item.prices.student == "3,50"
    assert item.prices.guest == "6,50"


def test_mojibake_is_repaired():
    assert fix_german_characters("GemÃ¼se mit KÃ¤se") == "Gemüse mit Käse"

    feed = _feed(_day(TODAY, _item("GemÃ¼sepfanne")))
    assert normalize_menu(feed, TODAY)["days"][0].items[0].name == "Gemüsepfanne"


def test_feed_dates():
    assert parse_feed_date("14.05.2024") == TODAY
    assert parse_feed_date("14.05.24") == TODAY
    assert parse_feed_date("2024-05-14") is None
    assert parse_feed_date("31.02.2024") is None


def test_unparseable_date_is_kept_raw_and_dropped_by_filter():
    feed = b'<plan><tagesplan datum="morgen"><menue><name>X</name></menue></tagesplan></plan>'

    raw = parse_menu(feed, TODAY)

    assert raw.days[0].date == "morgen"
    assert raw.days[0].date_formatted == "morgen"
    assert raw.days[0].weekday == ""
    assert filter_relevant_days(raw.days) == []
    assert raw.mensa_name == "Mensa Rempartstraße"


def test_duplicate_dates_yield_single_entries():
    feed = _feed(
        _day(TODAY, _item("Erstes")),
        _day(TODAY, _item("Zweites")),
        _day(TODAY + timedelta(days=1)),
        _day(TODAY + timedelta(days=1)),
    )

    days = normalize_menu(feed, TODAY)["days"]

    assert len(days) == 2
    assert days[0].items[0].name == "Erstes"


def _service(handler, images=None) -> MenuService:
    transport = HttpTransport(http_client=httpx.Client(transport=httpx.MockTransport(handler)))
    feed = MenuFeedClient("https://menu.example.test/api", "KEY", "610", transport=transport)
    return MenuService(feed, images=images, today=lambda: TODAY)


def test_service_envelope():
    body = _service(lambda request: httpx.Response(200, content=FEED)).get_menu()

    assert body["success"] is True
    assert body["data"]["mensa_name"] == "Mensa Rempartstraße"
    assert len(body["data"]["days"]) == 2
    assert body["data"]["days"][0]["items"][0]["prices"]["staff"] == "5,00"
    assert "last_updated" in body


def test_service_wraps_upstream_failures():
    service = _service(lambda request: httpx.Response(502))

    with pytest.raises(MenuUnavailableError) as excinfo:
        service.get_menu()

    assert str(excinfo.value).startswith("Fehler beim Laden des Speiseplans")
    assert isinstance(excinfo.value.__cause__, TransportError)


def test_service_wraps_malformed_xml():
    with pytest.raises(MenuUnavailableError):
        _service(lambda request: httpx.Response(200, content=b"<plan>")).get_menu()


class _FakeImages:
    def __init__(self) -> None:
        self.queries: list[list[str]] = []

    def search_many(self, queries):
        queries = list(queries)
        self.queries.append(queries)
        return {query: None for query in queries}


def test_service_with_images_adds_image_field():
    images = _FakeImages()
    body = _service(lambda request: httpx.Response(200, content=FEED), images=images).get_menu(with_images=True)

    items = body["data"]["days"][0]["items"]
    assert all("image" in item for item in items)
    assert items[0]["image"] is None
    assert images.queries[0] == ["Linsen", "Schnitzel"]
