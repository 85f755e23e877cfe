"""Cafeteria menu: XML feed -> today/tomorrow day list."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Callable
from xml.etree import ElementTree as ET

from backend.core.errors import DashboardError, MenuUnavailableError
from backend.core.schema import MenuDay, MenuItem, MenuItemWithImage, MenuPrices
from backend.extractors import xml_tree
from backend.infrastructure.menu_feed import MenuFeedClient

if TYPE_CHECKING:
    from .images import ImageEnrichmentCache

logger = logging.getLogger(__name__)

DEFAULT_MENSA_NAME = "Mensa Rempartstraße"

# UTF-8 text that was decoded as Latin-1 upstream
CHARACTER_FIXUPS: dict[str, str] = {
    "Ã¤": "ä",
    "Ã¼": "ü",
    "Ã¶": "ö",
    "ÃŸ": "ß",
    "Ã„": "Ä",
    "Ãœ": "Ü",
    "Ã–": "Ö",
}

WEEKDAYS_DE: dict[str, str] = {
    "Monday": "Montag",
    "Tuesday": "Dienstag",
    "Wednesday": "Mittwoch",
    "Thursday": "Donnerstag",
    "Friday": "Freitag",
    "Saturday": "Samstag",
    "Sunday": "Sonntag",
}

_ENGLISH_WEEKDAYS = list(WEEKDAYS_DE)

_DATE_PATTERN = re.compile(r"^\s*(\d{1,2})\.(\d{1,2})\.(\d{2}|\d{4})\s*$")


def fix_german_characters(text: str) -> str:
    for broken, fixed in CHARACTER_FIXUPS.items():
        text = text.replace(broken, fixed)
    return text


def parse_feed_date(raw: str) -> date | None:
    """``dd.mm.yyyy`` or ``dd.mm.yy`` to a date; anything else yields None."""

    match = _DATE_PATTERN.match(raw or "")
    if not match:
        return None
    day, month, year = (int(part) for part in match.groups())
    if len(match.group(3)) == 2:
        year += 2000
    try:
        return date(year, month, day)
    except ValueError:
        return None


def german_weekday(english: str) -> str:
    return WEEKDAYS_DE.get(english, "")


@dataclass
class RawMenu:
    mensa_name: str
    days: list[MenuDay]


def _menu_item(node: ET.Element) -> MenuItem:
    return MenuItem(
        category=xml_tree.attribute(node, "art"),
        name=fix_german_characters(xml_tree.find_text(node, ".//name")),
        tags=xml_tree.attribute(node, "zusatz"),
        allergens=xml_tree.find_text(node, ".//allergene"),
        additives=xml_tree.find_text(node, ".//kennzeichnungen"),
        prices=MenuPrices(
            student=xml_tree.find_text(node, ".//preis/studierende"),
            staff=xml_tree.find_text(node, ".//preis/angestellte"),
            guest=xml_tree.find_text(node, ".//preis/gaeste"),
            pupil=xml_tree.find_text(node, ".//preis/schueler"),
        ),
    )


def annotate_day(raw_date: str, items: list[MenuItem], today: date) -> MenuDay:
    parsed = parse_feed_date(raw_date)
    if parsed is None:
        return MenuDay(date=raw_date, date_formatted=raw_date, items=items)
    return MenuDay(
        date=raw_date,
        date_formatted=parsed.isoformat(),
        weekday=german_weekday(_ENGLISH_WEEKDAYS[parsed.weekday()]),
        is_today=parsed == today,
        is_tomorrow=parsed == today + timedelta(days=1),
        items=items,
    )


def parse_menu(content: bytes, today: date) -> RawMenu:
    root, groups = xml_tree.parse_groups(content, "tagesplan", "menue")
    mensa_name = xml_tree.find_text(root, ".//mensa")
    days: list[MenuDay] = []
    for group in groups:
        raw_date = xml_tree.attribute(group.node, "datum")
        if not raw_date:
            continue
        items = [_menu_item(node) for node in group.items]
        days.append(annotate_day(raw_date, items, today))
    return RawMenu(mensa_name=fix_german_characters(mensa_name or DEFAULT_MENSA_NAME), days=days)


def filter_relevant_days(days: list[MenuDay]) -> list[MenuDay]:
    """Keep today and tomorrow, today first.

    The feed carries at most one node per date, but a duplicated date must
    still yield a single today/tomorrow entry, so the first occurrence wins.
    """

    today = next((day for day in days if day.is_today), None)
    tomorrow = next((day for day in days if day.is_tomorrow), None)
    return [day for day in (today, tomorrow) if day is not None]


def normalize_menu(content: bytes, today: date) -> dict[str, Any]:
    raw = parse_menu(content, today)
    return {"mensa_name": raw.mensa_name, "days": filter_relevant_days(raw.days)}


def _local_today() -> date:
    return datetime.now().date()


class MenuService:
    def __init__(
        self,
        feed: MenuFeedClient,
        *,
        images: "ImageEnrichmentCache | None" = None,
        today: Callable[[], date] = _local_today,
    ) -> None:
        self._feed = feed
        self._images = images
        self._today = today

    def get_menu(self, *, with_images: bool = False) -> dict[str, Any]:
        try:
            payload = self._feed.fetch_xml()
            data = normalize_menu(payload.content, self._today())
        except DashboardError as exc:
            logger.error("MensaService error: %s", exc)
            raise MenuUnavailableError(f"Fehler beim Laden des Speiseplans: {exc}") from exc

        days: list[MenuDay] = data["days"]
        if with_images:
            rendered_days = [self._with_images(day) for day in days]
        else:
            rendered_days = [day.model_dump(mode="json") for day in days]

        return {
            "success": True,
            "data": {"mensa_name": data["mensa_name"], "days": rendered_days},
            "last_updated": datetime.now(timezone.utc).isoformat(),
        }

    def _with_images(self, day: MenuDay) -> dict[str, Any]:
        names = [item.name for item in day.items]
        found = self._images.search_many(names) if self._images is not None else {}
        items = [
            MenuItemWithImage(**item.model_dump(), image=found.get(item.name))
            for item in day.items
        ]
        rendered = day.model_dump(mode="json", exclude={"items"})
        rendered["items"] = [item.model_dump(mode="json") for item in items]
        return rendered


__all__ = [
    "CHARACTER_FIXUPS",
    "MenuService",
    "WEEKDAYS_DE",
    "filter_relevant_days",
    "fix_german_characters",
    "german_weekday",
    "normalize_menu",
    "parse_feed_date",
    "parse_menu",
]
