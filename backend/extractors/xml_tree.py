"""Generic XML extraction shared by the menu feed and ad hoc XML files.

Documents are reduced to one or two levels of repeating elements: a primary
element (one record per occurrence) and, for grouped feeds, a secondary
element nested inside it. All field access goes through :func:`find_text` and
:func:`attribute`, which return a default instead of ``None`` for missing
nodes so downstream formatting never has to special-case absence.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from xml.etree import ElementTree as ET

from backend.core.errors import ParseError
from backend.domain.records import ParseResult, Record

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class XmlGroup:
    node: ET.Element
    items: list[ET.Element] = field(default_factory=list)


def local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def load(content: bytes) -> ET.Element:
    try:
        return ET.fromstring(content)
    except ET.ParseError as exc:
        raise ParseError(f"Error parsing XML: {exc}") from exc


def node_text(node: ET.Element | None, default: str = "") -> str:
    if node is None:
        return default
    return "".join(node.itertext()).strip()


def find_text(node: ET.Element | None, path: str, default: str = "") -> str:
    """Text content of the first match for ``path`` below ``node`` or ``default``."""

    if node is None:
        return default
    return node_text(node.find(path), default)


def attribute(node: ET.Element | None, name: str, default: str = "") -> str:
    if node is None:
        return default
    value = node.get(name)
    return default if value is None else value


def _primary_element(root: ET.Element) -> tuple[ET.Element, str] | None:
    """Locate the parent/tag pair with the most repeated children."""

    best: tuple[ET.Element, str] | None = None
    best_count = 0
    for parent in root.iter():
        counts = Counter(local_name(child.tag) for child in parent)
        for tag, count in counts.items():
            if count > best_count:
                best, best_count = (parent, tag), count
    return best


def _element_record(node: ET.Element) -> Record:
    record: Record = {}
    for key, value in node.attrib.items():
        record[local_name(key)] = value
    children = list(node)
    if not children:
        record[local_name(node.tag)] = node_text(node)
        return record
    for child in children:
        name = local_name(child.tag)
        if name not in record:
            record[name] = node_text(child)
    return record


def parse(content: bytes) -> ParseResult:
    if not content.strip():
        return ParseResult(records=[], headers=[])
    root = load(content)
    located = _primary_element(root)
    if located is None:
        return ParseResult(records=[], headers=[], source_meta={"root": local_name(root.tag)})

    parent, tag = located
    raw_records = [_element_record(child) for child in parent if local_name(child.tag) == tag]

    headers: list[str] = []
    for record in raw_records:
        for key in record:
            if key not in headers:
                headers.append(key)
    records: list[Record] = [{header: record.get(header, "") for header in headers} for record in raw_records]

    logger.info("XML parsing completed", extra={"ctx_records": len(records), "ctx_element": tag})
    return ParseResult(
        records=records,
        headers=headers,
        source_meta={"root": local_name(root.tag), "element": tag},
    )


def parse_groups(content: bytes, group_tag: str, item_tag: str) -> tuple[ET.Element, list[XmlGroup]]:
    """Return the document root and every ``group_tag`` node with its ``item_tag`` nodes."""

    root = load(content)
    groups = [
        XmlGroup(node=group, items=list(group.iter(item_tag)))
        for group in root.iter(group_tag)
    ]
    return root, groups


__all__ = [
    "XmlGroup",
    "attribute",
    "find_text",
    "load",
    "local_name",
    "node_text",
    "parse",
    "parse_groups",
]
