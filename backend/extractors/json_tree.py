"""Structural validation for the task-board JSON payloads."""

from __future__ import annotations

import json
from typing import Any

from backend.core.errors import ParseError


def loads(content: bytes) -> Any:
    if not content or not content.strip():
        return None
    try:
        return json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ParseError(f"Invalid JSON payload: {exc}") from exc


def expect_list(data: Any, what: str) -> list[dict[str, Any]]:
    """Return the mapping entries of a JSON array; ``null`` counts as empty."""

    if data is None:
        return []
    if not isinstance(data, list):
        raise ParseError(f"Expected a list of {what}, got {type(data).__name__}")
    return [item for item in data if isinstance(item, dict)]


def expect_mapping(data: Any, what: str) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ParseError(f"Expected a {what} object, got {type(data).__name__}")
    return data


def require_id(node: dict[str, Any], what: str) -> int | str:
    value = node.get("id")
    if value is None or isinstance(value, (dict, list, bool)):
        raise ParseError(f"{what} without a usable id")
    return value
