"""Google Custom Search client restricted to image results."""
from __future__ import annotations

from typing import Any

from backend.core.errors import ParseError
from backend.extractors import json_tree

from .transport import HttpTransport

DEFAULT_API_URL = "https://www.googleapis.com/customsearch/v1"

IMAGE_FILTERS: dict[str, str] = {
    "searchType": "image",
    "safe": "active",
    "imgType": "photo",
    "imgSize": "medium",
    "imgColorType": "color",
    "fileType": "jpg,png",
    "rights": "cc_publicdomain,cc_attribute,cc_sharealike,cc_noncommercial",
}


class ImageSearchClient:
    """Performs exactly one search request per call; no retries."""

    def __init__(
        self,
        api_key: str,
        engine_id: str,
        *,
        transport: HttpTransport,
        api_url: str = DEFAULT_API_URL,
    ) -> None:
        if not api_key or not engine_id:
            raise ValueError("Google Custom Search API credentials not configured")
        self._api_key = api_key
        self._engine_id = engine_id
        self._api_url = api_url
        self._transport = transport

    def search(self, query: str, *, num: int = 3) -> list[dict[str, Any]]:
        params: dict[str, Any] = {
            "key": self._api_key,
            "cx": self._engine_id,
            "q": query,
            "num": num,
            **IMAGE_FILTERS,
        }
        payload = self._transport.fetch(self._api_url, params=params)
        data = json_tree.loads(payload.content) or {}
        if not isinstance(data, dict):
            raise ParseError("Search response must be a JSON object")
        items = data.get("items") or []
        return [item for item in items if isinstance(item, dict)]


__all__ = ["IMAGE_FILTERS", "ImageSearchClient"]
