"""Nextcloud Deck REST API (boards, stacks, cards)."""
from __future__ import annotations

import logging
from typing import Any

from backend.extractors import json_tree

from .transport import HttpTransport

logger = logging.getLogger(__name__)

DECK_API_PATH = "/index.php/apps/deck/api/v1.0"

DECK_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
    "OCS-APIRequest": "true",
}


class DeckClient:
    def __init__(self, base_url: str, username: str, password: str, *, transport: HttpTransport) -> None:
        self._api_root = f"{base_url.rstrip('/')}{DECK_API_PATH}"
        self._auth = (username, password)
        self._transport = transport

    def _get(self, path: str) -> Any:
        payload = self._transport.fetch(f"{self._api_root}{path}", auth=self._auth, headers=DECK_HEADERS)
        return json_tree.loads(payload.content)

    def get_boards(self) -> list[dict[str, Any]]:
        return json_tree.expect_list(self._get("/boards"), "boards")

    def get_board(self, board_id: int | str) -> dict[str, Any]:
        """Board with its stacks, and on most servers the cards of each stack."""

        return json_tree.expect_mapping(self._get(f"/boards/{board_id}"), "board")

    def get_stacks(self, board_id: int | str) -> list[dict[str, Any]]:
        return json_tree.expect_list(self._get(f"/boards/{board_id}/stacks"), "stacks")

    def get_stack_cards(self, board_id: int | str, stack_id: int | str) -> list[dict[str, Any]]:
        """Cards embedded in a single-stack response (primary endpoint shape)."""

        stack = json_tree.expect_mapping(self._get(f"/boards/{board_id}/stacks/{stack_id}"), "stack")
        return json_tree.expect_list(stack.get("cards"), "cards")

    def get_cards(self, board_id: int | str, stack_id: int | str) -> list[dict[str, Any]]:
        """Direct card listing (alternate endpoint shape)."""

        return json_tree.expect_list(self._get(f"/boards/{board_id}/stacks/{stack_id}/cards"), "cards")


__all__ = ["DeckClient", "DECK_API_PATH"]
