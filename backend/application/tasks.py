"""Aggregate Deck boards, stacks and cards into one read-only snapshot.

Each board is processed by an ordered list of strategies. The first strategy
that returns a board wins; a board that every strategy fails on is skipped
and recorded as a :class:`PartialAggregationFailure`. Only the initial board
enumeration can fail the whole call.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Protocol, TypeVar

from pydantic import ValidationError

from backend.core.errors import DashboardError, ParseError, PartialAggregationFailure
from backend.core.schema import Board, Card, Stack, TaskSnapshot
from backend.extractors import json_tree
from backend.infrastructure.deck import DeckClient

logger = logging.getLogger(__name__)

CardFetcher = Callable[[int | str, int | str], list[dict[str, Any]]]
ModelT = TypeVar("ModelT", Board, Stack)


@dataclass
class BoardContext:
    board_id: int | str
    summary: dict[str, Any] = field(default_factory=dict)
    failures: list[PartialAggregationFailure] = field(default_factory=list)

    def record(self, error: Exception | str, *, stack_id: int | str | None = None, stage: str) -> None:
        self.failures.append(
            PartialAggregationFailure(board_id=self.board_id, stack_id=stack_id, stage=stage, error=str(error))
        )


class BoardStrategy(Protocol):
    name: str

    def attempt(self, ctx: BoardContext) -> Board: ...


def normalize_cards(raw_cards: Iterable[dict[str, Any]], ctx: BoardContext, stack_id: int | str) -> list[Card]:
    cards: list[Card] = []
    for raw in raw_cards:
        try:
            cards.append(Card.model_validate(raw))
        except ValidationError as exc:
            logger.warning("Skipping malformed card", extra={"ctx_board_id": ctx.board_id, "ctx_stack_id": stack_id})
            ctx.record(exc.errors()[0].get("msg", "invalid card"), stack_id=stack_id, stage="card")
    return sorted(cards, key=lambda card: card.order)


def fetch_stack_cards(fetchers: list[CardFetcher], board_id: int | str, stack_id: int | str) -> list[dict[str, Any]]:
    """Try each card endpoint shape in turn; re-raise the last error if all fail."""

    last_error: DashboardError | None = None
    for fetch in fetchers:
        try:
            return fetch(board_id, stack_id)
        except DashboardError as exc:
            logger.warning(
                "Card endpoint failed, trying alternative",
                extra={"ctx_board_id": board_id, "ctx_stack_id": stack_id, "ctx_error": str(exc)},
            )
            last_error = exc
    if last_error is None:
        raise ValueError("no card fetchers configured")
    raise last_error


def _build(model: type[ModelT], what: str, **fields: Any) -> ModelT:
    try:
        return model(**fields)
    except ValidationError as exc:
        raise ParseError(f"Invalid {what}: {exc.errors()[0].get('msg', 'validation failed')}") from exc


def _stack_header(raw: dict[str, Any]) -> Stack:
    stack_id = json_tree.require_id(raw, "stack")
    return _build(Stack, "stack", id=stack_id, title=str(raw.get("title") or ""), order=raw.get("order") or 0)


class CompleteBoardStrategy:
    """One request for the whole board; stacks without embedded cards are fetched individually."""

    name = "complete_board"

    def __init__(self, client: DeckClient, card_fetchers: list[CardFetcher]) -> None:
        self._client = client
        self._card_fetchers = card_fetchers

    def attempt(self, ctx: BoardContext) -> Board:
        data = self._client.get_board(ctx.board_id)
        board = _build(
            Board,
            "board",
            id=data.get("id", ctx.board_id),
            title=data.get("title") or ctx.summary.get("title") or "Untitled Board",
            color=data.get("color"),
            strategy=self.name,
        )
        for raw_stack in json_tree.expect_list(data.get("stacks"), "stacks"):
            stack = _stack_header(raw_stack)
            raw_cards = json_tree.expect_list(raw_stack.get("cards"), "cards")
            if not raw_cards:
                try:
                    raw_cards = fetch_stack_cards(self._card_fetchers, ctx.board_id, stack.id)
                except DashboardError as exc:
                    logger.warning(
                        "Failed to fetch cards for stack",
                        extra={"ctx_board_id": ctx.board_id, "ctx_stack_id": stack.id, "ctx_error": str(exc)},
                    )
                    ctx.record(exc, stack_id=stack.id, stage="stack")
                    raw_cards = []
            stack.cards = normalize_cards(raw_cards, ctx, stack.id)
            board.stacks.append(stack)
            board.total_cards += len(stack.cards)
        board.stacks.sort(key=lambda item: item.order)
        return board


class StackWalkStrategy:
    """Stacks listing followed by one card request per stack."""

    name = "stack_walk"

    def __init__(self, client: DeckClient, card_fetchers: list[CardFetcher]) -> None:
        self._client = client
        self._card_fetchers = card_fetchers

    def attempt(self, ctx: BoardContext) -> Board:
        raw_stacks = self._client.get_stacks(ctx.board_id)
        board = _build(
            Board,
            "board",
            id=ctx.board_id,
            title=ctx.summary.get("title") or "Untitled Board",
            color=ctx.summary.get("color"),
            strategy=self.name,
        )
        for raw_stack in raw_stacks:
            stack = _stack_header(raw_stack)
            try:
                raw_cards = fetch_stack_cards(self._card_fetchers, ctx.board_id, stack.id)
            except DashboardError as exc:
                logger.error(
                    "Both card endpoints failed",
                    extra={"ctx_board_id": ctx.board_id, "ctx_stack_id": stack.id, "ctx_error": str(exc)},
                )
                ctx.record(exc, stack_id=stack.id, stage="stack")
                raw_cards = []
            stack.cards = normalize_cards(raw_cards, ctx, stack.id)
            board.stacks.append(stack)
            board.total_cards += len(stack.cards)
        board.stacks.sort(key=lambda item: item.order)
        return board


class TaskAggregator:
    def __init__(self, client: DeckClient, strategies: list[BoardStrategy] | None = None) -> None:
        self._client = client
        card_fetchers: list[CardFetcher] = [client.get_stack_cards, client.get_cards]
        self._strategies: list[BoardStrategy] = strategies or [
            CompleteBoardStrategy(client, card_fetchers),
            StackWalkStrategy(client, card_fetchers),
        ]

    def _process_board(self, ctx: BoardContext) -> Board | None:
        for strategy in self._strategies:
            failures_before = len(ctx.failures)
            try:
                return strategy.attempt(ctx)
            except DashboardError as exc:
                del ctx.failures[failures_before:]
                logger.warning(
                    "Board strategy failed",
                    extra={"ctx_board_id": ctx.board_id, "ctx_strategy": strategy.name, "ctx_error": str(exc)},
                )
                ctx.record(exc, stage=strategy.name)
        return None

    def get_all_tasks(self, board_ids: list[int | str] | None = None) -> TaskSnapshot:
        summaries: dict[str, dict[str, Any]] = {}
        if not board_ids:
            boards = self._client.get_boards()
            board_ids = []
            for summary in boards:
                board_id = json_tree.require_id(summary, "board")
                board_ids.append(board_id)
                summaries[str(board_id)] = summary
            logger.info("Fetching from all available boards", extra={"ctx_board_count": len(board_ids)})

        snapshot = TaskSnapshot(fetched_at=datetime.now(timezone.utc))
        for board_id in board_ids:
            ctx = BoardContext(board_id=board_id, summary=summaries.get(str(board_id), {}))
            board = self._process_board(ctx)
            snapshot.failures.extend(failure.to_dict() for failure in ctx.failures)
            if board is None:
                logger.warning("Skipping board after all strategies failed", extra={"ctx_board_id": board_id})
                continue
            snapshot.boards.append(board)
            snapshot.total_cards += board.total_cards

        logger.info(
            "Aggregated task fetch complete",
            extra={"ctx_boards": len(snapshot.boards), "ctx_cards": snapshot.total_cards},
        )
        return snapshot

    def test_connection(self) -> dict[str, Any]:
        try:
            boards = self._client.get_boards()
        except DashboardError as exc:
            return {"connected": False, "error": str(exc)}
        return {
            "connected": True,
            "boards_count": len(boards),
            "boards": [{"id": board.get("id"), "title": board.get("title") or "Untitled Board"} for board in boards],
        }


__all__ = [
    "BoardContext",
    "BoardStrategy",
    "CompleteBoardStrategy",
    "StackWalkStrategy",
    "TaskAggregator",
    "fetch_stack_cards",
    "normalize_cards",
]
