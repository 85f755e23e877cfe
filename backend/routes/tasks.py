from __future__ import annotations

import logging

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from backend.application import get_task_aggregator
from backend.core.errors import DashboardError, TransportError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("")
def get_tasks(board_id: list[str] | None = Query(default=None)) -> JSONResponse:
    board_ids: list[int | str] | None = None
    if board_id:
        board_ids = [int(value) if value.isdigit() else value for value in board_id]
    try:
        snapshot = get_task_aggregator().get_all_tasks(board_ids)
    except DashboardError as exc:
        logger.error("Failed to fetch tasks: %s", exc)
        status = 503 if isinstance(exc, TransportError) else 500
        return JSONResponse(
            {"success": False, "error": "Failed to fetch tasks", "message": str(exc)},
            status_code=status,
        )
    return JSONResponse({"success": True, "data": snapshot.to_dict()})


@router.get("/connection")
def test_connection() -> dict:
    return get_task_aggregator().test_connection()
