from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from backend.application import get_proposal_service

router = APIRouter(tags=["proposals"])


@router.get("/proposals")
def get_proposals() -> JSONResponse:
    status, body = get_proposal_service().parse()
    return JSONResponse(body, status_code=status)


@router.get("/parser/health")
def parser_health() -> JSONResponse:
    status, body = get_proposal_service().health()
    return JSONResponse(body, status_code=status)
