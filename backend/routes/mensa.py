from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from backend.application import get_menu_service
from backend.core.errors import MenuUnavailableError, TransportError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/mensa", tags=["mensa"])


def _menu_response(with_images: bool) -> JSONResponse:
    try:
        body = get_menu_service().get_menu(with_images=with_images)
    except MenuUnavailableError as exc:
        logger.warning("Menu request failed: %s", exc)
        status = 503 if isinstance(exc.__cause__, TransportError) else 500
        return JSONResponse({"success": False, "error": str(exc), "data": None}, status_code=status)
    return JSONResponse(body)


@router.get("")
def get_menu() -> JSONResponse:
    return _menu_response(with_images=False)


@router.get("/with-images")
def get_menu_with_images() -> JSONResponse:
    """Menu items enriched with a food photo; missing images are ``null``."""
    return _menu_response(with_images=True)
