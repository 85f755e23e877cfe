"""Application services and their process-wide accessors.

Services are built lazily from :func:`backend.core.config.get_settings`.
Tests (or an alternative start-up path) install their own instances with
the ``configure_*`` functions and drop everything with :func:`reset_services`.
"""
from __future__ import annotations

from backend.core.config import Settings, get_settings
from backend.infrastructure import (
    DeckClient,
    HttpTransport,
    ImageSearchClient,
    MenuFeedClient,
    WebDavClient,
)
from backend.workers.pipeline import get_parse_pipeline

from .images import ImageEnrichmentCache
from .menu import MenuService
from .proposals import ProposalService
from .tasks import TaskAggregator

_proposals: ProposalService | None = None
_menu: MenuService | None = None
_tasks: TaskAggregator | None = None
_images: ImageEnrichmentCache | None = None
_images_built = False


def _transport(settings: Settings, timeout: float) -> HttpTransport:
    return HttpTransport(
        timeout=timeout,
        verify_tls=settings.http.verify_tls,
        user_agent=settings.http.user_agent,
    )


def get_image_cache() -> ImageEnrichmentCache | None:
    """Image lookups are optional; ``None`` when no search credentials are set."""

    global _images, _images_built
    if not _images_built:
        settings = get_settings()
        if settings.images_configured:
            client = ImageSearchClient(
                settings.images.api_key,
                settings.images.engine_id,
                transport=_transport(settings, settings.images.timeout),
                api_url=settings.images.api_url,
            )
            _images = ImageEnrichmentCache(
                client,
                ttl=settings.images.cache_ttl_seconds,
                max_attempts=settings.images.max_attempts,
            )
        _images_built = True
    return _images


def get_proposal_service() -> ProposalService:
    global _proposals
    if _proposals is None:
        settings = get_settings()
        webdav = WebDavClient(
            settings.webdav.base_url,
            settings.webdav.username,
            settings.webdav.password,
            transport=_transport(settings, settings.webdav.timeout),
        )
        _proposals = ProposalService(webdav, get_parse_pipeline(), settings.webdav.file_path)
    return _proposals


def get_menu_service() -> MenuService:
    global _menu
    if _menu is None:
        settings = get_settings()
        feed = MenuFeedClient(
            settings.menu.base_url,
            settings.menu.api_key,
            settings.menu.location_id,
            transport=_transport(settings, settings.menu.timeout),
        )
        _menu = MenuService(feed, images=get_image_cache())
    return _menu


def get_task_aggregator() -> TaskAggregator:
    global _tasks
    if _tasks is None:
        settings = get_settings()
        client = DeckClient(
            settings.webdav.base_url,
            settings.webdav.username,
            settings.webdav.password,
            transport=_transport(settings, settings.deck.timeout),
        )
        _tasks = TaskAggregator(client)
    return _tasks


def configure_proposal_service(service: ProposalService) -> None:
    global _proposals
    _proposals = service


def configure_menu_service(service: MenuService) -> None:
    global _menu
    _menu = service


def configure_task_aggregator(aggregator: TaskAggregator) -> None:
    global _tasks
    _tasks = aggregator


def configure_image_cache(cache: ImageEnrichmentCache | None) -> None:
    global _images, _images_built
    _images = cache
    _images_built = True


def reset_services() -> None:
    global _proposals, _menu, _tasks, _images, _images_built
    _proposals = None
    _menu = None
    _tasks = None
    _images = None
    _images_built = False
    get_settings.cache_clear()


__all__ = [
    "ImageEnrichmentCache",
    "MenuService",
    "ProposalService",
    "TaskAggregator",
    "configure_image_cache",
    "configure_menu_service",
    "configure_proposal_service",
    "configure_task_aggregator",
    "get_image_cache",
    "get_menu_service",
    "get_proposal_service",
    "get_task_aggregator",
    "reset_services",
]
