"""Infrastructure layer exports."""

from .cache import CacheEntry, CacheStore, InMemoryTTLCache
from .deck import DeckClient
from .image_search import ImageSearchClient
from .menu_feed import MenuFeedClient
from .transport import HttpTransport
from .webdav import WebDavClient

__all__ = [
    "CacheEntry",
    "CacheStore",
    "DeckClient",
    "HttpTransport",
    "ImageSearchClient",
    "InMemoryTTLCache",
    "MenuFeedClient",
    "WebDavClient",
]
