#!/usr/bin/env python
from __future__ import annotations

import argparse
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

from backend.application.images import ImageEnrichmentCache
from backend.core.config import get_settings
from backend.core.errors import DashboardError
from backend.infrastructure import HttpTransport, ImageSearchClient

DEFAULT_QUERY = "schnitzel food dish"


def _mask(value: str, visible: int = 10) -> str:
    return f"Set ({value[:visible]}...)" if value else "NOT SET"


def main(argv: list[str] | None = None, transport: HttpTransport | None = None) -> int:
    parser = argparse.ArgumentParser(description="Check the image search credentials with one live search")
    parser.add_argument("food", nargs="?", default=DEFAULT_QUERY, help="Search query")
    args = parser.parse_args(argv)

    settings = get_settings()
    images = settings.images
    print(f"API key: {_mask(images.api_key)}")
    print(f"Search engine ID: {f'Set ({images.engine_id})' if images.engine_id else 'NOT SET'}")
    if not settings.images_configured:
        print("Image search credentials not configured", file=sys.stderr)
        return 1

    transport = transport or HttpTransport(
        timeout=images.timeout,
        verify_tls=settings.http.verify_tls,
        user_agent=settings.http.user_agent,
    )
    client = ImageSearchClient(images.api_key, images.engine_id, transport=transport, api_url=images.api_url)

    print(f"\n--- Direct search ---\nQuery: {args.food}")
    try:
        items = client.search(args.food, num=1)
    except DashboardError as exc:
        print(f"Search failed: {exc}", file=sys.stderr)
        return 1
    if items:
        print(f"Found {len(items)} image(s)")
        print(f"First image URL: {items[0].get('link', '')}")
        print(f"Title: {items[0].get('title', '')}")
    else:
        print("No images found in response")

    print("\n--- Enrichment cache ---")
    result = ImageEnrichmentCache(client, max_attempts=images.max_attempts).search(args.food, use_cache=False)
    if result is None:
        print("Lookup returned no image")
    else:
        print(f"URL: {result.url}\nTitle: {result.title}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
