#!/usr/bin/env python3
"""Fetch every source once and print the merged, filtered feed.

Usage:
    python -m scripts.snapshot [--filter bitcoin] [--search etf] [--json]

Runs a single fetch cycle (no timer, no console), applies the given
category filter and search term, and prints the result as text cards or
as JSON.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from cryptonews.config import Settings
from cryptonews.feed.controller import FeedController
from cryptonews.feed.formatters import format_feed
from cryptonews.feed.models import FeedView, FetchFailed
from cryptonews.news.client import NewsClient

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


async def run_snapshot(category: str, search: str, as_json: bool) -> int:
    settings = Settings.from_env()
    news = NewsClient(settings)
    views: list[FeedView] = []
    controller = FeedController(settings, news, render=views.append)

    try:
        result = await controller.run_fetch_cycle()
        if isinstance(result, FetchFailed):
            logger.error("Snapshot failed: %s", result.message)
            print(format_feed(views[-1]))
            return 1

        filtered = controller.apply_filters(search=search, category=category)
        if as_json:
            print(json.dumps([a.model_dump(mode="json") for a in filtered], indent=2))
        else:
            print(format_feed(views[-1]))
        return 0
    finally:
        await controller.aclose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Print a one-off crypto news snapshot")
    parser.add_argument("--filter", default="all", help="Category tag (default: all)")
    parser.add_argument("--search", default="", help="Free-text search term")
    parser.add_argument("--json", action="store_true", help="Emit articles as JSON")
    args = parser.parse_args()
    sys.exit(asyncio.run(run_snapshot(args.filter, args.search, args.json)))


if __name__ == "__main__":
    main()
