from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from datetime import datetime, timezone
from typing import Any

from cryptonews.config import Settings
from cryptonews.feed.models import FeedStatus, FeedView, FetchFailed
from cryptonews.news.client import NewsClient
from cryptonews.news.models import Article
from cryptonews.news.pipeline import ALL_CATEGORIES, filter_articles, merge_articles

logger = logging.getLogger(__name__)

Renderer = Callable[[FeedView], None]


def _discard_render(view: FeedView) -> None:
    pass


class FeedController:
    """Owns the merged article list, the filter state and the in-flight flag.

    All mutation happens on the event loop thread, so the ``is_fetching``
    flag is the only guard needed against overlapping fetch cycles.
    """

    def __init__(
        self,
        settings: Settings,
        news: NewsClient,
        render: Renderer | None = None,
    ) -> None:
        self.settings = settings
        self.news = news
        self._render = render or _discard_render
        self._articles: list[Article] = []
        self._category = ALL_CATEGORIES
        self._search = ""
        self._fetching = False
        self._tasks: set[asyncio.Task[Any]] = set()
        self.last_updated: datetime | None = None

    @property
    def is_fetching(self) -> bool:
        return self._fetching

    @property
    def articles(self) -> list[Article]:
        return list(self._articles)

    @property
    def category(self) -> str:
        return self._category

    @property
    def search(self) -> str:
        return self._search

    # ── Fetch cycle ──────────────────────────────────────────

    async def run_fetch_cycle(self) -> list[Article] | FetchFailed | None:
        """Fetch, merge, sort and dedup every source, then refresh the view.

        Returns the merged list, ``FetchFailed`` if the cycle aborted, or
        ``None`` if another cycle was already running.
        """
        if self._fetching:
            logger.debug("Fetch already in progress, dropping request")
            return None
        self._emit(FeedStatus.LOADING, [])
        self._fetching = True
        try:
            outcomes = await self.news.fetch_all()
            merged = merge_articles(outcomes)
        except Exception as exc:
            logger.error("Error fetching news: %s", exc, exc_info=True)
            failure = FetchFailed()
            self._emit(FeedStatus.ERROR, [], error=failure.message)
            return failure
        finally:
            self._fetching = False

        self._articles = merged
        self.last_updated = datetime.now(tz=timezone.utc)
        logger.info(
            "Feed: %d unique articles from %d sources",
            len(merged),
            len({a.source for a in merged}),
        )
        self.apply_filters()
        return merged

    # ── Filter stage ─────────────────────────────────────────

    def apply_filters(
        self,
        search: str | None = None,
        category: str | None = None,
    ) -> list[Article]:
        if search is not None:
            self._search = search
        if category is not None:
            self._category = category.strip().lower() or ALL_CATEGORIES
        filtered = filter_articles(self._articles, self._category, self._search)
        self._emit(FeedStatus.READY if filtered else FeedStatus.EMPTY, filtered)
        return filtered

    def _emit(self, status: FeedStatus, articles: list[Article], error: str = "") -> None:
        self._render(
            FeedView(
                status=status,
                articles=articles,
                category=self._category,
                search=self._search,
                last_updated=self.last_updated,
                error=error,
            )
        )

    # ── UI events ────────────────────────────────────────────

    def on_refresh_requested(self) -> asyncio.Task[Any] | None:
        if self._fetching:
            logger.debug("Refresh ignored, fetch already in progress")
            return None
        return self._spawn(self.run_fetch_cycle())

    def on_search_changed(self, text: str) -> list[Article]:
        return self.apply_filters(search=text)

    def on_filter_selected(self, tag: str) -> list[Article]:
        return self.apply_filters(category=tag)

    # ── Timer & task bookkeeping ─────────────────────────────

    async def run_auto_refresh(self) -> None:
        """Start a fetch cycle every ``refresh_interval`` seconds until cancelled."""
        while True:
            await asyncio.sleep(self.settings.refresh_interval)
            self.on_refresh_requested()

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Background task failed: %s", task.exception())

    async def aclose(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        await self.news.close()
