import asyncio
import unittest
from datetime import datetime, timedelta, timezone

import httpx

from cryptonews.config import Settings
from cryptonews.feed.controller import FeedController
from cryptonews.feed.models import FeedStatus, FetchFailed
from cryptonews.news.client import NewsClient
from cryptonews.news.models import Article

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_article(title, hours=0, **kwargs):
    return Article(title=title, published_at=BASE + timedelta(hours=hours), **kwargs)


class FakeNews:
    """Stands in for NewsClient; each fetch_all() pops the next scripted outcome."""

    def __init__(self, *cycles, gate=None):
        self.cycles = list(cycles)
        self.gate = gate
        self.calls = 0
        self.closed = False

    async def fetch_all(self):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.cycles.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def close(self):
        self.closed = True


class ControllerTestBase(unittest.IsolatedAsyncioTestCase):
    def make_controller(self, news, settings=None):
        self.views = []
        return FeedController(settings or Settings(), news, render=self.views.append)


class TestFetchCycle(ControllerTestBase):
    async def test_merges_sorts_and_dedups(self):
        news = FakeNews(
            [
                [make_article("Older headline", 1, source="A")],
                RuntimeError("source down"),
                [
                    make_article("Newest headline", 3, source="B"),
                    make_article("NEWEST HEADLINE", 2, source="C"),
                ],
            ]
        )
        controller = self.make_controller(news)

        result = await controller.run_fetch_cycle()

        self.assertEqual([a.title for a in result], ["Newest headline", "Older headline"])
        self.assertEqual(controller.articles, result)
        self.assertFalse(controller.is_fetching)
        self.assertIsNotNone(controller.last_updated)
        self.assertEqual(self.views[0].status, FeedStatus.LOADING)
        self.assertEqual(self.views[-1].status, FeedStatus.READY)
        self.assertEqual(self.views[-1].article_count, 2)

    async def test_cycle_replaces_previous_list(self):
        news = FakeNews([[make_article("First cycle")]], [[make_article("Second cycle")]])
        controller = self.make_controller(news)

        await controller.run_fetch_cycle()
        await controller.run_fetch_cycle()

        self.assertEqual([a.title for a in controller.articles], ["Second cycle"])

    async def test_all_sources_failing_yields_empty_state(self):
        news = FakeNews([[], [], []])
        controller = self.make_controller(news)

        result = await controller.run_fetch_cycle()

        self.assertEqual(result, [])
        self.assertEqual(self.views[-1].status, FeedStatus.EMPTY)


class TestCycleFailure(ControllerTestBase):
    async def test_error_keeps_prior_articles(self):
        news = FakeNews([[make_article("Kept")]], RuntimeError("boom"))
        controller = self.make_controller(news)
        await controller.run_fetch_cycle()
        updated = controller.last_updated

        result = await controller.run_fetch_cycle()

        self.assertIsInstance(result, FetchFailed)
        self.assertEqual(result.message, "Unable to load news")
        self.assertEqual([a.title for a in controller.articles], ["Kept"])
        self.assertEqual(controller.last_updated, updated)
        self.assertFalse(controller.is_fetching)
        self.assertEqual(self.views[-1].status, FeedStatus.ERROR)

    async def test_filters_still_work_after_error(self):
        news = FakeNews([[make_article("Kept")]], RuntimeError("boom"))
        controller = self.make_controller(news)
        await controller.run_fetch_cycle()
        await controller.run_fetch_cycle()

        self.assertEqual(len(controller.on_search_changed("kept")), 1)
        self.assertEqual(self.views[-1].status, FeedStatus.READY)


class TestSingleFlight(ControllerTestBase):
    async def test_second_request_is_dropped(self):
        gate = asyncio.Event()
        news = FakeNews([[make_article("Only cycle")]], gate=gate)
        controller = self.make_controller(news)

        first = asyncio.create_task(controller.run_fetch_cycle())
        await asyncio.sleep(0)
        self.assertTrue(controller.is_fetching)

        self.assertIsNone(await controller.run_fetch_cycle())
        self.assertIsNone(controller.on_refresh_requested())

        gate.set()
        result = await first

        self.assertEqual([a.title for a in result], ["Only cycle"])
        self.assertEqual(news.calls, 1)
        self.assertFalse(controller.is_fetching)

    async def test_refresh_event_runs_cycle_in_background(self):
        news = FakeNews([[make_article("Background")]])
        controller = self.make_controller(news)

        task = controller.on_refresh_requested()
        self.assertIsNotNone(task)
        await task

        self.assertEqual([a.title for a in controller.articles], ["Background"])


class TestFilterEvents(ControllerTestBase):
    async def asyncSetUp(self):
        news = FakeNews(
            [
                [
                    make_article("Bitcoin ETF approved", 2, source="CoinDesk", categories=["BTC"]),
                    make_article("Pepe is Trending!", 1, source="CoinGecko Trending", categories=["trending"]),
                ]
            ]
        )
        self.controller = self.make_controller(news)
        await self.controller.run_fetch_cycle()

    async def test_identity_when_unfiltered(self):
        self.assertEqual(self.controller.apply_filters(), self.controller.articles)

    async def test_filter_then_search(self):
        self.assertEqual(len(self.controller.on_filter_selected("Trending")), 1)
        self.assertEqual(self.controller.category, "trending")

        self.assertEqual(self.controller.on_search_changed("bitcoin"), [])
        view = self.views[-1]
        self.assertEqual(view.status, FeedStatus.EMPTY)
        self.assertEqual(view.category, "trending")
        self.assertEqual(view.search, "bitcoin")

    async def test_filters_survive_refetch(self):
        self.controller.on_filter_selected("btc")
        self.controller.news.cycles.append(
            [[make_article("BTC hits new high"), make_article("Ether slides")]]
        )
        result = await self.controller.run_fetch_cycle()

        self.assertEqual(len(result), 2)
        self.assertEqual([a.title for a in self.views[-1].articles], ["BTC hits new high"])

    async def test_all_resets_category(self):
        self.controller.on_filter_selected("btc")
        self.assertEqual(len(self.controller.on_filter_selected("all")), 2)


class TestAutoRefresh(ControllerTestBase):
    async def test_timer_starts_cycles(self):
        news = FakeNews(*([[make_article(f"Tick {i}")]] for i in range(50)))
        controller = self.make_controller(news, Settings(refresh_interval=0.01))

        timer = asyncio.create_task(controller.run_auto_refresh())
        await asyncio.sleep(0.1)
        timer.cancel()
        await asyncio.gather(timer, return_exceptions=True)
        await controller.aclose()

        self.assertGreaterEqual(news.calls, 2)
        self.assertTrue(news.closed)

    async def test_overlapping_ticks_are_dropped(self):
        gate = asyncio.Event()
        news = FakeNews([[make_article("Slow")]], gate=gate)
        controller = self.make_controller(news, Settings(refresh_interval=0.01))

        timer = asyncio.create_task(controller.run_auto_refresh())
        await asyncio.sleep(0.1)
        self.assertEqual(news.calls, 1)

        gate.set()
        timer.cancel()
        await asyncio.gather(timer, return_exceptions=True)
        await controller.aclose()


class TestRendererFailure(unittest.IsolatedAsyncioTestCase):
    async def test_loading_render_error_is_not_a_fetch_failure(self):
        news = FakeNews([[make_article("Never fetched")]])

        def render(view):
            raise RuntimeError("display gone")

        controller = FeedController(Settings(), news, render=render)

        with self.assertRaises(RuntimeError):
            await controller.run_fetch_cycle()

        self.assertEqual(news.calls, 0)
        self.assertFalse(controller.is_fetching)


class TestWithHttpSources(ControllerTestBase):
    async def test_failed_source_contributes_nothing(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/data/v2/news/":
                return httpx.Response(500)
            if request.url.path == "/api/v3/search/trending":
                return httpx.Response(
                    200,
                    json={"coins": [{"item": {"id": "pepe", "name": "Pepe", "symbol": "pepe"}}]},
                )
            return httpx.Response(200, json={"status_updates": []})

        news = NewsClient(Settings(), transport=httpx.MockTransport(handler))
        controller = self.make_controller(news)
        try:
            result = await controller.run_fetch_cycle()
        finally:
            await controller.aclose()

        self.assertEqual([a.title for a in result], ["Pepe (PEPE) is Trending!"])


if __name__ == "__main__":
    unittest.main()
