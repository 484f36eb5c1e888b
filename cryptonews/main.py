from __future__ import annotations

import asyncio
import logging
import signal
import sys

from cryptonews.config import Settings
from cryptonews.feed.console import HELP_TEXT, run_console
from cryptonews.feed.controller import FeedController
from cryptonews.feed.formatters import format_feed
from cryptonews.feed.models import FeedView
from cryptonews.news.client import NewsClient

logger = logging.getLogger(__name__)


def _print_view(view: FeedView) -> None:
    print("\n" + format_feed(view), flush=True)


async def _run(settings: Settings, stop_event: asyncio.Event | None = None) -> None:
    logger.info("Starting crypto news feed...")

    news = NewsClient(settings)
    controller = FeedController(settings, news, render=_print_view)
    stop_event = stop_event or asyncio.Event()

    print(HELP_TEXT)

    # Initial load, then one cycle per refresh interval
    controller.on_refresh_requested()
    timer = asyncio.create_task(controller.run_auto_refresh())
    console = asyncio.create_task(run_console(controller))

    def _console_done(task: asyncio.Task[bool]) -> None:
        if task.cancelled():
            return
        if task.exception() is not None:
            logger.warning("Console input failed: %s", task.exception())
        elif task.result():
            stop_event.set()

    console.add_done_callback(_console_done)

    def _signal_handler() -> None:
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            pass  # Windows

    # Runs until 'quit' or a signal; running out of console input is not a stop
    await stop_event.wait()

    logger.info("Shutting down...")
    for task in (timer, console):
        task.cancel()
    await asyncio.gather(timer, console, return_exceptions=True)
    try:
        await controller.aclose()
    except Exception as exc:
        logger.warning("Shutdown error (non-fatal): %s", exc)
    logger.info("Shutdown complete.")


def main() -> None:
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stdout,
    )
    try:
        asyncio.run(_run(settings))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
