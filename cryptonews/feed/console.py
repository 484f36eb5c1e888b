from __future__ import annotations

import asyncio
import logging
import os
import stat
import sys
from dataclasses import dataclass

from cryptonews.feed.controller import FeedController
from cryptonews.news.pipeline import ALL_CATEGORIES

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "Commands:\n"
    "  r | refresh   fetch the latest news now\n"
    "  /<text>       search titles, descriptions and sources ('/' clears)\n"
    "  #<tag>        filter by tag, e.g. #bitcoin ('#all' clears)\n"
    "  q | quit      exit"
)


@dataclass
class ConsoleCommand:
    action: str
    argument: str = ""


def parse_command(text: str) -> ConsoleCommand:
    """Map one line of user input onto a feed event."""
    text = text.strip()
    lowered = text.lower()

    if lowered in ("r", "refresh"):
        return ConsoleCommand(action="refresh")
    if lowered in ("q", "quit", "exit"):
        return ConsoleCommand(action="quit")
    if lowered in ("h", "help", "?"):
        return ConsoleCommand(action="help")
    if text.startswith("/"):
        return ConsoleCommand(action="search", argument=text[1:].strip())
    if text.startswith("#"):
        return ConsoleCommand(action="filter", argument=lowered[1:].strip() or ALL_CATEGORIES)
    return ConsoleCommand(action="unknown", argument=text)


def dispatch(controller: FeedController, command: ConsoleCommand) -> bool:
    """Forward a parsed command to the controller. Returns False on quit."""
    if command.action == "quit":
        return False
    if command.action == "refresh":
        if controller.on_refresh_requested() is None:
            print("Already refreshing...")
    elif command.action == "search":
        controller.on_search_changed(command.argument)
    elif command.action == "filter":
        if command.argument not in controller.settings.filter_tags:
            logger.info("Filtering on custom tag: %s", command.argument)
        controller.on_filter_selected(command.argument)
    elif command.action == "help":
        print(HELP_TEXT)
        print("Tags: " + ", ".join(controller.settings.filter_tags))
    elif command.action == "unknown" and command.argument:
        print(f"Unknown command: {command.argument!r} (type 'help')")
    return True


def _pollable(stream) -> bool:
    try:
        mode = os.fstat(stream.fileno()).st_mode
    except (OSError, ValueError):
        return False
    return stat.S_ISFIFO(mode) or stat.S_ISSOCK(mode) or stream.isatty()


async def _open_stdin() -> tuple[asyncio.StreamReader | None, asyncio.BaseTransport | None]:
    if not _pollable(sys.stdin):
        return None, None  # regular file or /dev/null; read it on a thread
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    try:
        transport, _ = await loop.connect_read_pipe(
            lambda: asyncio.StreamReaderProtocol(reader), sys.stdin
        )
    except (NotImplementedError, OSError, ValueError):
        return None, None  # Windows
    return reader, transport


async def _read_line(reader: asyncio.StreamReader | None) -> str:
    if reader is None:
        return await asyncio.to_thread(sys.stdin.readline)
    return (await reader.readline()).decode(errors="replace")


async def run_console(controller: FeedController) -> bool:
    """Read commands from stdin.

    Returns True when the user asks to quit and False once input runs
    out (or there is no stdin at all). In the latter case the feed keeps
    running until it is signalled.
    """
    if sys.stdin is None or sys.stdin.closed:
        logger.info("No console input, commands disabled")
        return False

    reader, transport = await _open_stdin()
    try:
        while True:
            line = await _read_line(reader)
            if not line:
                logger.info("Console input closed, commands disabled")
                return False
            if not dispatch(controller, parse_command(line)):
                return True
    finally:
        if transport is not None:
            transport.close()
