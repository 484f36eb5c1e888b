from __future__ import annotations

import textwrap
from datetime import datetime, timezone

from cryptonews.feed.models import FeedStatus, FeedView
from cryptonews.news.models import Article
from cryptonews.news.pipeline import ALL_CATEGORIES

# Terminal rendering of the feed

CARD_TAG_LIMIT = 2
_RULE = "-" * 60

LOADING_TEXT = "Loading latest crypto news..."
ERROR_TEXT = (
    "Unable to load news\n"
    "Please check your internet connection and try again."
)
NO_RESULTS_TEXT = (
    "No articles found\n"
    "Try adjusting your search or filter criteria"
)


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}{'' if n == 1 else 's'} ago"


def format_relative_date(published: datetime, now: datetime | None = None) -> str:
    """Minutes under an hour, hours under a day, days under a week, else "Jan 5"."""
    now = now or datetime.now(tz=timezone.utc)
    if published.tzinfo is None:
        published = published.replace(tzinfo=timezone.utc)
    seconds = max(0.0, (now - published).total_seconds())
    mins = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if mins < 60:
        return _plural(mins, "min")
    if hours < 24:
        return _plural(hours, "hour")
    if days < 7:
        return _plural(days, "day")
    label = f"{published.strftime('%b')} {published.day}"
    if published.year != now.year:
        label += f", {published.year}"
    return label


def format_article_card(article: Article, now: datetime | None = None) -> str:
    tags = " ".join(f"#{c}" for c in article.categories[:CARD_TAG_LIMIT])
    header = f"[{article.source}]" + (f" {tags}" if tags else "")
    lines = [header, article.title]
    if article.description:
        lines.append(textwrap.fill(article.description, width=78, initial_indent="  ", subsequent_indent="  "))
    lines.append(
        f"  {format_relative_date(article.published_at, now)} | Read more: {article.url}"
    )
    return "\n".join(lines)


def format_header(view: FeedView) -> str:
    parts = [f"{view.article_count} articles"]
    if view.last_updated:
        parts.append(f"Last updated: {view.last_updated.astimezone().strftime('%H:%M:%S')}")
    if view.category and view.category != ALL_CATEGORIES:
        parts.append(f"Filter: {view.category}")
    if view.search.strip():
        parts.append(f'Search: "{view.search.strip()}"')
    return " | ".join(parts)


def format_feed(view: FeedView, now: datetime | None = None) -> str:
    if view.status is FeedStatus.LOADING:
        return LOADING_TEXT
    if view.status is FeedStatus.ERROR:
        return ERROR_TEXT

    lines = [format_header(view), _RULE]
    if view.status is FeedStatus.EMPTY or not view.articles:
        lines.append(NO_RESULTS_TEXT)
        return "\n".join(lines)

    lines.append(f"\n{_RULE}\n".join(format_article_card(a, now) for a in view.articles))
    return "\n".join(lines)
