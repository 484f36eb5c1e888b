from __future__ import annotations

from collections.abc import Iterable, Sequence

from cryptonews.news.models import Article

ALL_CATEGORIES = "all"
DEDUP_PREFIX_CHARS = 50


def merge_results(outcomes: Iterable[object]) -> list[Article]:
    """Concatenate the article lists of the sources that succeeded.

    Failed sources show up as exceptions (or ``None``) and add nothing.
    """
    merged: list[Article] = []
    for outcome in outcomes:
        if isinstance(outcome, BaseException) or not outcome:
            continue
        merged.extend(outcome)  # type: ignore[arg-type]
    return merged


def sort_by_recency(articles: Sequence[Article]) -> list[Article]:
    # sorted() is stable with reverse=True, so ties keep source order
    return sorted(articles, key=lambda a: a.published_at, reverse=True)


def dedup_key(title: str) -> str:
    return title.lower()[:DEDUP_PREFIX_CHARS]


def remove_duplicates(articles: Sequence[Article]) -> list[Article]:
    """Keep the first article for each case-folded 50-character title prefix.

    Headlines that only differ after the prefix collapse into one entry.
    """
    seen: set[str] = set()
    unique: list[Article] = []
    for art in articles:
        key = dedup_key(art.title)
        if key in seen:
            continue
        seen.add(key)
        unique.append(art)
    return unique


def merge_articles(outcomes: Iterable[object]) -> list[Article]:
    return remove_duplicates(sort_by_recency(merge_results(outcomes)))


def _matches_category(article: Article, category: str) -> bool:
    text = " ".join([article.title, article.description, " ".join(article.categories)])
    return category in text.lower()


def _matches_search(article: Article, term: str) -> bool:
    text = " ".join([article.title, article.description, article.source])
    return term in text.lower()


def filter_articles(
    articles: Sequence[Article],
    category: str = ALL_CATEGORIES,
    search: str = "",
) -> list[Article]:
    """Narrow by category tag, then by free-text search.

    Both are case-insensitive substring matches. Category looks at
    title, description and tags; search looks at title, description
    and source.
    """
    filtered = list(articles)

    category = (category or ALL_CATEGORIES).strip().lower()
    if category != ALL_CATEGORIES:
        filtered = [a for a in filtered if _matches_category(a, category)]

    term = (search or "").strip().lower()
    if term:
        filtered = [a for a in filtered if _matches_search(a, term)]

    return filtered
