from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from cryptonews.news.models import Article
from cryptonews.news.pipeline import ALL_CATEGORIES


class FeedStatus(str, Enum):
    LOADING = "LOADING"
    READY = "READY"
    EMPTY = "EMPTY"
    ERROR = "ERROR"


class FetchFailed(BaseModel):
    """Returned by a fetch cycle that aborted outside the source adapters."""

    message: str = "Unable to load news"


class FeedView(BaseModel):
    status: FeedStatus
    articles: list[Article] = Field(default_factory=list)
    category: str = ALL_CATEGORIES
    search: str = ""
    last_updated: datetime | None = None
    error: str = ""

    @property
    def article_count(self) -> int:
        return len(self.articles)
