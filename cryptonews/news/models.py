from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator


class Article(BaseModel):
    title: str
    description: str = ""
    url: str = "#"
    image_url: str = ""
    source: str = ""
    published_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))
    categories: list[str] = Field(default_factory=list)

    @field_validator("description", "source", mode="before")
    @classmethod
    def _none_to_empty(cls, v: object) -> object:
        return "" if v is None else v

    @field_validator("url", mode="before")
    @classmethod
    def _missing_url(cls, v: object) -> object:
        return v or "#"

    @field_validator("categories", mode="before")
    @classmethod
    def _none_to_list(cls, v: object) -> object:
        return [] if v is None else v

    @field_validator("published_at")
    @classmethod
    def _as_utc(cls, v: datetime) -> datetime:
        # Naive timestamps are assumed to be UTC
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)
