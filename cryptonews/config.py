from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

DEFAULT_PLACEHOLDER_IMAGES: tuple[str, ...] = (
    "https://images.unsplash.com/photo-1518546305927-5a555bb7020d?w=400&h=200&fit=crop",
    "https://images.unsplash.com/photo-1621761191319-c6fb62004040?w=400&h=200&fit=crop",
    "https://images.unsplash.com/photo-1639762681485-074b7f938ba0?w=400&h=200&fit=crop",
    "https://images.unsplash.com/photo-1622630998477-20aa696ecb05?w=400&h=200&fit=crop",
    "https://images.unsplash.com/photo-1516245834210-c4c142787335?w=400&h=200&fit=crop",
)


@dataclass(frozen=True)
class Settings:
    # Source endpoints (no auth, fixed query params live in the client)
    cryptocompare_url: str = "https://min-api.cryptocompare.com/data/v2/news/"
    coingecko_trending_url: str = "https://api.coingecko.com/api/v3/search/trending"
    status_updates_url: str = "https://api.coingecko.com/api/v3/status_updates"

    # Auto-refresh every 5 minutes
    refresh_interval: float = 300.0
    http_timeout: float = 15.0
    user_agent: str = "Mozilla/5.0 (compatible; CryptoNews/1.0)"

    log_level: str = "INFO"

    # Tags offered by the filter bar; "all" disables category filtering
    filter_tags: list[str] = field(
        default_factory=lambda: [
            "all", "bitcoin", "ethereum", "defi", "nft", "trending", "regulation",
        ]
    )
    placeholder_images: tuple[str, ...] = DEFAULT_PLACEHOLDER_IMAGES

    @classmethod
    def from_env(cls) -> Settings:
        defaults = cls()
        tags_raw = os.environ.get("FILTER_TAGS", "")
        tags = [t.strip().lower() for t in tags_raw.split(",") if t.strip()]
        if tags and "all" not in tags:
            tags.insert(0, "all")
        return cls(
            cryptocompare_url=os.environ.get(
                "CRYPTOCOMPARE_URL", defaults.cryptocompare_url
            ),
            coingecko_trending_url=os.environ.get(
                "COINGECKO_TRENDING_URL", defaults.coingecko_trending_url
            ),
            status_updates_url=os.environ.get(
                "STATUS_UPDATES_URL", defaults.status_updates_url
            ),
            refresh_interval=float(
                os.environ.get("REFRESH_INTERVAL_SECONDS", defaults.refresh_interval)
            ),
            http_timeout=float(
                os.environ.get("HTTP_TIMEOUT_SECONDS", defaults.http_timeout)
            ),
            log_level=os.environ.get("LOG_LEVEL", defaults.log_level).upper(),
            filter_tags=tags or list(defaults.filter_tags),
        )
