from __future__ import annotations

import asyncio
import logging
import random
from datetime import datetime, timezone
from typing import Any

import httpx

from cryptonews.config import Settings
from cryptonews.news.images import placeholder_image
from cryptonews.news.models import Article

logger = logging.getLogger(__name__)

TRENDING_LIMIT = 5
BODY_PREVIEW_CHARS = 200

SourceOutcome = list[Article] | BaseException


class NewsClient:
    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._settings = settings
        self._rng = rng
        self._http = httpx.AsyncClient(
            timeout=settings.http_timeout,
            headers={"User-Agent": settings.user_agent, "Accept": "application/json"},
            transport=transport,
        )

    async def close(self) -> None:
        await self._http.aclose()

    async def fetch_all(self) -> list[SourceOutcome]:
        """Fire every source in parallel and wait for all of them to settle.

        One outcome per source, in source order: either its articles or the
        exception it raised. Nothing is cancelled when a source fails.
        """
        results = await asyncio.gather(
            self.fetch_cryptocompare(),
            self.fetch_coingecko_trending(),
            self.fetch_status_updates(),
            return_exceptions=True,
        )
        return list(results)

    def _placeholder(self) -> str:
        return placeholder_image(self._settings.placeholder_images, self._rng)

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        resp = await self._http.get(url, params=params or {})
        resp.raise_for_status()
        return resp.json()

    # ── CryptoCompare news ───────────────────────────────────

    async def fetch_cryptocompare(self) -> list[Article]:
        """Latest English headlines from CryptoCompare."""
        try:
            data = await self._get_json(
                self._settings.cryptocompare_url,
                params={"lang": "EN", "sortOrder": "latest"},
            )
            items = data.get("Data")
            if not items:
                return []
            articles: list[Article] = []
            for item in items:
                body = item.get("body") or ""
                source_info = item.get("source_info") or {}
                categories = item.get("categories") or ""
                articles.append(
                    Article(
                        title=item["title"],
                        description=body[:BODY_PREVIEW_CHARS] + "..." if body else "",
                        url=item.get("url", ""),
                        image_url=item.get("imageurl") or self._placeholder(),
                        source=source_info.get("name") or item.get("source") or "CryptoCompare",
                        published_at=datetime.fromtimestamp(
                            int(item["published_on"]), tz=timezone.utc
                        ),
                        categories=categories.split("|") if categories else [],
                    )
                )
            logger.info("CryptoCompare: fetched %d articles", len(articles))
            return articles
        except Exception as exc:
            logger.warning("CryptoCompare API error: %s", exc)
            return []

    # ── CoinGecko trending coins ─────────────────────────────

    async def fetch_coingecko_trending(self) -> list[Article]:
        """CoinGecko has no public news feed, so trending coins stand in for headlines."""
        try:
            data = await self._get_json(self._settings.coingecko_trending_url)
            coins = data.get("coins")
            if not coins:
                return []
            now = datetime.now(tz=timezone.utc)
            articles: list[Article] = []
            for entry in coins[:TRENDING_LIMIT]:
                coin = entry["item"]
                name = coin["name"]
                rank = coin.get("market_cap_rank") or "N/A"
                articles.append(
                    Article(
                        title=f"{name} ({coin['symbol'].upper()}) is Trending!",
                        description=(
                            f"{name} is currently trending on CoinGecko. "
                            f"Market Cap Rank: #{rank}"
                        ),
                        url=f"https://www.coingecko.com/en/coins/{coin['id']}",
                        image_url=coin.get("large") or coin.get("thumb") or self._placeholder(),
                        source="CoinGecko Trending",
                        published_at=now,
                        categories=["trending", "market"],
                    )
                )
            logger.info("CoinGecko trending: fetched %d coins", len(articles))
            return articles
        except Exception as exc:
            logger.warning("CoinGecko API error: %s", exc)
            return []

    # ── Project status updates ───────────────────────────────

    async def fetch_status_updates(self) -> list[Article]:
        """Announcements posted by crypto projects on CoinGecko."""
        try:
            data = await self._get_json(
                self._settings.status_updates_url, params={"per_page": 20}
            )
            updates = data.get("status_updates")
            if not updates:
                return []
            now = datetime.now(tz=timezone.utc)
            articles: list[Article] = []
            for update in updates:
                description = update.get("description") or ""
                project = update.get("project") or {}
                project_name = project.get("name")
                if project_name:
                    title = f"{project_name}: {description[:60] or 'Update'}..."
                else:
                    title = description[:80] or "Crypto Update"
                homepage = (project.get("links") or {}).get("homepage") or []
                image = (project.get("image") or {}).get("large")
                articles.append(
                    Article(
                        title=title,
                        description=description,
                        url=homepage[0] if homepage else "#",
                        image_url=image or self._placeholder(),
                        source=project_name or "Crypto Project",
                        published_at=update.get("created_at") or now,
                        categories=[update.get("category") or "update"],
                    )
                )
            logger.info("Status updates: fetched %d updates", len(articles))
            return articles
        except Exception as exc:
            logger.warning("Status updates API error: %s", exc)
            return []
