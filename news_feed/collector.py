"""
News Collector - Cached, best-effort headline aggregation.

Each refresh samples a handful of RSS feeds at random (spreading load
across publishers) plus the CryptoCompare feed, fetches them
concurrently through the shared gateway and merges the results.

News is optional context: total failure degrades to the stale entry,
then to an empty tuple. It never raises.
"""

import asyncio
import logging
import random
from typing import Any, Optional

from core.config import AppConfig, get_config
from data_sources.cache import FetchCache
from data_sources.gateway import FetchGateway
from data_sources.models import Dataset, NewsItem, SourceDescriptor, SourceKind
from data_sources.registry import SourceRegistry
from news_feed.sources import cryptocompare_news_source, default_rss_sources


logger = logging.getLogger(__name__)


NEWS_CACHE_KEY = "news"


def default_news_registry() -> SourceRegistry:
    return SourceRegistry(
        [cryptocompare_news_source(), *default_rss_sources()],
        dataset=Dataset.NEWS,
    )


def merge_news(batches: list[tuple[NewsItem, ...]]) -> tuple[NewsItem, ...]:
    """Flatten, drop repeated titles (first seen wins) and sort newest first."""
    seen: set[str] = set()
    merged = []
    for batch in batches:
        for item in batch:
            key = item.title.strip().lower()
            if key in seen:
                continue
            seen.add(key)
            merged.append(item)
    merged.sort(key=lambda item: item.published_at, reverse=True)
    return tuple(merged)


class NewsCollector:
    """
    Fetches and caches the merged headline list.

    Usage:
        collector = NewsCollector(gateway, cache)
        news = await collector.fetch_news()
    """

    def __init__(
        self,
        gateway: FetchGateway,
        cache: Optional[FetchCache] = None,
        registry: Optional[SourceRegistry] = None,
        config: Optional[AppConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._config = config if config is not None else get_config()
        self._gateway = gateway
        self._cache = cache if cache is not None else FetchCache()
        self._registry = registry if registry is not None else default_news_registry()
        self._rng = rng if rng is not None else random.Random()
        self._inflight: Optional[asyncio.Task] = None
        self._last_sources: list[str] = []

    @property
    def registry(self) -> SourceRegistry:
        return self._registry

    @property
    def cache(self) -> FetchCache:
        return self._cache

    def select_sources(self) -> list[SourceDescriptor]:
        """Always-on primary feeds plus a random sample of the rest."""
        active = self._registry.active()
        primary = [d for d in active if d.kind is SourceKind.PRIMARY]
        rest = [d for d in active if d not in primary]
        sample_size = min(self._config.news_sample_size, len(rest))
        return primary + self._rng.sample(rest, sample_size)

    async def fetch_news(self, force: bool = False) -> tuple[NewsItem, ...]:
        """
        Return the merged headline list.

        Args:
            force: Skip the fresh-cache check
        """
        if not force:
            entry = self._cache.get_fresh(NEWS_CACHE_KEY)
            if entry is not None:
                return entry.payload

        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.ensure_future(self._collect())
        return await asyncio.shield(self._inflight)

    async def _collect(self) -> tuple[NewsItem, ...]:
        selected = self.select_sources()
        self._last_sources = [d.name for d in selected]

        results = await asyncio.gather(*(
            self._gateway.fetch_one(d, deadline_ms=self._config.news_deadline_ms)
            for d in selected
        ))

        successes = [r for r in results if r.ok]
        failed = [r.source_name for r in results if not r.ok]
        if failed:
            logger.warning(f"News feeds failed: {failed}")

        if not successes:
            stale = self._cache.get_stale(NEWS_CACHE_KEY)
            if stale is not None:
                return stale.payload
            logger.warning("No news available, continuing without headlines")
            return ()

        news = merge_news([r.payload for r in successes])
        self._cache.put(NEWS_CACHE_KEY, news, self._config.news_ttl_seconds)
        logger.info(f"Refreshed news: {len(news)} items from {len(successes)}/{len(selected)} feeds")
        return news

    def get_stats(self) -> dict[str, Any]:
        entry = self._cache.get(NEWS_CACHE_KEY)
        return {
            "feeds": len(self._registry),
            "sample_size": self._config.news_sample_size,
            "last_sources": list(self._last_sources),
            "cached_items": len(entry.payload) if entry else 0,
        }
