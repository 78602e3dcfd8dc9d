"""
News Feed Package - Headline acquisition for sentiment context.
"""

from news_feed.collector import NEWS_CACHE_KEY, NewsCollector, default_news_registry, merge_news
from news_feed.sources import (
    CRYPTOCOMPARE_NEWS_URL,
    RSS_BRIDGE_URL,
    RSS_FEED_URLS,
    cryptocompare_news_source,
    default_rss_sources,
    feed_name,
    rss_source,
)


__all__ = [
    "NewsCollector",
    "NEWS_CACHE_KEY",
    "default_news_registry",
    "merge_news",
    "CRYPTOCOMPARE_NEWS_URL",
    "RSS_BRIDGE_URL",
    "RSS_FEED_URLS",
    "cryptocompare_news_source",
    "default_rss_sources",
    "feed_name",
    "rss_source",
]
