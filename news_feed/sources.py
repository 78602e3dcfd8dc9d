"""
News Sources - Headline feeds used as sentiment context.

SAFETY: Headlines are CONTEXT ONLY - they shift scores, never
produce a signal by themselves.

Two kinds of upstream:
- CryptoCompare news API (JSON, epoch-second timestamps)
- 18 publisher RSS feeds read through the rss2json bridge, which
  converts RSS to JSON and sidesteps XML parsing
"""

from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import quote, urlparse

from data_sources.models import Dataset, FetchParams, NewsItem, SourceDescriptor, SourceKind
from data_sources.providers.parsing import require_list, to_float


CRYPTOCOMPARE_NEWS_URL = "https://min-api.cryptocompare.com/data/v2/news/?lang=EN"
RSS_BRIDGE_URL = "https://api.rss2json.com/v1/api.json?rss_url="

RSS_FEED_URLS: tuple[str, ...] = (
    "https://cointelegraph.com/rss",
    "https://www.coindesk.com/arc/outboundfeeds/rss/",
    "https://decrypt.co/feed",
    "https://cryptopotato.com/feed/",
    "https://news.bitcoin.com/feed/",
    "https://theblockcrypto.com/rss",
    "https://cryptoslate.com/feed/",
    "https://beincrypto.com/feed/",
    "https://dailyhodl.com/feed/",
    "https://cryptobriefing.com/feed/",
    "https://u.today/rss",
    "https://crypto.news/feed/",
    "https://blockworks.co/feed",
    "https://protos.com/feed/",
    "https://ambcrypto.com/feed/",
    "https://zycrypto.com/feed/",
    "https://coinspeaker.com/feed/",
    "https://nulltx.com/feed/",
)

# rss2json reports pubDate in UTC as "YYYY-MM-DD HH:MM:SS"
RSS_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def feed_name(feed_url: str) -> str:
    """Stable source name for a feed, e.g. 'rss:cointelegraph.com'."""
    host = urlparse(feed_url).netloc
    if host.startswith("www."):
        host = host[len("www."):]
    return f"rss:{host}"


def _parse_rss_date(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.strptime(str(value), RSS_DATE_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def make_rss_transform(source_name: str):
    """Build the rss2json transform for one feed."""

    def transform_rss(data: Any) -> list[NewsItem]:
        if data.get("status") != "ok":
            raise ValueError(f"rss2json status {data.get('status')!r}: {data.get('message', '')}")
        result = []
        for item in require_list(data.get("items"), "feed items"):
            title = (item.get("title") or "").strip()
            published_at = _parse_rss_date(item.get("pubDate"))
            # Undated items cannot be ordered; drop them
            if not title or published_at is None:
                continue
            result.append(NewsItem(
                title=title,
                published_at=published_at,
                source_url=item.get("link") or "",
                source_name=source_name,
            ))
        return result

    return transform_rss


def transform_cryptocompare_news(data: Any) -> list[NewsItem]:
    """Normalize /data/v2/news."""
    result = []
    for item in require_list(data["Data"], "articles"):
        title = (item.get("title") or "").strip()
        published_on = to_float(item.get("published_on"))
        if not title or published_on is None:
            continue
        result.append(NewsItem(
            title=title,
            published_at=datetime.fromtimestamp(published_on, tz=timezone.utc),
            source_url=item.get("url") or "",
            source_name=(item.get("source_info") or {}).get("name") or "cryptocompare",
        ))
    return result


def rss_source(feed_url: str) -> SourceDescriptor:
    name = feed_name(feed_url)
    bridged = RSS_BRIDGE_URL + quote(feed_url, safe="")

    def bridge_url(params: FetchParams) -> str:
        return bridged

    return SourceDescriptor(
        name=name,
        display_name=urlparse(feed_url).netloc,
        endpoint_builder=bridge_url,
        transform=make_rss_transform(name),
        kind=SourceKind.SECONDARY,
        dataset=Dataset.NEWS,
        min_records=1,
    )


def cryptocompare_news_source() -> SourceDescriptor:
    def news_url(params: FetchParams) -> str:
        return CRYPTOCOMPARE_NEWS_URL

    return SourceDescriptor(
        name="cryptocompare_news",
        display_name="CryptoCompare News",
        endpoint_builder=news_url,
        transform=transform_cryptocompare_news,
        kind=SourceKind.PRIMARY,
        dataset=Dataset.NEWS,
        min_records=1,
    )


def default_rss_sources() -> list[SourceDescriptor]:
    return [rss_source(url) for url in RSS_FEED_URLS]
