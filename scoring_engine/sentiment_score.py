"""
Scoring Engine - Sentiment Score.

============================================================
RESPONSIBILITY
============================================================
Turns headline titles into sentiment context.

- Global sentiment over every headline
- Asset sentiment over headlines mentioning the asset
- Normalized to [-1, 1]

============================================================
DESIGN PRINCIPLES
============================================================
- Keyword heuristic, no NLP
- Negativity bias in the global score
- One hit per headline per polarity
- No headlines means neutral (0)

Keyword lists are fixed; output stays comparable between runs
and releases. "partership" is matched as written.

============================================================
"""

from typing import Iterable, Sequence

from data_sources.models import NewsItem, NormalizedAsset


GLOBAL_POSITIVE_KEYWORDS: tuple[str, ...] = (
    "surge", "soar", "bull", "adoption", "record", "gain", "approve", "green", "rally",
)
GLOBAL_NEGATIVE_KEYWORDS: tuple[str, ...] = (
    "crash", "plunge", "bear", "ban", "hack", "fraud", "crackdown", "slump", "drop",
)

ASSET_POSITIVE_KEYWORDS: tuple[str, ...] = (
    "launch", "partership", "upgrade", "bullish", "breakout",
)
ASSET_NEGATIVE_KEYWORDS: tuple[str, ...] = (
    "delay", "downgrade", "lawsuit", "sell-off", "resistance",
)

GLOBAL_POSITIVE_WEIGHT = 1.0
GLOBAL_NEGATIVE_WEIGHT = 1.5
GLOBAL_NORMALIZER = 10.0

ASSET_KEYWORD_WEIGHT = 2.0
ASSET_NORMALIZER = 5.0


def clamp(value: float, low: float = -1.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def _mentions(title: str, keywords: Iterable[str]) -> bool:
    return any(k in title for k in keywords)


def compute_global_sentiment(news: Sequence[NewsItem]) -> float:
    """Market-wide sentiment in [-1, 1]."""
    score = 0.0
    for item in news:
        title = item.title.lower()
        if _mentions(title, GLOBAL_POSITIVE_KEYWORDS):
            score += GLOBAL_POSITIVE_WEIGHT
        if _mentions(title, GLOBAL_NEGATIVE_KEYWORDS):
            score -= GLOBAL_NEGATIVE_WEIGHT
    return clamp(score / GLOBAL_NORMALIZER)


def filter_news_for_asset(asset: NormalizedAsset, news: Sequence[NewsItem]) -> list[NewsItem]:
    """
    Headlines whose title contains the asset symbol or name.

    Plain substring match, so short symbols over-match ("ETH" in
    "Ethena"); accepted as part of the heuristic.
    """
    symbol = asset.symbol.lower()
    name = asset.name.lower()
    return [item for item in news if symbol in item.title.lower() or name in item.title.lower()]


def compute_asset_sentiment(asset_news: Sequence[NewsItem]) -> float:
    """Asset-specific sentiment in [-1, 1]; 0 without headlines."""
    if not asset_news:
        return 0.0
    score = 0.0
    for item in asset_news:
        title = item.title.lower()
        if _mentions(title, ASSET_POSITIVE_KEYWORDS):
            score += ASSET_KEYWORD_WEIGHT
        if _mentions(title, ASSET_NEGATIVE_KEYWORDS):
            score -= ASSET_KEYWORD_WEIGHT
    return clamp(score / ASSET_NORMALIZER)
