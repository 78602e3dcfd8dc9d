"""
KuCoin Market Data Source - Public API adapter.

/api/v1/market/allTickers returns every pair with changeRate as a
fraction (0.0123 == 1.23%).
"""

from typing import Any

from data_sources.models import (
    Dataset,
    FetchParams,
    NormalizedAsset,
    SourceDescriptor,
    SourceKind,
)
from data_sources.providers.parsing import require_list, to_amount, to_float


BASE_URL = "https://api.kucoin.com"
SOURCE_NAME = "kucoin"
QUOTE_SUFFIX = "-USDT"


def all_tickers_url(params: FetchParams) -> str:
    return f"{BASE_URL}/api/v1/market/allTickers"


def make_transform(limit: int = 20):
    """Build the allTickers transform keeping the first `limit` USDT pairs."""

    def transform_all_tickers(data: Any) -> list[NormalizedAsset]:
        tickers = require_list(data["data"]["ticker"], "tickers")
        usdt = [t for t in tickers if str(t.get("symbol", "")).endswith(QUOTE_SUFFIX)]
        result = []
        for ticker in usdt[:limit]:
            base = ticker["symbol"][: -len(QUOTE_SUFFIX)]
            change_rate = to_float(ticker.get("changeRate"))
            result.append(NormalizedAsset(
                id=ticker["symbol"].lower(),
                symbol=base,
                name=base,
                price=to_float(ticker.get("last")),
                change_24h=change_rate * 100 if change_rate is not None else None,
                volume_24h=to_amount(ticker.get("volValue")),
                market_cap=0.0,
                source_name=SOURCE_NAME,
            ))
        return result

    return transform_all_tickers


def market_source(limit: int = 20, min_records: int = 5) -> SourceDescriptor:
    return SourceDescriptor(
        name=SOURCE_NAME,
        display_name="KuCoin",
        endpoint_builder=all_tickers_url,
        transform=make_transform(limit),
        kind=SourceKind.SECONDARY,
        dataset=Dataset.MARKET,
        min_records=min_records,
    )
