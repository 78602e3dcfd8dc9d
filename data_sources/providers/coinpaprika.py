"""
CoinPaprika Market Data Source - Public API adapter.

Keyless. Quotes are nested under quotes.USD.
"""

from typing import Any

from data_sources.models import (
    Dataset,
    FetchParams,
    NormalizedAsset,
    SourceDescriptor,
    SourceKind,
)
from data_sources.providers.parsing import require_list


BASE_URL = "https://api.coinpaprika.com/v1"
SOURCE_NAME = "coinpaprika"
LOGO_URL = "https://static.coinpaprika.com/coin/{id}/logo.png"


def tickers_url(params: FetchParams) -> str:
    return f"{BASE_URL}/tickers?limit={params.limit}"


def transform_tickers(data: Any) -> list[NormalizedAsset]:
    """Normalize /v1/tickers."""
    result = []
    for coin in require_list(data, "tickers"):
        usd = coin["quotes"]["USD"]
        result.append(NormalizedAsset(
            id=coin["id"],
            symbol=coin["symbol"],
            name=coin["name"],
            price=usd.get("price"),
            change_24h=usd.get("percent_change_24h"),
            volume_24h=usd.get("volume_24h"),
            market_cap=usd.get("market_cap"),
            source_name=SOURCE_NAME,
            rank=coin.get("rank"),
            change_1h=usd.get("percent_change_1h"),
            change_7d=usd.get("percent_change_7d"),
            image_url=LOGO_URL.format(id=coin["id"]),
        ))
    return result


def market_source(min_records: int = 5) -> SourceDescriptor:
    return SourceDescriptor(
        name=SOURCE_NAME,
        display_name="CoinPaprika",
        endpoint_builder=tickers_url,
        transform=transform_tickers,
        kind=SourceKind.SECONDARY,
        dataset=Dataset.MARKET,
        min_records=min_records,
    )
