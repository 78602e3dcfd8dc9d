"""
CoinGecko Market Data Source - Public API adapter.

Richest free source: prices, 1h/24h/7d change, market cap and a 7d
sparkline in one call. Free tier is aggressively rate limited, which
is why it never stands alone in the registry.

Endpoints used:
- /coins/markets - Top assets by market cap
- /coins/{id}/market_chart - Price history
"""

from typing import Any, Optional

from data_sources.models import (
    Dataset,
    FetchParams,
    HistoryPoint,
    NormalizedAsset,
    SourceDescriptor,
    SourceKind,
    Timeframe,
)
from data_sources.providers.parsing import require_list


BASE_URL = "https://api.coingecko.com/api/v3"
SOURCE_NAME = "coingecko"

# Symbols whose CoinGecko id is not simply the lowercased name
SYMBOL_TO_ID: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "SOL": "solana",
    "XRP": "ripple",
    "ADA": "cardano",
    "AVAX": "avalanche-2",
    "DOGE": "dogecoin",
    "DOT": "polkadot",
    "TRX": "tron",
    "LINK": "chainlink",
    "MATIC": "matic-network",
    "LTC": "litecoin",
    "BCH": "bitcoin-cash",
    "ATOM": "cosmos",
    "XMR": "monero",
    "ETC": "ethereum-classic",
    "XLM": "stellar",
    "FIL": "filecoin",
    "HBAR": "hedera-hashgraph",
    "VET": "vechain",
    "BNB": "binancecoin",
    "USDT": "tether",
    "USDC": "usd-coin",
}


def coin_id_for(params: FetchParams) -> str:
    """Resolve the CoinGecko coin id from explicit id or symbol."""
    if params.coin_id:
        return params.coin_id
    if params.symbol:
        return SYMBOL_TO_ID.get(params.symbol.upper(), params.symbol.lower())
    raise ValueError("coin_id or symbol is required for history")


def markets_url(params: FetchParams) -> str:
    return (
        f"{BASE_URL}/coins/markets?vs_currency=usd&order=market_cap_desc"
        f"&per_page={params.limit}&page=1&sparkline=true"
        f"&price_change_percentage=1h,24h,7d"
    )


def market_chart_url(params: FetchParams) -> str:
    timeframe = params.timeframe or Timeframe.D1
    return (
        f"{BASE_URL}/coins/{coin_id_for(params)}/market_chart"
        f"?vs_currency=usd&days={timeframe.spec.coingecko_days}"
    )


def transform_markets(data: Any) -> list[NormalizedAsset]:
    """Normalize /coins/markets."""
    result = []
    for coin in require_list(data, "coins"):
        sparkline = (coin.get("sparkline_in_7d") or {}).get("price") or ()
        result.append(NormalizedAsset(
            id=coin["id"],
            symbol=coin["symbol"],
            name=coin["name"],
            price=coin.get("current_price"),
            change_24h=coin.get("price_change_percentage_24h"),
            volume_24h=coin.get("total_volume"),
            market_cap=coin.get("market_cap"),
            sparkline=tuple(sparkline),
            source_name=SOURCE_NAME,
            rank=coin.get("market_cap_rank"),
            change_1h=coin.get("price_change_percentage_1h_in_currency"),
            change_7d=coin.get("price_change_percentage_7d_in_currency"),
            image_url=coin.get("image"),
        ))
    return result


def transform_market_chart(data: Any) -> list[HistoryPoint]:
    """Normalize /coins/{id}/market_chart into (timestamp, price) points."""
    prices = require_list(data["prices"], "price points")
    volumes = {int(ts): vol for ts, vol in data.get("total_volumes") or []}
    return [
        HistoryPoint(timestamp=ts, price=price, volume=volumes.get(int(ts)))
        for ts, price in prices
    ]


def _headers(api_key: Optional[str]) -> tuple[tuple[str, str], ...]:
    # Demo (free) keys use x-cg-demo-api-key, Pro keys x-cg-pro-api-key
    return (("x-cg-demo-api-key", api_key),) if api_key else ()


def market_source(api_key: Optional[str] = None, min_records: int = 5) -> SourceDescriptor:
    return SourceDescriptor(
        name=SOURCE_NAME,
        display_name="CoinGecko",
        endpoint_builder=markets_url,
        transform=transform_markets,
        kind=SourceKind.PRIMARY,
        dataset=Dataset.MARKET,
        min_records=min_records,
        headers=_headers(api_key),
    )


def history_source(api_key: Optional[str] = None, min_records: int = 1) -> SourceDescriptor:
    return SourceDescriptor(
        name=f"{SOURCE_NAME}_history",
        display_name="CoinGecko Market Chart",
        endpoint_builder=market_chart_url,
        transform=transform_market_chart,
        kind=SourceKind.PRIMARY,
        dataset=Dataset.HISTORY,
        min_records=min_records,
        headers=_headers(api_key),
    )
