"""
Binance Market Data Source - Public API adapter.

Spot public endpoints, no authentication required.

Endpoints used:
- /api/v3/ticker/24hr - 24h ticker for every pair
- /api/v3/klines - Kline/candlestick data (price history)

Rate limits:
- 1200 request weight/minute, IP-based
- ticker/24hr without a symbol costs 40 weight
"""

from typing import Any

from data_sources.models import (
    Dataset,
    FetchParams,
    HistoryPoint,
    NormalizedAsset,
    SourceDescriptor,
    SourceKind,
    Timeframe,
)
from data_sources.providers.parsing import require_list, to_amount, to_float


BASE_URL = "https://api.binance.com"
SOURCE_NAME = "binance"
QUOTE_ASSET = "USDT"
KLINE_LIMIT = 100

# The 24hr ticker returns every pair; keep the majors only
TOP_PAIRS: tuple[str, ...] = (
    "BTCUSDT", "ETHUSDT", "BNBUSDT", "SOLUSDT", "XRPUSDT", "ADAUSDT",
    "DOGEUSDT", "AVAXUSDT", "TRXUSDT", "DOTUSDT", "LINKUSDT", "MATICUSDT",
    "LTCUSDT", "BCHUSDT", "ATOMUSDT", "XMRUSDT", "ETCUSDT", "XLMUSDT",
)


def ticker_url(params: FetchParams) -> str:
    return f"{BASE_URL}/api/v3/ticker/24hr"


def klines_url(params: FetchParams) -> str:
    if not params.symbol:
        raise ValueError("symbol is required for klines")
    timeframe = params.timeframe or Timeframe.D1
    pair = f"{params.symbol.upper()}{QUOTE_ASSET}"
    return (
        f"{BASE_URL}/api/v3/klines?symbol={pair}"
        f"&interval={timeframe.spec.binance_interval}&limit={KLINE_LIMIT}"
    )


def transform_ticker(data: Any) -> list[NormalizedAsset]:
    """Normalize /api/v3/ticker/24hr, keeping TOP_PAIRS in their listed order."""
    by_pair = {t.get("symbol"): t for t in require_list(data, "tickers")}
    result = []
    for pair in TOP_PAIRS:
        ticker = by_pair.get(pair)
        if ticker is None:
            continue
        base = pair[: -len(QUOTE_ASSET)]
        result.append(NormalizedAsset(
            id=pair.lower(),
            symbol=base,
            name=base,
            price=to_float(ticker.get("lastPrice")),
            change_24h=to_float(ticker.get("priceChangePercent")),
            volume_24h=to_amount(ticker.get("quoteVolume")),
            market_cap=0.0,  # Not provided
            source_name=SOURCE_NAME,
        ))
    return result


def transform_klines(data: Any) -> list[HistoryPoint]:
    """Normalize klines: [open_time, open, high, low, close, volume, ...]."""
    return [
        HistoryPoint(timestamp=kline[0], price=to_float(kline[4]), volume=to_float(kline[5]))
        for kline in require_list(data, "klines")
    ]


def market_source(min_records: int = 5) -> SourceDescriptor:
    return SourceDescriptor(
        name=SOURCE_NAME,
        display_name="Binance Spot",
        endpoint_builder=ticker_url,
        transform=transform_ticker,
        kind=SourceKind.SECONDARY,
        dataset=Dataset.MARKET,
        min_records=min_records,
    )


def history_source(min_records: int = 1) -> SourceDescriptor:
    return SourceDescriptor(
        name=f"{SOURCE_NAME}_klines",
        display_name="Binance Klines",
        endpoint_builder=klines_url,
        transform=transform_klines,
        kind=SourceKind.SECONDARY,
        dataset=Dataset.HISTORY,
        min_records=min_records,
    )
