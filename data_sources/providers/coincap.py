"""
CoinCap Market Data Source - Public API adapter.

Fast, keyless, CORS-friendly. All numeric fields arrive as strings.

Endpoints used:
- /v2/assets - Top assets
- /v2/assets/{id}/history - Price history
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
from data_sources.providers.parsing import require_list, to_amount, to_float, to_int


BASE_URL = "https://api.coincap.io/v2"
SOURCE_NAME = "coincap"
ICON_URL = "https://assets.coincap.io/assets/icons/{symbol}@2x.png"


def assets_url(params: FetchParams) -> str:
    return f"{BASE_URL}/assets?limit={params.limit}"


def history_url(params: FetchParams) -> str:
    # CoinCap ids are lowercase names ("bitcoin"), not symbols
    asset_id = params.coin_id or (params.symbol or "").lower()
    if not asset_id:
        raise ValueError("coin_id or symbol is required for history")
    timeframe = params.timeframe or Timeframe.D1
    return f"{BASE_URL}/assets/{asset_id}/history?interval={timeframe.spec.coincap_interval}"


def transform_assets(data: Any) -> list[NormalizedAsset]:
    """Normalize /v2/assets."""
    result = []
    for coin in require_list(data["data"], "assets"):
        result.append(NormalizedAsset(
            id=coin["id"],
            symbol=coin["symbol"],
            name=coin["name"],
            price=to_float(coin.get("priceUsd")),
            change_24h=to_float(coin.get("changePercent24Hr")),
            volume_24h=to_amount(coin.get("volumeUsd24Hr")),
            market_cap=to_amount(coin.get("marketCapUsd")),
            source_name=SOURCE_NAME,
            rank=to_int(coin.get("rank")),
            image_url=ICON_URL.format(symbol=str(coin["symbol"]).lower()),
        ))
    return result


def transform_history(data: Any) -> list[HistoryPoint]:
    """Normalize /v2/assets/{id}/history."""
    return [
        HistoryPoint(timestamp=point["time"], price=to_float(point.get("priceUsd")))
        for point in require_list(data["data"], "history points")
    ]


def market_source(min_records: int = 5) -> SourceDescriptor:
    return SourceDescriptor(
        name=SOURCE_NAME,
        display_name="CoinCap",
        endpoint_builder=assets_url,
        transform=transform_assets,
        kind=SourceKind.SECONDARY,
        dataset=Dataset.MARKET,
        min_records=min_records,
    )


def history_source(min_records: int = 1) -> SourceDescriptor:
    return SourceDescriptor(
        name=f"{SOURCE_NAME}_history",
        display_name="CoinCap History",
        endpoint_builder=history_url,
        transform=transform_history,
        kind=SourceKind.SECONDARY,
        dataset=Dataset.HISTORY,
        min_records=min_records,
    )
