"""
CryptoCompare Market Data Source - Public API adapter.

Very reliable and CORS-open. Market cap ranking has no rank field
on this endpoint, so rank is the position in the response.

Endpoints used:
- /data/top/mktcapfull - Top assets by market cap
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


BASE_URL = "https://min-api.cryptocompare.com/data"
SOURCE_NAME = "cryptocompare"


def top_mktcap_url(params: FetchParams) -> str:
    return f"{BASE_URL}/top/mktcapfull?limit={params.limit}&tsym=USD"


def transform_top_mktcap(data: Any) -> list[NormalizedAsset]:
    """Normalize /data/top/mktcapfull."""
    result = []
    for position, entry in enumerate(require_list(data["Data"], "coins"), start=1):
        info = entry["CoinInfo"]
        raw = (entry.get("RAW") or {}).get("USD") or {}
        result.append(NormalizedAsset(
            id=str(info["Name"]).lower(),
            symbol=info["Name"],
            name=info.get("FullName") or info["Name"],
            price=to_float(raw.get("PRICE")),
            change_24h=to_float(raw.get("CHANGEPCT24HOUR")),
            volume_24h=to_amount(raw.get("VOLUME24HOURTO")),
            market_cap=to_amount(raw.get("MKTCAP")),
            source_name=SOURCE_NAME,
            rank=position,
        ))
    return result


def market_source(min_records: int = 5) -> SourceDescriptor:
    return SourceDescriptor(
        name=SOURCE_NAME,
        display_name="CryptoCompare",
        endpoint_builder=top_mktcap_url,
        transform=transform_top_mktcap,
        kind=SourceKind.SECONDARY,
        dataset=Dataset.MARKET,
        min_records=min_records,
    )
