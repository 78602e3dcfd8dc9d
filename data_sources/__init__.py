"""
Data Sources Package - Fail-safe market data acquisition layer.

Features:
- One ordered registry of interchangeable upstream providers
- Normalized output format across all sources
- Sequential rotation or parallel race failover
- Cache-first reads with stale and synthetic fallback
- No downstream dependency on specific providers

Quick Start:
    from data_sources import (
        FailoverCoordinator,
        FailoverStrategy,
        FetchGateway,
        Timeframe,
        default_market_registry,
    )

    async def main():
        async with FetchGateway() as gateway:
            coordinator = FailoverCoordinator(default_market_registry(), gateway)

            assets = await coordinator.refresh(strategy=FailoverStrategy.RACE)
            for asset in assets:
                print(f"{asset.symbol}: {asset.price} ({asset.change_24h}%) via {asset.source_name}")

            history = await coordinator.fetch_history("BTC", Timeframe.W1)

Adding New Providers:
    1. Create a module under data_sources/providers
    2. Implement an endpoint builder and a pure transform to NormalizedAsset
    3. Add its SourceDescriptor to default_market_registry()
    4. No changes needed to the coordinator or the scoring engine
"""

from data_sources.cache import CacheEntry, FetchCache
from data_sources.coordinator import (
    DEFAULT_CACHE_KEY,
    FailoverCoordinator,
    FailoverStrategy,
    history_cache_key,
)
from data_sources.exceptions import (
    AllSourcesExhaustedError,
    BadStatusError,
    ConfigurationError,
    DataSourceError,
    FetchError,
    FetchErrorKind,
    FetchTimeoutError,
    InsufficientDataError,
    MalformedPayloadError,
    TransportError,
)
from data_sources.gateway import FetchGateway
from data_sources.models import (
    Dataset,
    FetchParams,
    FetchResult,
    HistoryPoint,
    NewsItem,
    NormalizedAsset,
    SourceDescriptor,
    SourceKind,
    SourceStats,
    Timeframe,
)
from data_sources.registry import (
    SourceRegistry,
    default_history_registry,
    default_market_registry,
)


__version__ = "1.0.0"

__all__ = [
    # Models
    "NormalizedAsset",
    "HistoryPoint",
    "NewsItem",
    "Timeframe",
    "SourceDescriptor",
    "SourceKind",
    "SourceStats",
    "Dataset",
    "FetchParams",
    "FetchResult",

    # Exceptions
    "DataSourceError",
    "FetchError",
    "FetchErrorKind",
    "FetchTimeoutError",
    "BadStatusError",
    "TransportError",
    "MalformedPayloadError",
    "InsufficientDataError",
    "AllSourcesExhaustedError",
    "ConfigurationError",

    # Acquisition
    "FetchGateway",
    "FetchCache",
    "CacheEntry",
    "FailoverCoordinator",
    "FailoverStrategy",
    "DEFAULT_CACHE_KEY",
    "history_cache_key",

    # Registry
    "SourceRegistry",
    "default_market_registry",
    "default_history_registry",
]
