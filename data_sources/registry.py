"""
Source Registry - Ordered catalogue of market data sources.

Provides:
- One ordered list of descriptors per dataset, replacing per-caller lists
- Failover order (PRIMARY first, SYNTHETIC last)
- Disabled placeholders for exchanges without a transform yet
- No downstream dependency on specific providers

The registry is immutable: build a new one to change the source set.
"""

import logging
import random
from typing import Any, Iterable, Iterator, Optional

from core.config import AppConfig, get_config
from data_sources.exceptions import ConfigurationError
from data_sources.models import Dataset, SourceDescriptor, SourceKind
from data_sources.providers import (
    binance,
    coincap,
    coingecko,
    coinpaprika,
    cryptocompare,
    kucoin,
    synthetic,
)


logger = logging.getLogger(__name__)


# Listed for visibility; no transform implemented, never attempted
PLACEHOLDER_EXCHANGES: tuple[tuple[str, str, str], ...] = (
    ("gateio", "Gate.io", "https://data.gateapi.io/api2/1/marketlist"),
    ("bybit", "Bybit", "https://api.bybit.com/v5/market/tickers?category=spot"),
    ("kraken", "Kraken", "https://api.kraken.com/0/public/Ticker"),
    ("huobi", "Huobi", "https://api.huobi.pro/market/tickers"),
    ("bitfinex", "Bitfinex", "https://api-pub.bitfinex.com/v2/tickers?symbols=tBTCUSD,tETHUSD"),
    ("mexc", "MEXC", "https://api.mexc.com/api/v3/ticker/24hr"),
    ("okx", "OKX", "https://www.okx.com/api/v5/market/tickers?instType=SPOT"),
)


class SourceRegistry:
    """
    Ordered, immutable collection of source descriptors.

    Usage:
        registry = default_market_registry(config)
        for descriptor in registry.active():
            result = await gateway.fetch_one(descriptor)
    """

    def __init__(self, descriptors: Iterable[SourceDescriptor], dataset: Dataset = Dataset.MARKET) -> None:
        self._descriptors: tuple[SourceDescriptor, ...] = tuple(descriptors)
        self._dataset = dataset

        seen: set[str] = set()
        for descriptor in self._descriptors:
            if descriptor.name in seen:
                raise ConfigurationError(
                    f"Duplicate source name '{descriptor.name}'",
                    source_name=descriptor.name,
                    config_key="name",
                )
            seen.add(descriptor.name)
            if descriptor.kind is not SourceKind.SYNTHETIC and descriptor.enabled and descriptor.endpoint_builder is None:
                raise ConfigurationError(
                    f"Source '{descriptor.name}' has no endpoint builder",
                    source_name=descriptor.name,
                    config_key="endpoint_builder",
                )

        self._by_name = {d.name: d for d in self._descriptors}

    @property
    def dataset(self) -> Dataset:
        return self._dataset

    @property
    def descriptors(self) -> tuple[SourceDescriptor, ...]:
        return self._descriptors

    def active(self) -> tuple[SourceDescriptor, ...]:
        """Enabled real sources in failover order."""
        return tuple(d for d in self._descriptors if d.is_usable and not d.is_synthetic)

    def synthetic(self) -> Optional[SourceDescriptor]:
        """The first synthetic fallback, if any."""
        for descriptor in self._descriptors:
            if descriptor.is_synthetic and descriptor.is_usable:
                return descriptor
        return None

    def get(self, name: str) -> Optional[SourceDescriptor]:
        return self._by_name.get(name)

    def names(self) -> list[str]:
        return [d.name for d in self._descriptors]

    def restricted_to(self, names: Iterable[str]) -> "SourceRegistry":
        """
        Keep only the named real sources, in registry order.

        Synthetic descriptors are always kept so the market registry
        never loses its last-resort fallback. Unknown names are logged
        and ignored.
        """
        wanted = set(names)
        unknown = wanted - set(self._by_name)
        if unknown:
            logger.warning(f"Ignoring unknown sources in enabled_sources: {sorted(unknown)}")
        return SourceRegistry(
            (d for d in self._descriptors if d.is_synthetic or d.name in wanted),
            dataset=self._dataset,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "dataset": self._dataset.value,
            "sources": [d.to_dict() for d in self._descriptors],
        }

    def __len__(self) -> int:
        return len(self._descriptors)

    def __iter__(self) -> Iterator[SourceDescriptor]:
        return iter(self._descriptors)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __repr__(self) -> str:
        return f"<SourceRegistry(dataset={self._dataset.value}, sources={self.names()})>"


def placeholder_source(name: str, display_name: str, url: str) -> SourceDescriptor:
    return SourceDescriptor(
        name=name,
        display_name=display_name,
        endpoint_builder=lambda params, _url=url: _url,
        transform=None,
        kind=SourceKind.SECONDARY,
        dataset=Dataset.MARKET,
        enabled=False,
    )


def default_market_registry(
    config: Optional[AppConfig] = None,
    rng: Optional[random.Random] = None,
) -> SourceRegistry:
    """
    Build the standard market registry.

    Order: CoinGecko (primary), the keyless secondaries, disabled
    exchange placeholders, then the synthetic generator.
    """
    config = config if config is not None else get_config()
    min_records = config.min_market_assets

    descriptors = [
        coingecko.market_source(api_key=config.coingecko_api_key, min_records=min_records),
        coincap.market_source(min_records=min_records),
        coinpaprika.market_source(min_records=min_records),
        cryptocompare.market_source(min_records=min_records),
        binance.market_source(min_records=min_records),
        kucoin.market_source(limit=config.market_limit, min_records=min_records),
    ]
    descriptors.extend(placeholder_source(*entry) for entry in PLACEHOLDER_EXCHANGES)
    descriptors.append(
        synthetic.market_source(rng=rng, limit=config.market_limit, min_records=min_records)
    )

    registry = SourceRegistry(descriptors, dataset=Dataset.MARKET)
    if config.enabled_sources:
        registry = registry.restricted_to(config.enabled_sources)

    if registry.synthetic() is None:
        raise ConfigurationError("Market registry requires a synthetic fallback source")

    logger.info(f"Market registry ready: {[d.name for d in registry.active()]} (+synthetic)")
    return registry


def default_history_registry(config: Optional[AppConfig] = None) -> SourceRegistry:
    """Build the standard price-history registry."""
    config = config if config is not None else get_config()
    min_records = config.min_history_points

    return SourceRegistry(
        [
            coingecko.history_source(api_key=config.coingecko_api_key, min_records=min_records),
            binance.history_source(min_records=min_records),
            coincap.history_source(min_records=min_records),
        ],
        dataset=Dataset.HISTORY,
    )
