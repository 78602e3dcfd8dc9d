"""
Providers package - Per-upstream endpoint builders and transforms.

Each module exposes URL builders, pure transforms from raw JSON to
normalized records, and factories returning SourceDescriptors.
"""

from data_sources.providers import (
    binance,
    coincap,
    coingecko,
    coinpaprika,
    cryptocompare,
    kucoin,
    synthetic,
)


__all__ = [
    "binance",
    "coincap",
    "coingecko",
    "coinpaprika",
    "cryptocompare",
    "kucoin",
    "synthetic",
]
