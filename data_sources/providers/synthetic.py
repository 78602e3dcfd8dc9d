"""
Synthetic Market Data Source - Local generator, no network.

Last line of defence: when every real source has failed the
coordinator still returns a schema-valid batch built here. Values are
plausible, not real, and every record is tagged with this source's
name so the presentation layer can flag it.
"""

import random
from typing import Any, Optional

from data_sources.models import (
    Dataset,
    HistoryPoint,
    NormalizedAsset,
    SourceDescriptor,
    SourceKind,
    Timeframe,
)


SOURCE_NAME = "synthetic"
IMAGE_URL = "https://assets.coingecko.com/coins/images/{image}"

# (symbol, name, image path)
SYNTHETIC_UNIVERSE: tuple[tuple[str, str, str], ...] = (
    ("BTC", "Bitcoin", "1/small/bitcoin.png"),
    ("ETH", "Ethereum", "279/small/ethereum.png"),
    ("SOL", "Solana", "4128/small/solana.png"),
    ("XRP", "Ripple", "44/small/xrp-symbol-white-128.png"),
    ("ADA", "Cardano", "975/small/cardano.png"),
    ("AVAX", "Avalanche", "12559/small/Avalanche_Circle_RedWhite_Trans.png"),
    ("DOGE", "Dogecoin", "5/small/dogecoin.png"),
    ("DOT", "Polkadot", "12171/small/polkadot.png"),
    ("TRX", "Tron", "1094/small/tron-logo.png"),
    ("LINK", "Chainlink", "877/small/chainlink-new-logo.png"),
    ("MATIC", "Polygon", "4713/small/matic-token-icon.png"),
    ("LTC", "Litecoin", "2/small/litecoin.png"),
    ("BCH", "Bitcoin Cash", "780/small/bitcoin-cash-circle.png"),
    ("ATOM", "Cosmos", "1481/small/cosmos_hub.png"),
    ("XMR", "Monero", "69/small/monero_logo.png"),
    ("ETC", "Ethereum Classic", "453/small/ethereum-classic-logo.png"),
    ("XLM", "Stellar", "100/small/Stellar_symbol_black_RGB.png"),
    ("FIL", "Filecoin", "12817/small/filecoin.png"),
    ("HBAR", "Hedera", "3688/small/hbar.png"),
    ("VET", "VeChain", "1167/small/VET_Token_Icon.png"),
)

# Anchors for well-known assets; everything else is drawn in [10, 110)
BASE_PRICES: dict[str, float] = {
    "BTC": 65000.0,
    "ETH": 3500.0,
}

DEFAULT_HISTORY_BASE_PRICE = 1000.0
SUPPLY = 19_000_000
SPARKLINE_POINTS = 24


def make_market_transform(rng: Optional[random.Random] = None, limit: int = 20):
    """Build the synthetic top-assets generator; ignores its input."""
    rng = rng if rng is not None else random.Random()

    def generate_markets(_raw: Any = None) -> list[NormalizedAsset]:
        result = []
        for rank, (symbol, name, image) in enumerate(SYNTHETIC_UNIVERSE[:limit], start=1):
            price = BASE_PRICES.get(symbol) or rng.random() * 100 + 10
            sparkline = tuple(
                price * (1 + (rng.random() * 0.1 - 0.05)) for _ in range(SPARKLINE_POINTS)
            )
            result.append(NormalizedAsset(
                id=name.lower().replace(" ", "-"),
                symbol=symbol,
                name=name,
                price=price,
                change_24h=rng.random() * 10 - 4,
                volume_24h=price * 500_000,
                market_cap=price * SUPPLY,
                sparkline=sparkline,
                source_name=SOURCE_NAME,
                rank=rank,
                change_1h=rng.random() * 2 - 1,
                change_7d=rng.random() * 15 - 7,
                image_url=IMAGE_URL.format(image=image),
            ))
        return result

    return generate_markets


def market_source(
    rng: Optional[random.Random] = None,
    limit: int = 20,
    min_records: int = 5,
) -> SourceDescriptor:
    return SourceDescriptor(
        name=SOURCE_NAME,
        display_name="Synthetic Market Generator",
        endpoint_builder=None,
        transform=make_market_transform(rng, limit),
        kind=SourceKind.SYNTHETIC,
        dataset=Dataset.MARKET,
        min_records=min_records,
    )


def history_base_price(symbol: str) -> float:
    return BASE_PRICES.get(symbol.upper(), DEFAULT_HISTORY_BASE_PRICE)


def random_walk_history(
    base_price: float,
    timeframe: Timeframe,
    now_ms: int,
    rng: Optional[random.Random] = None,
) -> list[HistoryPoint]:
    """
    Generate a random-walk price path ending at now_ms.

    Each step moves the price by a uniform -2%..+2%; step count and
    spacing come from the timeframe. Multiplicative steps keep the
    price positive.
    """
    rng = rng if rng is not None else random.Random()
    spec = timeframe.spec
    price = base_price if base_price > 0 else DEFAULT_HISTORY_BASE_PRICE
    points = []
    for i in range(spec.synthetic_steps, -1, -1):
        price = price * (1 + (rng.random() * 0.04 - 0.02))
        points.append(HistoryPoint(timestamp=now_ms - i * spec.synthetic_step_ms, price=price))
    return points
