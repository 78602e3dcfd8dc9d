"""
Shared fixtures and fakes for the test suite.

============================================================
FAKES
============================================================
- FakeSession / FakeResponse: stand in for aiohttp so the real
  FetchGateway request path runs without a network
- ScriptedGateway: per-source scripted outcomes and delays for
  coordinator tests; records call order and cancellations

============================================================
"""

import asyncio
import json
import random
from datetime import datetime, timezone
from typing import Any, Optional

import aiohttp
import pytest

from core.clock import MockClock
from core.config import AppConfig
from dashboard.services import RadarService
from data_sources.cache import FetchCache
from data_sources.coordinator import FailoverCoordinator
from data_sources.exceptions import FetchError
from data_sources.models import (
    Dataset,
    FetchParams,
    FetchResult,
    NewsItem,
    NormalizedAsset,
    SourceDescriptor,
    SourceKind,
)
from data_sources.registry import SourceRegistry
from news_feed.collector import NewsCollector


# ============================================================
# AIOHTTP FAKES
# ============================================================

class FakeResponse:
    """Async context manager mimicking aiohttp's response."""

    def __init__(
        self,
        body: Any = None,
        status: int = 200,
        delay: float = 0.0,
        error: Optional[Exception] = None,
    ):
        self.body = body
        self.status = status
        self.delay = delay
        self.error = error

    async def __aenter__(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def text(self) -> str:
        return self.body if isinstance(self.body, str) else json.dumps(self.body)

    async def json(self, content_type: Optional[str] = "application/json") -> Any:
        if isinstance(self.body, str):
            return json.loads(self.body)
        return self.body


class FakeSession:
    """Routes GET urls to canned FakeResponses."""

    def __init__(self, routes: Optional[dict[str, FakeResponse]] = None, default: Optional[FakeResponse] = None):
        self.routes = routes or {}
        self.default = default
        self.requests: list[tuple[str, dict]] = []
        self.closed = False

    def get(self, url: str, headers: Optional[dict] = None) -> FakeResponse:
        self.requests.append((url, headers or {}))
        if url in self.routes:
            return self.routes[url]
        if self.default is not None:
            return self.default
        return FakeResponse(error=aiohttp.ClientConnectionError(f"no route for {url}"))

    async def close(self) -> None:
        self.closed = True


# ============================================================
# SCRIPTED GATEWAY
# ============================================================

class ScriptedGateway:
    """
    Gateway double for coordinator tests.

    script maps source name -> (delay_seconds, outcome) where outcome
    is a list of records or a FetchError. Synthetic sources without a
    script entry run their real transform.
    """

    def __init__(self, script: Optional[dict[str, tuple[float, Any]]] = None):
        self.script = script or {}
        self.calls: list[str] = []
        self.completed: list[str] = []
        self.cancelled: list[str] = []
        self.params: list[Optional[FetchParams]] = []
        self.deadlines: list[Optional[int]] = []
        self.closed = False

    async def fetch_one(self, descriptor, params=None, deadline_ms=None) -> FetchResult:
        self.calls.append(descriptor.name)
        self.params.append(params)
        self.deadlines.append(deadline_ms)

        if descriptor.name not in self.script:
            if descriptor.is_synthetic:
                self.completed.append(descriptor.name)
                return FetchResult.success(descriptor.name, descriptor.transform(None))
            raise AssertionError(f"unscripted source {descriptor.name}")

        delay, outcome = self.script[descriptor.name]
        try:
            if delay:
                await asyncio.sleep(delay)
        except asyncio.CancelledError:
            self.cancelled.append(descriptor.name)
            raise

        self.completed.append(descriptor.name)
        if isinstance(outcome, FetchError):
            return FetchResult.failure(descriptor.name, outcome)
        return FetchResult.success(descriptor.name, outcome)

    async def close(self) -> None:
        self.closed = True


# ============================================================
# FACTORIES
# ============================================================

def make_asset(
    symbol: str,
    change: Optional[float] = 0.0,
    price: float = 100.0,
    asset_id: Optional[str] = None,
    name: Optional[str] = None,
    volume: float = 1_000_000.0,
    source: str = "test",
) -> NormalizedAsset:
    return NormalizedAsset(
        id=asset_id or symbol.lower(),
        symbol=symbol,
        name=name or symbol.title(),
        price=price,
        change_24h=change,
        volume_24h=volume,
        market_cap=price * 1_000_000,
        source_name=source,
    )


def make_news(title: str, hour: int = 12, source: str = "test") -> NewsItem:
    return NewsItem(
        title=title,
        published_at=datetime(2024, 1, 1, hour, tzinfo=timezone.utc),
        source_url=f"https://example.com/{abs(hash(title))}",
        source_name=source,
    )


def make_descriptor(
    name: str,
    kind: SourceKind = SourceKind.SECONDARY,
    min_records: int = 1,
    transform=None,
    url: Optional[str] = None,
    dataset: Dataset = Dataset.MARKET,
    enabled: bool = True,
) -> SourceDescriptor:
    synthetic = kind is SourceKind.SYNTHETIC
    target = url or f"https://{name}.example.com/api"
    return SourceDescriptor(
        name=name,
        endpoint_builder=None if synthetic else (lambda params, _url=target: _url),
        transform=transform or (lambda raw: raw),
        kind=kind,
        dataset=dataset,
        min_records=min_records,
        enabled=enabled,
    )


def synthetic_descriptor(symbols: tuple[str, ...] = ("BTC", "ETH", "SOL", "XRP", "ADA")) -> SourceDescriptor:
    def generate(_raw):
        return [make_asset(s, source="synthetic") for s in symbols]

    return make_descriptor("synthetic", kind=SourceKind.SYNTHETIC, transform=generate)


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def clock():
    """Frozen clock at 2024-01-01 UTC."""
    return MockClock()


@pytest.fixture
def cache(clock):
    return FetchCache(clock)


@pytest.fixture
def config():
    """Defaults, without reading the environment."""
    return AppConfig()


@pytest.fixture
def assets():
    return [
        make_asset("BTC", 2.0, 65000.0, "bitcoin", "Bitcoin"),
        make_asset("ETH", -3.0, 3500.0, "ethereum", "Ethereum"),
        make_asset("SOL", 8.0, 150.0, "solana", "Solana"),
        make_asset("XRP", -12.0, 0.5, "ripple", "Ripple"),
        make_asset("ADA", 0.5, 0.4, "cardano", "Cardano"),
    ]


@pytest.fixture
def abc_registry():
    """Three real sources A, B, C plus a synthetic fallback."""
    return SourceRegistry([
        make_descriptor("A", kind=SourceKind.PRIMARY),
        make_descriptor("B"),
        make_descriptor("C"),
        synthetic_descriptor(),
    ])


@pytest.fixture
def history_registry():
    return SourceRegistry(
        [make_descriptor("H1", dataset=Dataset.HISTORY), make_descriptor("H2", dataset=Dataset.HISTORY)],
        dataset=Dataset.HISTORY,
    )


@pytest.fixture
def news_registry():
    return SourceRegistry(
        [
            make_descriptor("primary", kind=SourceKind.PRIMARY, dataset=Dataset.NEWS),
            make_descriptor("rss1", dataset=Dataset.NEWS),
            make_descriptor("rss2", dataset=Dataset.NEWS),
        ],
        dataset=Dataset.NEWS,
    )


@pytest.fixture
def make_service(abc_registry, history_registry, news_registry, cache, config):
    """
    RadarService over a ScriptedGateway.

    Returns (service, gateway); pass registry to replace the market
    registry (e.g. one without a synthetic fallback).
    """
    def factory(script, registry=None):
        gateway = ScriptedGateway(script)
        coordinator = FailoverCoordinator(
            registry=registry if registry is not None else abc_registry,
            gateway=gateway,
            cache=cache,
            history_registry=history_registry,
            config=config,
            rng=random.Random(0),
        )
        news = NewsCollector(gateway, cache, news_registry, config, rng=random.Random(0))
        return RadarService(coordinator, news, config=config), gateway

    return factory
