"""
Failover Coordinator - Cache-first acquisition with source failover.

Provides:
- Sequential rotation over active sources with a persisted index
- Parallel race across the first N sources, first success wins
- Synthetic fallback once every real source has failed
- Stale cache fallback, then AllSourcesExhaustedError
- Single flight: one in-flight refresh per cache key

Only this class writes market and history batches into the cache.
"""

import asyncio
import logging
import random
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from core.config import AppConfig, get_config
from data_sources.cache import FetchCache
from data_sources.exceptions import AllSourcesExhaustedError, FetchError
from data_sources.gateway import FetchGateway
from data_sources.models import (
    FetchParams,
    FetchResult,
    HistoryPoint,
    NormalizedAsset,
    SourceStats,
    Timeframe,
)
from data_sources.providers import synthetic
from data_sources.registry import SourceRegistry, default_history_registry, default_market_registry


logger = logging.getLogger(__name__)


DEFAULT_CACHE_KEY = "top20"


class FailoverStrategy(Enum):
    """How the coordinator walks the active sources."""
    SEQUENTIAL = "sequential"
    RACE = "race"

    @classmethod
    def parse(cls, value: "str | FailoverStrategy") -> "FailoverStrategy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(
                f"Unknown strategy {value!r}, expected one of {[s.value for s in cls]}"
            ) from None


def history_cache_key(symbol: str, timeframe: Timeframe) -> str:
    return f"history:{symbol.upper()}:{timeframe.value}"


class FailoverCoordinator:
    """
    Serves market and history data from cache or upstream sources.

    Usage:
        async with FetchGateway() as gateway:
            coordinator = FailoverCoordinator(default_market_registry(), gateway)
            assets = await coordinator.refresh()
            assets = await coordinator.refresh(strategy=FailoverStrategy.RACE)
            points = await coordinator.fetch_history("BTC", Timeframe.D1)
    """

    def __init__(
        self,
        registry: SourceRegistry,
        gateway: FetchGateway,
        cache: Optional[FetchCache] = None,
        history_registry: Optional[SourceRegistry] = None,
        config: Optional[AppConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._config = config if config is not None else get_config()
        self._registry = registry
        self._history_registry = history_registry if history_registry is not None else default_history_registry(self._config)
        self._gateway = gateway
        self._cache = cache if cache is not None else FetchCache()
        self._rng = rng if rng is not None else random.Random()

        self._default_strategy = FailoverStrategy.parse(self._config.strategy)
        self._race_width = self._config.race_width

        # Rotating index per registry, persisted across calls
        self._rotation: dict[int, int] = {}
        self._inflight: dict[str, asyncio.Task] = {}
        self._stats: dict[str, SourceStats] = {}
        self._last_source: Optional[str] = None
        self._last_refresh_at: Optional[datetime] = None
        self._last_prices: dict[str, float] = {}

    @classmethod
    def from_config(
        cls,
        config: Optional[AppConfig] = None,
        gateway: Optional[FetchGateway] = None,
        cache: Optional[FetchCache] = None,
    ) -> "FailoverCoordinator":
        """Build a coordinator over the default registries."""
        config = config if config is not None else get_config()
        if gateway is None:
            gateway = FetchGateway(default_deadline_ms=config.market_deadline_ms)
        return cls(
            registry=default_market_registry(config),
            gateway=gateway,
            cache=cache,
            history_registry=default_history_registry(config),
            config=config,
        )

    # ---------------------------------------------------------
    # Properties
    # ---------------------------------------------------------

    @property
    def registry(self) -> SourceRegistry:
        return self._registry

    @property
    def history_registry(self) -> SourceRegistry:
        return self._history_registry

    @property
    def cache(self) -> FetchCache:
        return self._cache

    @property
    def gateway(self) -> FetchGateway:
        return self._gateway

    @property
    def current_index(self) -> int:
        """Rotation index into registry.active() for market data."""
        return self._rotation.get(id(self._registry), 0)

    @property
    def last_source(self) -> Optional[str]:
        """Name of the source that served the last market refresh."""
        return self._last_source

    # ---------------------------------------------------------
    # Strategies
    # ---------------------------------------------------------

    async def rotate(
        self,
        registry: Optional[SourceRegistry] = None,
        params: Optional[FetchParams] = None,
        deadline_ms: Optional[int] = None,
    ) -> FetchResult:
        """
        Try each active source once, strictly one after another.

        Starts at the persisted index. A failure advances the index;
        success leaves it on the succeeding source so the next call
        starts there. Falls back to the registry's synthetic source.

        Raises:
            AllSourcesExhaustedError: Every source, synthetic included, failed
        """
        registry = registry if registry is not None else self._registry
        deadline_ms = deadline_ms if deadline_ms is not None else self._config.market_deadline_ms
        active = registry.active()
        errors: list[FetchError] = []
        attempted: list[str] = []

        if active:
            start = self._rotation.get(id(registry), 0) % len(active)
            for offset in range(len(active)):
                position = (start + offset) % len(active)
                descriptor = active[position]
                attempted.append(descriptor.name)

                result = await self._gateway.fetch_one(descriptor, params, deadline_ms)
                self._record(result)

                if result.ok:
                    self._rotation[id(registry)] = position
                    if offset:
                        logger.info(f"Fallback: {active[start].name} -> {descriptor.name}")
                    return result

                errors.append(result.error)
                self._rotation[id(registry)] = (position + 1) % len(active)

        return await self._fallback_synthetic(registry, params, attempted, errors)

    async def race(
        self,
        registry: Optional[SourceRegistry] = None,
        params: Optional[FetchParams] = None,
        deadline_ms: Optional[int] = None,
        width: Optional[int] = None,
    ) -> FetchResult:
        """
        Fetch the first `width` active sources concurrently.

        The first successful result wins; the remaining fetches are
        cancelled and their results discarded. Falls back to the
        registry's synthetic source.

        Raises:
            AllSourcesExhaustedError: Every source, synthetic included, failed
        """
        registry = registry if registry is not None else self._registry
        deadline_ms = deadline_ms if deadline_ms is not None else self._config.race_deadline_ms
        candidates = registry.active()[: width if width is not None else self._race_width]
        errors: list[FetchError] = []
        attempted = [d.name for d in candidates]

        pending = {
            asyncio.create_task(self._gateway.fetch_one(d, params, deadline_ms))
            for d in candidates
        }
        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                # Several may finish in the same tick; prefer registry order
                for result in sorted((t.result() for t in done), key=lambda r: attempted.index(r.source_name)):
                    self._record(result)
                    if result.ok:
                        logger.info(f"[{result.source_name}] Won race of {len(attempted)} ({result.latency_ms:.0f}ms)")
                        return result
                    errors.append(result.error)
        finally:
            for task in pending:
                task.cancel()

        return await self._fallback_synthetic(registry, params, attempted, errors)

    async def _fallback_synthetic(
        self,
        registry: SourceRegistry,
        params: Optional[FetchParams],
        attempted: list[str],
        errors: list[FetchError],
    ) -> FetchResult:
        descriptor = registry.synthetic()
        if descriptor is not None:
            logger.warning(f"All real sources failed ({attempted}), using {descriptor.name}")
            result = await self._gateway.fetch_one(descriptor, params)
            self._record(result)
            attempted = attempted + [descriptor.name]
            if result.ok:
                return result
            errors = errors + [result.error]

        raise AllSourcesExhaustedError(
            message=f"All sources failed: {attempted}",
            attempted_sources=attempted,
            errors=errors,
        )

    def _run_strategy(
        self,
        strategy: FailoverStrategy,
        params: Optional[FetchParams],
    ) -> Awaitable[FetchResult]:
        if strategy is FailoverStrategy.RACE:
            return self.race(params=params)
        return self.rotate(params=params)

    # ---------------------------------------------------------
    # Cached operations
    # ---------------------------------------------------------

    async def refresh(
        self,
        cache_key: str = DEFAULT_CACHE_KEY,
        strategy: "Optional[FailoverStrategy | str]" = None,
        ttl_seconds: Optional[float] = None,
        params: Optional[FetchParams] = None,
    ) -> tuple[NormalizedAsset, ...]:
        """
        Return the market batch for cache_key.

        Order: fresh cache, strategy (synthetic included), stale cache.

        Raises:
            AllSourcesExhaustedError: Nothing could answer and no stale entry exists
        """
        entry = self._cache.get_fresh(cache_key)
        if entry is not None:
            logger.debug(f"Cache hit for '{cache_key}' (age={entry.age_seconds(self._cache.now()):.1f}s)")
            return entry.payload

        strategy = FailoverStrategy.parse(strategy) if strategy else self._default_strategy
        ttl = self._config.market_ttl_seconds if ttl_seconds is None else ttl_seconds
        params = params if params is not None else FetchParams(limit=self._config.market_limit)

        return await self._single_flight(
            cache_key,
            lambda: self._refresh_uncached(cache_key, strategy, ttl, params),
        )

    async def _refresh_uncached(
        self,
        cache_key: str,
        strategy: FailoverStrategy,
        ttl_seconds: float,
        params: FetchParams,
    ) -> tuple[NormalizedAsset, ...]:
        try:
            result = await self._run_strategy(strategy, params)
        except AllSourcesExhaustedError as e:
            e.cache_key = cache_key
            stale = self._cache.get_stale(cache_key)
            if stale is not None:
                return stale.payload
            logger.error(f"No data for '{cache_key}': {e.message}")
            raise

        self._cache.put(cache_key, result.payload, ttl_seconds, source_name=result.source_name)
        self._last_source = result.source_name
        self._last_refresh_at = datetime.now(timezone.utc)
        self._last_prices.update({asset.symbol: asset.price for asset in result.payload})
        logger.info(f"[{result.source_name}] Refreshed '{cache_key}' with {len(result.payload)} assets")
        return result.payload

    async def fetch_history(
        self,
        symbol: str,
        timeframe: "Timeframe | str" = Timeframe.D1,
        coin_id: Optional[str] = None,
    ) -> tuple[HistoryPoint, ...]:
        """
        Return the price history for (symbol, timeframe).

        Order: fresh cache, sequential over history sources, stale
        cache, then a random walk from the last known price. The
        random walk is never cached.
        """
        timeframe = Timeframe.parse(timeframe)
        cache_key = history_cache_key(symbol, timeframe)

        entry = self._cache.get_fresh(cache_key)
        if entry is not None:
            return entry.payload

        params = FetchParams(symbol=symbol.upper(), coin_id=coin_id, timeframe=timeframe)
        return await self._single_flight(
            cache_key,
            lambda: self._history_uncached(cache_key, params),
        )

    async def _history_uncached(self, cache_key: str, params: FetchParams) -> tuple[HistoryPoint, ...]:
        try:
            result = await self.rotate(
                registry=self._history_registry,
                params=params,
                deadline_ms=self._config.history_deadline_ms,
            )
        except AllSourcesExhaustedError as e:
            stale = self._cache.get_stale(cache_key)
            if stale is not None:
                return stale.payload

            base_price = self._last_prices.get(params.symbol) or synthetic.history_base_price(params.symbol)
            logger.warning(
                f"History unavailable for {params.symbol} ({e.attempted_sources}), "
                f"generating random walk from {base_price}"
            )
            return tuple(synthetic.random_walk_history(
                base_price, params.timeframe, self._cache.clock.timestamp_ms(), self._rng
            ))

        self._cache.put(
            cache_key, result.payload, self._config.history_ttl_seconds, source_name=result.source_name
        )
        return result.payload

    async def _single_flight(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        """Share one in-flight task per key between concurrent callers."""
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._on_flight_done(k, t))
        else:
            logger.debug(f"Joining in-flight refresh for '{key}'")
        # A cancelled caller must not cancel the shared fetch
        return await asyncio.shield(task)

    def _on_flight_done(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            # Mark retrieved even when every waiter went away
            task.exception()

    # ---------------------------------------------------------
    # Observability
    # ---------------------------------------------------------

    def _record(self, result: FetchResult) -> None:
        stats = self._stats.setdefault(result.source_name, SourceStats())
        stats.attempts += 1
        if result.ok:
            stats.successes += 1
            stats.last_success_at = datetime.now(timezone.utc)
        else:
            kind = result.error.kind.value
            stats.failures += 1
            stats.last_error = result.error.message
            stats.last_error_kind = kind
            stats.failure_kinds[kind] = stats.failure_kinds.get(kind, 0) + 1

    def get_source_stats(self, name: str) -> Optional[SourceStats]:
        return self._stats.get(name)

    def get_stats(self) -> dict[str, Any]:
        """Get coordinator statistics."""
        active = self._registry.active()
        return {
            "strategy": self._default_strategy.value,
            "race_width": self._race_width,
            "current_index": self.current_index,
            "current_source": active[self.current_index].name if active else None,
            "last_source": self._last_source,
            "last_refresh_at": self._last_refresh_at.isoformat() if self._last_refresh_at else None,
            "inflight": sorted(self._inflight),
            "sources": {name: stats.to_dict() for name, stats in self._stats.items()},
            "cache": self._cache.get_stats(),
        }

