"""
Dashboard Service - Wires acquisition and scoring for the outer surfaces.

The API and the CLI both go through RadarService; neither talks to
the coordinator or the engine directly.
"""

import asyncio
import logging
from typing import Any, Optional

from core.clock import ClockProtocol
from core.config import AppConfig, get_config
from data_sources.cache import FetchCache
from data_sources.coordinator import FailoverCoordinator, FailoverStrategy
from data_sources.gateway import FetchGateway
from data_sources.models import HistoryPoint, NewsItem, NormalizedAsset, Timeframe
from news_feed.collector import NewsCollector
from scoring_engine.engine import ScoringEngine
from scoring_engine.models import AnalysisResult, Horizon


logger = logging.getLogger(__name__)


class RadarService:
    """
    Facade over coordinator, news collector and scoring engine.

    Usage:
        service = RadarService.from_config(config)
        try:
            result = await service.analysis(horizon="long")
        finally:
            await service.close()
    """

    def __init__(
        self,
        coordinator: FailoverCoordinator,
        news: NewsCollector,
        engine: Optional[ScoringEngine] = None,
        config: Optional[AppConfig] = None,
    ) -> None:
        self._config = config if config is not None else get_config()
        self.coordinator = coordinator
        self.news_collector = news
        self.engine = engine if engine is not None else ScoringEngine(self._config.default_horizon)

    @classmethod
    def from_config(
        cls,
        config: Optional[AppConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> "RadarService":
        """Build the full stack sharing one gateway and one cache."""
        config = config if config is not None else get_config()
        gateway = FetchGateway(default_deadline_ms=config.market_deadline_ms)
        cache = FetchCache(clock)
        return cls(
            coordinator=FailoverCoordinator.from_config(config, gateway=gateway, cache=cache),
            news=NewsCollector(gateway, cache, config=config),
            engine=ScoringEngine(config.default_horizon),
            config=config,
        )

    @property
    def config(self) -> AppConfig:
        return self._config

    async def market(self, strategy: "Optional[FailoverStrategy | str]" = None) -> tuple[NormalizedAsset, ...]:
        return await self.coordinator.refresh(strategy=strategy)

    async def news(self, force: bool = False) -> tuple[NewsItem, ...]:
        return await self.news_collector.fetch_news(force=force)

    async def history(
        self,
        symbol: str,
        timeframe: "Timeframe | str" = Timeframe.D1,
        coin_id: Optional[str] = None,
    ) -> tuple[HistoryPoint, ...]:
        return await self.coordinator.fetch_history(symbol, timeframe, coin_id=coin_id)

    async def analysis(
        self,
        horizon: "Optional[Horizon | str]" = None,
        strategy: "Optional[FailoverStrategy | str]" = None,
    ) -> AnalysisResult:
        """Fetch market and news concurrently, then score."""
        market, news = await asyncio.gather(self.market(strategy), self.news())
        return self.engine.analyze(market, news, horizon)

    async def refresh_all(self) -> dict[str, int]:
        """Refresh market (cache-aware) and news (forced); used by the periodic refresher."""
        market = await self.coordinator.refresh()
        news = await self.news_collector.fetch_news(force=True)
        return {"assets": len(market), "news": len(news)}

    def sources(self) -> dict[str, Any]:
        return {
            "market": self.coordinator.registry.to_dict(),
            "history": self.coordinator.history_registry.to_dict(),
            "news": self.news_collector.registry.to_dict(),
            "coordinator": self.coordinator.get_stats(),
            "news_collector": self.news_collector.get_stats(),
        }

    async def close(self) -> None:
        await self.coordinator.gateway.close()
