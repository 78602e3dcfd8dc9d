"""
Dashboard - API.

============================================================
RESPONSIBILITY
============================================================
Provides the JSON API the presentation layer polls.

- Market snapshot, news, analysis, price history
- Source registry and failover statistics
- AllSourcesExhaustedError -> 503 "connection lost, retry"

No logic lives here; every route delegates to RadarService.
============================================================
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dashboard.schemas import (
    AnalysisResponse,
    ErrorResponse,
    HealthResponse,
    HistoryResponse,
    MarketResponse,
    NewsResponse,
    SourcesResponse,
)
from dashboard.services import RadarService
from data_sources.coordinator import FailoverStrategy
from data_sources.exceptions import AllSourcesExhaustedError
from data_sources.models import Timeframe
from data_sources.providers.synthetic import SOURCE_NAME as SYNTHETIC_SOURCE
from scoring_engine.models import Horizon

if TYPE_CHECKING:
    from orchestrator.scheduler import PeriodicRefresher

logger = logging.getLogger(__name__)


CONNECTION_LOST_MESSAGE = "Connection lost, retry"


# ============================================================
# FastAPI Application
# ============================================================

def create_app(service: RadarService, refresher: "Optional[PeriodicRefresher]" = None) -> FastAPI:
    """
    Build the API around an already-wired service.

    When a refresher is given it runs for the lifetime of the app.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if refresher is not None:
            await refresher.start()
        try:
            yield
        finally:
            if refresher is not None:
                await refresher.stop()
            await service.close()

    app = FastAPI(
        title="Crypto Market Radar API",
        description="Market snapshot, news context and heuristic analysis with source failover",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.service = service

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Startup time for uptime calculation
    startup_time = datetime.now(timezone.utc)

    @app.exception_handler(AllSourcesExhaustedError)
    async def sources_exhausted_handler(request: Request, exc: AllSourcesExhaustedError):
        logger.error(f"{request.url.path}: {exc}")
        return JSONResponse(
            status_code=503,
            content=ErrorResponse(
                message=CONNECTION_LOST_MESSAGE,
                attempted_sources=exc.attempted_sources,
            ).model_dump(mode="json"),
        )

    # ============================================================
    # API Endpoints
    # ============================================================

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint."""
        return {
            "service": "Crypto Market Radar API",
            "version": "1.0.0",
            "docs": "/docs",
        }

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        now = datetime.now(timezone.utc)
        return HealthResponse(
            status="healthy",
            timestamp=now.isoformat(),
            uptime_seconds=(now - startup_time).total_seconds(),
        )

    @app.get("/market", response_model=MarketResponse, tags=["Market"])
    async def get_market(strategy: Optional[FailoverStrategy] = None):
        """Top assets, from cache or the first healthy source."""
        assets = await service.market(strategy)
        source = assets[0].source_name if assets else None
        return MarketResponse(
            source=source,
            synthetic=source == SYNTHETIC_SOURCE,
            count=len(assets),
            data=[asset.to_dict() for asset in assets],
        )

    @app.get("/news", response_model=NewsResponse, tags=["News"])
    async def get_news():
        """Merged headlines, newest first."""
        news = await service.news()
        return NewsResponse(count=len(news), data=[item.to_dict() for item in news])

    @app.get("/analysis", response_model=AnalysisResponse, tags=["Analysis"])
    async def get_analysis(horizon: Optional[Horizon] = None, strategy: Optional[FailoverStrategy] = None):
        """Best / avoid / trump picks for the horizon."""
        result = await service.analysis(horizon, strategy)
        return AnalysisResponse(**result.to_dict())

    @app.get("/history/{symbol}", response_model=HistoryResponse, tags=["Market"])
    async def get_history(symbol: str, timeframe: Timeframe = Timeframe.D1, coin_id: Optional[str] = None):
        """Price history; never fails, falls back to a generated path."""
        points = await service.history(symbol, timeframe, coin_id)
        return HistoryResponse(
            symbol=symbol.upper(),
            timeframe=timeframe.value,
            count=len(points),
            data=[{"timestamp": p.timestamp, "price": p.price, "volume": p.volume} for p in points],
        )

    @app.get("/sources", response_model=SourcesResponse, tags=["Sources"])
    async def get_sources():
        """Registered sources and failover statistics."""
        return SourcesResponse(**service.sources())

    return app
