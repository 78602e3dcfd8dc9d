"""
Pydantic schemas for Dashboard API responses.
"""
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

# =======================
# COMMON
# =======================

class BaseResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)


class ErrorResponse(BaseResponse):
    success: bool = False
    attempted_sources: List[str] = []


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str = "1.0.0"
    uptime_seconds: float = 0

# =======================
# 1. MARKET
# =======================

class AssetSchema(BaseModel):
    id: str
    symbol: str
    name: str
    price: float
    change_24h: Optional[float] = None
    volume_24h: float
    market_cap: float
    sparkline: List[float] = []
    source_name: str
    rank: Optional[int] = None
    change_1h: Optional[float] = None
    change_7d: Optional[float] = None
    image_url: Optional[str] = None


class MarketResponse(BaseResponse):
    source: Optional[str] = None
    synthetic: bool = False
    count: int
    data: List[AssetSchema]

# =======================
# 2. NEWS
# =======================

class NewsItemSchema(BaseModel):
    title: str
    published_at: datetime
    source_url: str
    source_name: str = ""


class NewsResponse(BaseResponse):
    count: int
    data: List[NewsItemSchema]

# =======================
# 3. ANALYSIS
# =======================

class ScoreSchema(BaseModel):
    favorability: float
    risk: float
    asymmetry: float
    raw_change: float
    trend: float
    volatility: float
    sentiment: float


class AnalysisSectionSchema(BaseModel):
    title: str
    content: str


class AssetAnalysisSchema(BaseModel):
    sections: List[AnalysisSectionSchema]
    summary: str
    confidence: int
    upside: float
    downside: float


class ScoredAssetSchema(BaseModel):
    asset: AssetSchema
    score: ScoreSchema
    analysis: AssetAnalysisSchema


class AnalysisResponse(BaseResponse):
    horizon: str
    global_sentiment: float
    weights: Optional[Dict[str, float]] = None
    best: List[ScoredAssetSchema]
    avoid: List[ScoredAssetSchema]
    trump: List[ScoredAssetSchema]
    all: List[ScoredAssetSchema]

# =======================
# 4. HISTORY
# =======================

class HistoryPointSchema(BaseModel):
    timestamp: int
    price: float
    volume: Optional[float] = None


class HistoryResponse(BaseResponse):
    symbol: str
    timeframe: str
    count: int
    data: List[HistoryPointSchema]

# =======================
# 5. SOURCES
# =======================

class SourcesResponse(BaseResponse):
    market: Dict[str, Any]
    history: Dict[str, Any]
    news: Dict[str, Any]
    coordinator: Dict[str, Any]
    news_collector: Dict[str, Any]
