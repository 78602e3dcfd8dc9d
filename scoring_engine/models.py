"""
Scoring Engine - Models.

Immutable results of one analysis pass. Scores are context for the
presentation layer, not trade signals.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from data_sources.models import NormalizedAsset


class Horizon(Enum):
    """Investment horizon; selects the weighting profile."""
    SHORT = "short"
    LONG = "long"

    @classmethod
    def parse(cls, value: "str | Horizon") -> "Horizon":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(
                f"Unknown horizon {value!r}, expected one of {[h.value for h in cls]}"
            ) from None


@dataclass(frozen=True)
class HorizonWeights:
    """Weights for (trend, volatility, sentiment, global sentiment)."""
    trend: float
    volatility: float
    sentiment: float
    global_sentiment: float

    def to_dict(self) -> dict[str, float]:
        return {
            "trend": self.trend,
            "volatility": self.volatility,
            "sentiment": self.sentiment,
            "global_sentiment": self.global_sentiment,
        }


@dataclass(frozen=True)
class AssetScore:
    """
    Per-asset score decomposition.

    favorability: higher is a better candidate
    risk: >= 0, higher is riskier
    asymmetry: >= 0, rebound/momentum potential
    raw_change: 24h change used, 0.0 when unavailable
    """
    favorability: float
    risk: float
    asymmetry: float
    raw_change: float
    trend: float = 0.0
    volatility: float = 0.0
    sentiment: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {
            "favorability": self.favorability,
            "risk": self.risk,
            "asymmetry": self.asymmetry,
            "raw_change": self.raw_change,
            "trend": self.trend,
            "volatility": self.volatility,
            "sentiment": self.sentiment,
        }


@dataclass(frozen=True)
class AnalysisSection:
    title: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "content": self.content}


@dataclass(frozen=True)
class AssetAnalysis:
    """Plain-text narrative for one asset."""
    sections: tuple[AnalysisSection, ...]
    summary: str
    confidence: int  # percent
    upside: float
    downside: float

    @property
    def context(self) -> str:
        return self.sections[0].content if self.sections else ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "sections": [s.to_dict() for s in self.sections],
            "summary": self.summary,
            "confidence": self.confidence,
            "upside": self.upside,
            "downside": self.downside,
        }


@dataclass(frozen=True)
class ScoredAsset:
    asset: NormalizedAsset
    score: AssetScore
    analysis: AssetAnalysis

    @property
    def id(self) -> str:
        return self.asset.id

    def to_dict(self) -> dict[str, Any]:
        return {
            "asset": self.asset.to_dict(),
            "score": self.score.to_dict(),
            "analysis": self.analysis.to_dict(),
        }


@dataclass(frozen=True)
class AnalysisResult:
    """
    Ranked output of one analysis pass.

    best, avoid and trump hold at most three assets each and never
    share an asset; all lists every scored asset exactly once.
    """
    best: tuple[ScoredAsset, ...] = ()
    avoid: tuple[ScoredAsset, ...] = ()
    trump: tuple[ScoredAsset, ...] = ()
    all: tuple[ScoredAsset, ...] = ()
    horizon: Horizon = Horizon.SHORT
    global_sentiment: float = 0.0
    weights: Optional[HorizonWeights] = None

    @property
    def is_empty(self) -> bool:
        return not self.all

    def to_dict(self) -> dict[str, Any]:
        return {
            "horizon": self.horizon.value,
            "global_sentiment": self.global_sentiment,
            "weights": self.weights.to_dict() if self.weights else None,
            "best": [s.to_dict() for s in self.best],
            "avoid": [s.to_dict() for s in self.avoid],
            "trump": [s.to_dict() for s in self.trump],
            "all": [s.to_dict() for s in self.all],
        }
