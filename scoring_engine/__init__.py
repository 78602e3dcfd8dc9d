"""
Scoring Engine Package.

This package scores and ranks market snapshots.
Scores are context for the presentation layer, not trade signals.

Modules:
- sentiment_score: Keyword sentiment over headlines
- risk_score: Trend, volatility, risk and asymmetry
- composite_score: Horizon-weighted favorability
- ranking: best / avoid / trump buckets
- narrative: Per-asset plain-text analysis
- engine: ScoringEngine pipeline
"""

from scoring_engine.composite_score import HORIZON_WEIGHTS, compute_scores, weights_for
from scoring_engine.engine import ScoringEngine
from scoring_engine.models import (
    AnalysisResult,
    AnalysisSection,
    AssetAnalysis,
    AssetScore,
    Horizon,
    HorizonWeights,
    ScoredAsset,
)
from scoring_engine.narrative import generate_analysis
from scoring_engine.ranking import STABLECOINS, rank
from scoring_engine.sentiment_score import (
    compute_asset_sentiment,
    compute_global_sentiment,
    filter_news_for_asset,
)


__all__ = [
    "ScoringEngine",
    "AnalysisResult",
    "AnalysisSection",
    "AssetAnalysis",
    "AssetScore",
    "Horizon",
    "HorizonWeights",
    "ScoredAsset",
    "HORIZON_WEIGHTS",
    "STABLECOINS",
    "compute_scores",
    "weights_for",
    "compute_global_sentiment",
    "compute_asset_sentiment",
    "filter_news_for_asset",
    "generate_analysis",
    "rank",
]
