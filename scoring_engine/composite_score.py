"""
Scoring Engine - Composite Score.

============================================================
RESPONSIBILITY
============================================================
Combines trend, sentiment and market context into a single
favorability score per asset, weighted by horizon.

- Short horizon favors momentum and news
- Long horizon favors market drift and penalizes volatility
- Provides score decomposition for explainability

============================================================
COMPOSITE LOGIC
============================================================
favorability = trend * w_trend
             + asset_sentiment * w_sentiment
             + global_sentiment * w_global
             - volatility * 0.1

The horizon volatility weight is reported with the result but
the applied volatility penalty is the flat 0.1 above.

============================================================
"""

from data_sources.models import NormalizedAsset
from scoring_engine.models import AssetScore, Horizon, HorizonWeights
from scoring_engine.risk_score import (
    compute_asymmetry,
    compute_risk,
    compute_trend,
    compute_volatility,
    effective_change,
)


HORIZON_WEIGHTS: dict[Horizon, HorizonWeights] = {
    Horizon.SHORT: HorizonWeights(trend=0.5, volatility=-0.2, sentiment=0.3, global_sentiment=0.1),
    Horizon.LONG: HorizonWeights(trend=0.2, volatility=-0.5, sentiment=0.1, global_sentiment=0.3),
}

VOLATILITY_PENALTY = 0.1


def weights_for(horizon: "Horizon | str") -> HorizonWeights:
    return HORIZON_WEIGHTS[Horizon.parse(horizon)]


def compute_favorability(
    trend: float,
    volatility: float,
    asset_sentiment: float,
    global_sentiment: float,
    weights: HorizonWeights,
) -> float:
    return (
        trend * weights.trend
        + asset_sentiment * weights.sentiment
        + global_sentiment * weights.global_sentiment
        - volatility * VOLATILITY_PENALTY
    )


def compute_scores(
    asset: NormalizedAsset,
    asset_sentiment: float,
    global_sentiment: float,
    horizon: "Horizon | str" = Horizon.SHORT,
) -> AssetScore:
    """Score one asset for the given horizon."""
    change = effective_change(asset.change_24h)
    trend = compute_trend(change)
    volatility = compute_volatility(change)

    return AssetScore(
        favorability=compute_favorability(
            trend, volatility, asset_sentiment, global_sentiment, weights_for(horizon)
        ),
        risk=compute_risk(volatility, asset_sentiment, global_sentiment),
        asymmetry=compute_asymmetry(change, asset_sentiment),
        raw_change=change,
        trend=trend,
        volatility=volatility,
        sentiment=asset_sentiment,
    )
