"""
Scoring Engine - Risk Score.

============================================================
RESPONSIBILITY
============================================================
Derives price-action components and risk measures from the
24h change.

- Trend: signed momentum in [-1, 1]
- Volatility proxy: |change| magnitude in [0, 1]
- Risk: volatility plus sentiment penalties, >= 0
- Asymmetry: rebound / momentum-continuation potential, >= 0

============================================================
DESIGN PRINCIPLES
============================================================
- Single input (24h change); no history required
- Missing change is treated as flat (0.0)
- Bonuses are additive and independent

============================================================
"""

from typing import Optional

from scoring_engine.sentiment_score import clamp


TREND_SCALE = 10.0         # +10% == full bullish trend
VOLATILITY_SCALE = 15.0    # |15%| == maximum volatility

NEGATIVE_SENTIMENT_RISK = 0.5
GLOBAL_FEAR_RISK = 0.3
GLOBAL_FEAR_THRESHOLD = -0.5

REBOUND_CHANGE_THRESHOLD = -5.0
REBOUND_BONUS = 0.8
MOMENTUM_CHANGE_THRESHOLD = 15.0
MOMENTUM_BONUS = 0.2


def effective_change(change_24h: Optional[float]) -> float:
    return change_24h if change_24h is not None else 0.0


def compute_trend(change: float) -> float:
    return clamp(change / TREND_SCALE)


def compute_volatility(change: float) -> float:
    return min(1.0, abs(change) / VOLATILITY_SCALE)


def compute_risk(volatility: float, asset_sentiment: float, global_sentiment: float) -> float:
    risk = volatility
    if asset_sentiment < 0:
        risk += NEGATIVE_SENTIMENT_RISK
    if global_sentiment < GLOBAL_FEAR_THRESHOLD:
        risk += GLOBAL_FEAR_RISK
    return risk


def compute_asymmetry(change: float, asset_sentiment: float) -> float:
    """
    Oversold-with-good-news rebound plus momentum continuation.

    change < -5% with positive asset sentiment: +0.8
    change > +15%: +0.2
    """
    asymmetry = 0.0
    if change < REBOUND_CHANGE_THRESHOLD and asset_sentiment > 0:
        asymmetry += REBOUND_BONUS
    if change > MOMENTUM_CHANGE_THRESHOLD:
        asymmetry += MOMENTUM_BONUS
    return asymmetry
