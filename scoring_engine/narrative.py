"""
Scoring Engine - Narrative.

Renders a ten-section plain-text analysis for one asset from its
scores. Pure string formatting; markup is the presentation layer's
concern.
"""

from typing import Sequence

from data_sources.models import NewsItem, NormalizedAsset
from scoring_engine.models import AnalysisSection, AssetAnalysis, AssetScore, Horizon


HIGH_VOLUME_USD = 100_000_000
RANGE_MULTIPLIER = 1.5


def trend_label(score: AssetScore) -> str:
    if score.favorability > 0.2:
        return "Bullish"
    if score.favorability < -0.2:
        return "Bearish"
    return "Neutral"


def volatility_label(score: AssetScore) -> str:
    if score.risk > 0.6:
        return "High Volatility (Expansion)"
    if score.risk < 0.3:
        return "Low Volatility (Compression)"
    return "Stable"


def sentiment_label(score: AssetScore) -> str:
    if score.sentiment > 0:
        return "Positive"
    if score.sentiment < 0:
        return "Negative"
    return "Muted"


def outcome_range(price: float, change: float) -> tuple[float, float]:
    """(upside, downside) from a daily deviation proxy of |change|/2 + 1 percent."""
    deviation = abs(change) / 2 + 1
    move = deviation / 100 * RANGE_MULTIPLIER
    return price * (1 + move), price * (1 - move)


def _money(value: float, price: float) -> str:
    return f"${value:.4f}" if price < 1 else f"${value:.2f}"


def generate_analysis(
    asset: NormalizedAsset,
    score: AssetScore,
    asset_news: Sequence[NewsItem],
    global_sentiment: float,
    horizon: Horizon = Horizon.SHORT,
) -> AssetAnalysis:
    trend = trend_label(score)
    vol_state = volatility_label(score)
    sentiment = sentiment_label(score)
    upside, downside = outcome_range(asset.price, score.raw_change)

    posture = "Risk-On" if global_sentiment > 0 else "Risk-Off"
    if trend == "Bullish":
        structure = "respecting higher lows"
    elif trend == "Bearish":
        structure = "facing rejection at resistance"
    else:
        structure = "consolidating within a range"

    if asset_news:
        news_text = (
            f"Specific headlines are driving idiosyncratic risk. Sentiment is {sentiment.lower()}, "
            f"modulated by {len(asset_news)} relevant context points."
        )
    else:
        news_text = (
            "No asset-specific headlines are currently dominating. Price is largely driven "
            "by macro-correlation and technical flows."
        )

    sections = (
        AnalysisSection(
            "Market Context",
            f"The broader market is currently in a {posture} posture. {asset.symbol} is trading "
            f"within a {trend.lower()} structure, showing {vol_state.lower()} relative to its peers.",
        ),
        AnalysisSection(
            "Structural Analysis",
            f"Price action is {structure}. Key structural levels are "
            f"{'holding firm' if trend == 'Bullish' else 'under pressure'}, suggesting "
            f"{abs(score.favorability * 10):.1f}/10 structural integrity.",
        ),
        AnalysisSection(
            "Momentum & Participation",
            f"Momentum is {'accelerating' if abs(score.raw_change) > 5 else 'steady'}. "
            f"Volume participation is "
            f"{'robust, supporting the move' if asset.volume_24h > HIGH_VOLUME_USD else 'diverging, suggesting caution'}. "
            f"{'Aggressive buying' if score.asymmetry > 0.5 else 'Balanced flows'} are currently observed.",
        ),
        AnalysisSection(
            "Volatility Regime",
            f"We are observing {vol_state}. "
            + ("This suggests an impulsive breakout or breakdown is underway. " if score.risk > 0.6
               else "Compression often precedes a significant expansion move. ")
            + f"Risk management should adjust for {'wider stops' if score.risk > 0.6 else 'sudden expansion'}.",
        ),
        AnalysisSection(
            "Multi-Timeframe Confluence",
            f"The {horizon.value} term structure is "
            f"{'aligned with' if trend == 'Bullish' else 'diverging from'} the longer-term trend. "
            + ("Conflict between timeframes is causing current chop." if trend == "Neutral"
               else "Alignment across timeframes increases the probability of continuation."),
        ),
        AnalysisSection("News & External Context", news_text),
        AnalysisSection(
            "Scenario Analysis",
            f"Primary: Continuation of {trend.lower()} trend towards ${upside:.2f}. "
            f"Alternative: Reversal if support at ${downside:.2f} fails to hold. "
            f"Invalidation: A sustained close {'below' if trend == 'Bullish' else 'above'} "
            f"${asset.price:.2f} shifts bias to Neutral.",
        ),
        AnalysisSection(
            "Expected Outcome Ranges",
            f"Upside Target: {_money(upside, asset.price)} (Probable). "
            f"Downside Risk: {_money(downside, asset.price)} (Probable). "
            f"Ranges derived from {vol_state.lower()} metrics.",
        ),
        AnalysisSection(
            "Time & Exhaustion",
            f"Momentum projected to sustain for the next "
            f"{'4-8 hours' if horizon is Horizon.SHORT else '2-5 days'} before testing exhaustion. "
            + ("Extension is already stretched, expect mean reversion soon." if score.risk > 0.8
               else "Structure has room to run before exhaustion signals appear."),
        ),
        AnalysisSection(
            "Final Synthesis",
            f"In summary, {asset.symbol} presents a {trend.lower()} opportunity with "
            f"{'manageable' if score.risk < 0.4 else 'elevated'} risk. The confluence of "
            f"{sentiment.lower()} sentiment and {vol_state.lower()} suggests a focus on "
            f"{'long setups' if trend == 'Bullish' else 'defensive positioning'} is prudent.",
        ),
    )

    return AssetAnalysis(
        sections=sections,
        summary=f"{trend} structure. {vol_state}.",
        confidence=round((0.5 + abs(score.favorability) / 2) * 100),
        upside=upside,
        downside=downside,
    )
