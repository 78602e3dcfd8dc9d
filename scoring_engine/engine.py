"""
Scoring Engine - Analysis Pipeline.

============================================================
RESPONSIBILITY
============================================================
Scores a market snapshot against the current headlines and
ranks the result.

1. Global sentiment over all headlines
2. Per asset: relevant headlines, asset sentiment, scores, narrative
3. Rank into best / avoid / trump

============================================================
DESIGN PRINCIPLES
============================================================
- Pure: no fetching, no clock, no shared state
- Deterministic for a given (market, news, horizon)
- Empty market yields an empty result

============================================================
"""

import logging
from typing import Optional, Sequence

from data_sources.models import NewsItem, NormalizedAsset
from scoring_engine.composite_score import compute_scores, weights_for
from scoring_engine.models import AnalysisResult, Horizon, ScoredAsset
from scoring_engine.narrative import generate_analysis
from scoring_engine.ranking import rank
from scoring_engine.sentiment_score import (
    compute_asset_sentiment,
    compute_global_sentiment,
    filter_news_for_asset,
)


logger = logging.getLogger(__name__)


class ScoringEngine:
    """
    Heuristic market analysis.

    Usage:
        engine = ScoringEngine()
        result = engine.analyze(assets, news, horizon=Horizon.LONG)
        for pick in result.best:
            print(pick.asset.symbol, pick.score.favorability)
    """

    def __init__(self, default_horizon: "Horizon | str" = Horizon.SHORT) -> None:
        self._default_horizon = Horizon.parse(default_horizon)

    @property
    def default_horizon(self) -> Horizon:
        return self._default_horizon

    def score_asset(
        self,
        asset: NormalizedAsset,
        news: Sequence[NewsItem],
        global_sentiment: float,
        horizon: Horizon,
    ) -> ScoredAsset:
        asset_news = filter_news_for_asset(asset, news)
        score = compute_scores(asset, compute_asset_sentiment(asset_news), global_sentiment, horizon)
        return ScoredAsset(
            asset=asset,
            score=score,
            analysis=generate_analysis(asset, score, asset_news, global_sentiment, horizon),
        )

    def analyze(
        self,
        market: Sequence[NormalizedAsset],
        news: Sequence[NewsItem] = (),
        horizon: "Optional[Horizon | str]" = None,
    ) -> AnalysisResult:
        """Score and rank every asset in the snapshot."""
        horizon = Horizon.parse(horizon) if horizon else self._default_horizon
        weights = weights_for(horizon)

        if not market:
            return AnalysisResult(horizon=horizon, weights=weights)

        global_sentiment = compute_global_sentiment(news)
        scored = [self.score_asset(asset, news, global_sentiment, horizon) for asset in market]
        best, avoid, trump, everything = rank(scored)

        logger.debug(
            f"Analyzed {len(scored)} assets ({horizon.value}, global={global_sentiment:+.2f}): "
            f"best={[s.asset.symbol for s in best]}"
        )
        return AnalysisResult(
            best=best,
            avoid=avoid,
            trump=trump,
            all=everything,
            horizon=horizon,
            global_sentiment=global_sentiment,
            weights=weights,
        )
