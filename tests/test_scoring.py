"""
Tests for the scoring engine.

============================================================
TEST SCENARIOS
============================================================
1. Keyword sentiment: global negativity bias, asset filtering,
   output clamped to [-1, 1], neutral without headlines
2. Trend / volatility / risk / asymmetry components
3. Favorability weights per horizon
4. Ranking: disjoint buckets of at most 3, no back-fill,
   stablecoins never in avoid
5. Every asset scored exactly once
6. Narrative sections, labels, confidence and ranges

============================================================
"""

import pytest

from conftest import make_asset, make_news
from scoring_engine.composite_score import (
    HORIZON_WEIGHTS,
    VOLATILITY_PENALTY,
    compute_scores,
    weights_for,
)
from scoring_engine.engine import ScoringEngine
from scoring_engine.models import Horizon
from scoring_engine.narrative import generate_analysis, outcome_range, trend_label, volatility_label
from scoring_engine.ranking import BUCKET_SIZE, rank
from scoring_engine.risk_score import (
    compute_asymmetry,
    compute_risk,
    compute_trend,
    compute_volatility,
    effective_change,
)
from scoring_engine.sentiment_score import (
    compute_asset_sentiment,
    compute_global_sentiment,
    filter_news_for_asset,
)


@pytest.fixture
def engine():
    return ScoringEngine()


@pytest.fixture
def ladder():
    """Assets spread across the change spectrum, plus a stablecoin."""
    return [
        make_asset("AAA", 12.0),
        make_asset("BBB", 9.0),
        make_asset("CCC", 6.0),
        make_asset("DDD", 3.0),
        make_asset("EEE", 0.0),
        make_asset("FFF", -3.0),
        make_asset("GGG", -7.0),
        make_asset("HHH", -10.0),
        make_asset("USDT", -14.0, price=1.0, asset_id="tether"),
    ]


def ids(bucket):
    return [s.id for s in bucket]


# ============================================================
# TEST: SENTIMENT
# ============================================================

class TestSentiment:
    """Keyword heuristics over headline titles."""

    def test_no_news_is_neutral(self):
        assert compute_global_sentiment([]) == 0.0
        assert compute_asset_sentiment([]) == 0.0

    def test_global_negativity_bias(self):
        news = [make_news("Bitcoin surges to record"), make_news("Exchange hack causes crash")]
        assert compute_global_sentiment(news) == pytest.approx(-0.05)

    def test_global_counts_once_per_polarity(self):
        news = [make_news("Rally, surge, soar and more gains")]
        assert compute_global_sentiment(news) == pytest.approx(0.1)

    def test_global_clamped(self):
        news = [make_news(f"Market crash part {i}") for i in range(20)]
        assert compute_global_sentiment(news) == -1.0

    def test_asset_sentiment_clamped(self):
        news = [make_news(f"Solana upgrade {i}") for i in range(5)]
        assert compute_asset_sentiment(news) == 1.0

    def test_asset_sentiment_mixed(self):
        news = [make_news("Solana launch"), make_news("Solana lawsuit"), make_news("Solana breakout")]
        assert compute_asset_sentiment(news) == pytest.approx(0.4)

    def test_misspelled_keyword_matched_as_written(self):
        assert compute_asset_sentiment([make_news("New partership for XRP")]) == pytest.approx(0.4)
        assert compute_asset_sentiment([make_news("New partnership for XRP")]) == 0.0

    def test_filter_by_symbol_or_name(self):
        asset = make_asset("SOL", name="Solana")
        news = [make_news("SOL rallies"), make_news("solana upgrade"), make_news("BTC flat")]
        assert [n.title for n in filter_news_for_asset(asset, news)] == ["SOL rallies", "solana upgrade"]

    @pytest.mark.parametrize("titles", [
        [],
        ["crash"] * 50,
        ["surge bull rally"] * 50,
        ["launch", "lawsuit", "delay", "downgrade"],
    ])
    def test_always_bounded(self, titles):
        news = [make_news(t) for t in titles]
        assert -1.0 <= compute_global_sentiment(news) <= 1.0
        assert -1.0 <= compute_asset_sentiment(news) <= 1.0


# ============================================================
# TEST: COMPONENTS
# ============================================================

class TestComponents:
    """Trend, volatility, risk and asymmetry."""

    def test_missing_change_is_flat(self):
        assert effective_change(None) == 0.0

    def test_trend(self):
        assert compute_trend(5.0) == 0.5
        assert compute_trend(25.0) == 1.0
        assert compute_trend(-30.0) == -1.0

    def test_volatility(self):
        assert compute_volatility(-7.5) == 0.5
        assert compute_volatility(40.0) == 1.0

    def test_risk_penalties(self):
        assert compute_risk(0.2, 0.0, 0.0) == pytest.approx(0.2)
        assert compute_risk(0.2, -0.1, 0.0) == pytest.approx(0.7)
        assert compute_risk(0.2, -0.1, -0.6) == pytest.approx(1.0)
        assert compute_risk(0.2, 0.0, -0.5) == pytest.approx(0.2)

    def test_rebound_bonus(self):
        assert compute_asymmetry(-10.0, 1.0) >= 0.8

    def test_rebound_requires_positive_sentiment(self):
        assert compute_asymmetry(-10.0, 0.0) == 0.0

    def test_momentum_bonus(self):
        assert compute_asymmetry(20.0, 0.0) == pytest.approx(0.2)
        assert compute_asymmetry(20.0, 1.0) == pytest.approx(0.2)

    def test_asymmetry_never_negative(self):
        for change in (-50.0, -5.0, 0.0, 15.0, 50.0):
            for sentiment in (-1.0, 0.0, 1.0):
                assert compute_asymmetry(change, sentiment) >= 0.0


# ============================================================
# TEST: COMPOSITE
# ============================================================

class TestComposite:
    """Horizon-weighted favorability."""

    def test_weights(self):
        short = weights_for("short")
        assert (short.trend, short.volatility, short.sentiment, short.global_sentiment) == (0.5, -0.2, 0.3, 0.1)
        long = weights_for(Horizon.LONG)
        assert (long.trend, long.volatility, long.sentiment, long.global_sentiment) == (0.2, -0.5, 0.1, 0.3)

    @pytest.mark.parametrize("horizon, expected", [
        (Horizon.SHORT, 0.5 * 0.5 - (5 / 15) * VOLATILITY_PENALTY),
        (Horizon.LONG, 0.5 * 0.2 - (5 / 15) * VOLATILITY_PENALTY),
    ])
    def test_favorability(self, horizon, expected):
        score = compute_scores(make_asset("X", 5.0), 0.0, 0.0, horizon)
        assert score.favorability == pytest.approx(expected)

    def test_sentiment_contributions(self):
        base = compute_scores(make_asset("X", 0.0), 0.0, 0.0, Horizon.SHORT)
        boosted = compute_scores(make_asset("X", 0.0), 1.0, 0.5, Horizon.SHORT)
        assert boosted.favorability - base.favorability == pytest.approx(0.3 + 0.05)

    def test_missing_change(self):
        score = compute_scores(make_asset("X", None), 0.0, 0.0)
        assert score.raw_change == 0.0
        assert score.favorability == 0.0
        assert score.risk == 0.0

    def test_oversold_bitcoin_with_launch_news(self):
        asset = make_asset("BTC", -8.0, 65000.0, "bitcoin", "Bitcoin", volume=2e9)
        news = [make_news("Bitcoin launch partnership announced")]

        result = ScoringEngine().analyze([asset], news, horizon="short")
        scored = result.all[0]
        without_news = compute_scores(asset, 0.0, result.global_sentiment, Horizon.SHORT)

        assert scored.score.asymmetry >= 0.8
        assert scored.score.sentiment > 0
        assert scored.score.favorability > without_news.favorability


# ============================================================
# TEST: RANKING
# ============================================================

class TestRanking:
    """Bucket selection and exclusivity."""

    def test_buckets(self, engine, ladder):
        result = engine.analyze(ladder)

        assert ids(result.best) == ["aaa", "bbb", "ccc"]
        assert ids(result.avoid) == ["hhh", "ggg", "fff"]
        # risk > 0.4 candidates not already picked; no back-fill
        assert ids(result.trump) == ["tether"]

    def test_stablecoins_never_avoided(self, engine, ladder):
        result = engine.analyze(ladder)
        assert "USDT" not in [s.asset.symbol for s in result.avoid]

    def test_buckets_disjoint_and_bounded(self, engine, ladder):
        news = [make_news("AAA lawsuit"), make_news("HHH launch"), make_news("Market crash and ban")]
        for horizon in Horizon:
            result = engine.analyze(ladder, news, horizon)
            best, avoid, trump = set(ids(result.best)), set(ids(result.avoid)), set(ids(result.trump))
            assert not best & avoid
            assert not best & trump
            assert not avoid & trump
            assert all(len(b) <= BUCKET_SIZE for b in (result.best, result.avoid, result.trump))

    def test_every_asset_once(self, engine, ladder):
        result = engine.analyze(ladder)
        assert len(result.all) == len(ladder)
        assert sorted(ids(result.all)) == sorted(a.id for a in ladder)

    def test_all_sorted_by_favorability(self, engine, ladder):
        favorability = [s.score.favorability for s in engine.analyze(ladder).all]
        assert favorability == sorted(favorability, reverse=True)

    def test_small_market(self, engine):
        result = engine.analyze([make_asset("BTC", 1.0), make_asset("ETH", -1.0)])
        assert len(result.best) == 2
        assert result.avoid == ()
        assert result.trump == ()

    def test_ties_keep_market_order(self, engine):
        market = [make_asset(s, 0.0) for s in ("ONE", "TWO", "THREE", "FOUR")]
        assert ids(engine.analyze(market).best) == ["one", "two", "three"]

    def test_rank_direct(self, engine, ladder):
        scored = [engine.score_asset(a, [], 0.0, Horizon.SHORT) for a in ladder]
        best, avoid, trump, everything = rank(scored)
        assert len(everything) == len(scored)


# ============================================================
# TEST: ENGINE
# ============================================================

class TestEngine:
    """analyze() contract."""

    def test_empty_market(self, engine):
        result = engine.analyze([], [make_news("Bitcoin surges")])
        assert result.is_empty
        assert result.best == result.avoid == result.trump == result.all == ()
        assert result.weights == HORIZON_WEIGHTS[Horizon.SHORT]

    def test_default_horizon(self):
        result = ScoringEngine(default_horizon="long").analyze([make_asset("BTC", 1.0)])
        assert result.horizon is Horizon.LONG

    def test_deterministic(self, engine, ladder):
        news = [make_news("EEE upgrade")]
        assert engine.analyze(ladder, news).to_dict() == engine.analyze(ladder, news).to_dict()

    def test_to_dict(self, engine, ladder):
        data = engine.analyze(ladder, horizon=Horizon.LONG).to_dict()
        assert data["horizon"] == "long"
        assert data["weights"]["volatility"] == -0.5
        assert len(data["all"]) == len(ladder)

        top = max(data["all"], key=lambda s: s["score"]["favorability"])
        assert data["best"][0]["asset"]["symbol"] == top["asset"]["symbol"]
        assert data["best"][0] == data["all"][0]

    def test_unknown_horizon(self, engine):
        with pytest.raises(ValueError):
            engine.analyze([make_asset("BTC")], horizon="forever")


# ============================================================
# TEST: NARRATIVE
# ============================================================

class TestNarrative:
    """Generated plain-text analysis."""

    def test_outcome_range(self):
        upside, downside = outcome_range(100.0, 4.0)
        assert upside == pytest.approx(104.5)
        assert downside == pytest.approx(95.5)

    def test_sections_and_confidence(self):
        asset = make_asset("SOL", 8.0, 150.0, name="Solana")
        score = compute_scores(asset, 0.4, 0.1, Horizon.SHORT)

        analysis = generate_analysis(asset, score, [make_news("Solana launch")], 0.1)

        assert len(analysis.sections) == 10
        assert analysis.sections[0].title == "Market Context"
        assert analysis.sections[-1].title == "Final Synthesis"
        assert "Risk-On" in analysis.context
        assert analysis.confidence == round((0.5 + abs(score.favorability) / 2) * 100)
        assert analysis.summary.startswith(trend_label(score))

    def test_labels(self):
        bullish = compute_scores(make_asset("X", 10.0), 1.0, 0.0)
        bearish = compute_scores(make_asset("X", -10.0), -1.0, 0.0)
        assert trend_label(bullish) == "Bullish"
        assert trend_label(bearish) == "Bearish"
        assert volatility_label(bearish) == "High Volatility (Expansion)"
        assert volatility_label(compute_scores(make_asset("X", 1.0), 0.0, 0.0)) == "Low Volatility (Compression)"

    def test_small_price_precision(self):
        asset = make_asset("DOGE", 2.0, 0.1234)
        score = compute_scores(asset, 0.0, 0.0)
        outcome = generate_analysis(asset, score, [], 0.0).sections[7].content
        assert "Upside Target: $0.1271" in outcome

    def test_no_news_text(self):
        asset = make_asset("ADA")
        analysis = generate_analysis(asset, compute_scores(asset, 0.0, -0.2), [], -0.2, Horizon.LONG)
        assert "Risk-Off" in analysis.context
        assert "No asset-specific headlines" in analysis.sections[5].content
        assert "2-5 days" in analysis.sections[8].content
