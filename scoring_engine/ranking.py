"""
Scoring Engine - Ranking.

Splits scored assets into three mutually exclusive buckets of at
most three, identified by asset id:

- best:  highest favorability
- avoid: lowest favorability, stablecoins excluded, not in best
- trump: risk > 0.4, highest asymmetry + risk, not in best or avoid

Buckets are never back-filled; a bucket may hold fewer than three.
All sorts are stable, so ties keep market order.
"""

from typing import Sequence

from scoring_engine.models import ScoredAsset


BUCKET_SIZE = 3
STABLECOINS = frozenset({"USDT", "USDC", "DAI", "FDUSD"})
TRUMP_RISK_THRESHOLD = 0.4


def rank(scored: Sequence[ScoredAsset]) -> tuple[
    tuple[ScoredAsset, ...],
    tuple[ScoredAsset, ...],
    tuple[ScoredAsset, ...],
    tuple[ScoredAsset, ...],
]:
    """Return (best, avoid, trump, all)."""
    by_favorability = sorted(scored, key=lambda s: s.score.favorability, reverse=True)

    best = by_favorability[:BUCKET_SIZE]
    best_ids = {s.id for s in best}

    avoid_candidates = sorted(
        (s for s in scored if s.asset.symbol not in STABLECOINS),
        key=lambda s: s.score.favorability,
    )
    avoid = [s for s in avoid_candidates if s.id not in best_ids][:BUCKET_SIZE]
    avoid_ids = {s.id for s in avoid}

    trump_candidates = sorted(
        (s for s in scored if s.score.risk > TRUMP_RISK_THRESHOLD),
        key=lambda s: s.score.asymmetry + s.score.risk,
        reverse=True,
    )
    trump = [
        s for s in trump_candidates
        if s.id not in best_ids and s.id not in avoid_ids
    ][:BUCKET_SIZE]

    return tuple(best), tuple(avoid), tuple(trump), tuple(by_favorability)
