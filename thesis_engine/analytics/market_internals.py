"""
Market Internals
----------------
Participation score: does the index move agree with its heavyweights?

Auxiliary input only; thesis synthesis does not depend on it.
"""
from typing import Dict, Iterable
import logging

import numpy as np
import pandas as pd

from thesis_engine.analytics.models import InstrumentQuote


logger = logging.getLogger(__name__)

NEUTRAL_SCORE = 50
DIVERGENCE_SCORE = 10
MIN_INDEX_MOVE = 0.001   # 0.1%; smaller index moves never count as divergence
MAX_SCORED_GAP = 0.01    # gaps of 1% or more score 0


def calculate_participation_score(
    index_quote: InstrumentQuote,
    constituents: Iterable[InstrumentQuote],
    heavyweights: Dict[str, float]
) -> int:
    """
    Score 0-100 of how closely the index tracks its weighted heavyweights.

    Args:
        index_quote: Index open/LTP
        constituents: Quotes for any instruments; only heavyweights are used
        heavyweights: Underlying symbol (any case) -> index weight

    Returns:
        50 when there is no usable reference, 0 when no heavyweight is quoted,
        10 when the index and heavyweights move in opposite directions,
        otherwise 100 minus the gap in basis points (floored at 0).
    """
    if index_quote.open == 0:
        return NEUTRAL_SCORE

    weights = {symbol.upper(): float(w) for symbol, w in heavyweights.items()}

    rows = [
        {"symbol": q.underlying_symbol.upper(), "open": q.open, "ltp": q.ltp}
        for q in constituents
        if q.underlying_symbol and q.underlying_symbol.upper() in weights
    ]
    if not rows:
        return 0

    df = pd.DataFrame(rows)
    df = df[df["open"] > 0]
    if df.empty:
        return NEUTRAL_SCORE

    df["weight"] = df["symbol"].map(weights)
    df["pct_change"] = (df["ltp"] - df["open"]) / df["open"]

    total_weight = df["weight"].sum()
    if total_weight == 0:
        return NEUTRAL_SCORE

    heavyweight_change = float((df["pct_change"] * df["weight"]).sum() / total_weight)
    index_change = (index_quote.ltp - index_quote.open) / index_quote.open

    if np.sign(index_change) != np.sign(heavyweight_change) and abs(index_change) > MIN_INDEX_MOVE:
        logger.debug(
            f"Index/heavyweight divergence: index {index_change:.4%} vs heavyweights {heavyweight_change:.4%}"
        )
        return DIVERGENCE_SCORE

    gap = abs(index_change - heavyweight_change)
    score = 100 - int(min(gap, MAX_SCORED_GAP) * 10000)
    return max(0, min(100, score))
