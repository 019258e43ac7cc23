"""
Dominant Player Heuristic
-------------------------
Labels which side currently controls short-term price action.
"""
from typing import Tuple

from thesis_engine.analytics.models import AnalysisResult, DominantPlayer

DOMINANCE_RATIO = 1.5

RSI_BULLISH_LEVEL = 60
RSI_BEARISH_LEVEL = 40

# OI regime -> (buyer points, seller points)
OI_SCORES = {
    "Long Buildup": (2, 0),
    "Short Buildup": (0, 2),
    "Short Covering": (1, 0),
    "Long Unwinding": (0, 1),
}


def score_participants(r: AnalysisResult) -> Tuple[int, int]:
    """Returns (buyer_score, seller_score)."""
    buyer_score = 0
    seller_score = 0

    if r.price_vs_vwap_signal == "Above VWAP":
        buyer_score += 2
    elif r.price_vs_vwap_signal == "Below VWAP":
        seller_score += 2

    # Developing POC of 0 means the profile has not formed yet
    if r.developing_poc > 0:
        if r.ltp > r.developing_poc:
            buyer_score += 1
        elif r.ltp < r.developing_poc:
            seller_score += 1

    if r.ema_signal_5min == "Bullish Cross":
        buyer_score += 1
    elif r.ema_signal_5min == "Bearish Cross":
        seller_score += 1

    if r.rsi_value_5min > RSI_BULLISH_LEVEL:
        buyer_score += 1
    elif r.rsi_value_5min < RSI_BEARISH_LEVEL:
        seller_score += 1

    oi_buyer, oi_seller = OI_SCORES.get(r.oi_signal, (0, 0))
    buyer_score += oi_buyer
    seller_score += oi_seller

    return buyer_score, seller_score


def classify_dominance(buyer_score: int, seller_score: int) -> DominantPlayer:
    if buyer_score > seller_score * DOMINANCE_RATIO:
        return DominantPlayer.BUYERS
    if seller_score > buyer_score * DOMINANCE_RATIO:
        return DominantPlayer.SELLERS
    return DominantPlayer.BALANCE


def determine_dominant_player(r: AnalysisResult) -> DominantPlayer:
    return classify_dominance(*score_participants(r))
