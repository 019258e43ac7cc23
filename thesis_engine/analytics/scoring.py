"""
Confidence Scoring & Thesis Latch
---------------------------------
Turns the winning playbook's drivers into a conviction score, derives the
coarse primary signal and applies hysteresis to the active thesis.
"""
from typing import Iterable, Optional
import logging

from thesis_engine.analytics.models import (
    AnalysisResult,
    MarketPhase,
    MarketThesis,
    NEUTRAL_THESIS,
    PrimarySignal,
    SignalDriver,
)


logger = logging.getLogger(__name__)

OPENING_DAMPENING = 0.6

LATCH_THRESHOLD = 7    # |score| needed to switch the active thesis
SIGNAL_THRESHOLD = 3   # |score| needed for a directional primary signal


def calculate_confidence_score(drivers: Optional[Iterable[SignalDriver]]) -> int:
    """Sum of signed weights of the contributing drivers."""
    if not drivers:
        return 0
    return sum(d.weight for d in drivers)


def apply_phase_dampening(score: int, phase: MarketPhase) -> int:
    """
    Reduce confidence during the volatile session open.

    Uses Python's round() (half-to-even). An integer times 0.6 never lands
    exactly on .5, so the result is the same under half-up rounding.
    """
    if phase == MarketPhase.OPENING:
        return int(round(score * OPENING_DAMPENING))
    return score


def primary_signal_for(conviction: int) -> PrimarySignal:
    if conviction >= SIGNAL_THRESHOLD:
        return PrimarySignal.BULLISH
    if conviction <= -SIGNAL_THRESHOLD:
        return PrimarySignal.BEARISH
    return PrimarySignal.NEUTRAL


def apply_thesis_latch(r: AnalysisResult, thesis: MarketThesis, conviction: int) -> bool:
    """
    Update the sticky active thesis on the analysis record.

    Latches on |conviction| >= 7 when the playbook differs from the one
    already latched, resets to Neutral inside (-3, 3), otherwise holds.

    Returns:
        True if active_thesis or its entry price changed.
    """
    if abs(conviction) >= LATCH_THRESHOLD and r.active_thesis != thesis.value:
        logger.info(
            f"[{r.security_id}] Thesis latched: {r.active_thesis} -> {thesis.value} "
            f"@ {r.ltp} (conviction {conviction})"
        )
        r.active_thesis = thesis.value
        r.active_thesis_entry_price = r.ltp
        return True

    if -SIGNAL_THRESHOLD < conviction < SIGNAL_THRESHOLD:
        changed = r.active_thesis != NEUTRAL_THESIS or r.active_thesis_entry_price != 0
        if changed:
            logger.debug(f"[{r.security_id}] Thesis reset to Neutral (conviction {conviction})")
        r.active_thesis = NEUTRAL_THESIS
        r.active_thesis_entry_price = 0.0
        return changed

    return False
