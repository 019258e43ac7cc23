"""
Thesis Synthesizer
------------------
Per-tick orchestration for index instruments:

    dominant player -> playbook cascade -> confidence score
        -> thesis latch -> signal-change notification

The analysis record is updated in place; nothing is returned.
"""
from datetime import timedelta
from typing import Optional
import logging

from thesis_engine.analytics.dominant_player import determine_dominant_player
from thesis_engine.analytics.drivers import DRIVER_PREDICATES
from thesis_engine.analytics.models import AnalysisResult
from thesis_engine.analytics.notifier import SignalChangeNotifier
from thesis_engine.analytics.playbook import select_playbook
from thesis_engine.analytics.scoring import (
    apply_phase_dampening,
    apply_thesis_latch,
    calculate_confidence_score,
    primary_signal_for,
)
from thesis_engine.settings.strategy_settings import SettingsProvider
from thesis_engine.state.analysis_state import AnalysisStateManager


logger = logging.getLogger(__name__)

CANDLE_TIMEFRAME = timedelta(minutes=5)


class ThesisSynthesizer:
    """
    Combines driver signals into a playbook, conviction and active thesis.

    Safe to call concurrently for different instruments; all shared state
    lives in the AnalysisStateManager.
    """

    def __init__(
        self,
        settings: SettingsProvider,
        state: AnalysisStateManager,
        notifier: Optional[SignalChangeNotifier] = None,
        instrument_group: Optional[str] = None
    ):
        if instrument_group is None:
            from config.settings import THESIS_INSTRUMENT_GROUP
            instrument_group = THESIS_INSTRUMENT_GROUP

        self.settings = settings
        self.state = state
        self.notifier = notifier
        self.instrument_group = instrument_group

        unknown = sorted({d.name for d in settings.all_drivers()} - set(DRIVER_PREDICATES))
        if unknown:
            logger.warning(f"Configured drivers with no predicate (always inactive): {unknown}")

    def synthesize_trade_signal(self, result: AnalysisResult) -> None:
        if result.instrument_group != self.instrument_group:
            return

        result.dominant_player = determine_dominant_player(result)

        # Settings are read fresh every tick so reloads apply immediately
        candles = self.state.get_candles(result.security_id, CANDLE_TIMEFRAME)
        thesis, key_drivers = select_playbook(result, self.settings.strategy, candles)

        result.market_thesis = thesis
        result.bullish_drivers = [d.describe() for d in key_drivers if d.weight > 0]
        result.bearish_drivers = [d.describe() for d in key_drivers if d.weight < 0]

        conviction = calculate_confidence_score(key_drivers)
        conviction = apply_phase_dampening(conviction, self.state.current_market_phase)
        result.conviction_score = conviction

        new_primary_signal = primary_signal_for(conviction)
        apply_thesis_latch(result, thesis, conviction)

        old_primary_signal = result.primary_signal
        result.primary_signal = new_primary_signal
        result.final_trade_signal = thesis.display_name
        result.market_narrative = generate_market_narrative(result)

        if self.notifier is not None:
            self.notifier.notify(result, old_primary_signal)


def generate_market_narrative(r: AnalysisResult) -> str:
    return (
        f"Playbook: {r.final_trade_signal}. "
        f"Drivers: {len(r.bullish_drivers)} bullish vs. {len(r.bearish_drivers)} bearish. "
        f"Confidence: {r.conviction_score}."
    )
