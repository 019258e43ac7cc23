"""
Thread-Safe Analysis State
==========================

Process-lifetime state shared by every instrument evaluation:

- current market phase
- last signal-notification time per instrument
- bounded recent-candle history per instrument per timeframe

All access goes through a single RLock, so evaluations running on
different worker threads can read and write safely. Candle readers get
a list copy, never the live deque.

Usage:
    state = AnalysisStateManager()

    # Feed candles from the candle cache
    state.add_candle(security_id, timedelta(minutes=5), bar)

    # Read latest candles (None if nothing cached)
    candles = state.get_candles(security_id, timedelta(minutes=5))

    # Debounce: atomically claim the notification slot
    if state.claim_signal_slot(security_id, now, window_seconds=60):
        ...
"""

import threading
from collections import deque
from datetime import datetime, timedelta
from typing import Deque, Dict, Iterable, List, Optional, Tuple
import logging

from thesis_engine.analytics.models import MarketPhase
from thesis_engine.clock import Clock
from thesis_engine.events import OHLCVBar
from thesis_engine.state.market_hours import MarketHours

logger = logging.getLogger(__name__)

CandleKey = Tuple[str, timedelta]


class AnalysisStateManager:
    """
    Shared per-instrument state for thesis synthesis.
    """

    DEFAULT_HISTORY_SIZE = 200

    def __init__(
        self,
        history_size: Optional[int] = None,
        market_phase: MarketPhase = MarketPhase.NORMAL
    ):
        if history_size is None:
            from config.settings import CANDLE_HISTORY_SIZE
            history_size = CANDLE_HISTORY_SIZE
        self.history_size = history_size

        self._market_phase = market_phase
        self._last_signal_time: Dict[str, datetime] = {}
        self._candles: Dict[CandleKey, Deque[OHLCVBar]] = {}

        # Thread safety
        self._lock = threading.RLock()

        logger.debug(f"AnalysisStateManager initialized (history_size={history_size})")

    # ------------------------------------------------------------------
    # Market phase
    # ------------------------------------------------------------------
    @property
    def current_market_phase(self) -> MarketPhase:
        with self._lock:
            return self._market_phase

    @current_market_phase.setter
    def current_market_phase(self, phase: MarketPhase) -> None:
        with self._lock:
            if phase != self._market_phase:
                logger.info(f"Market phase: {self._market_phase.value} -> {phase.value}")
            self._market_phase = phase

    def refresh_market_phase(self, clock: Clock) -> MarketPhase:
        """Recompute the phase from the clock and store it."""
        phase = MarketHours.get_market_phase(clock.now())
        self.current_market_phase = phase
        return phase

    # ------------------------------------------------------------------
    # Notification debounce
    # ------------------------------------------------------------------
    def last_signal_time(self, security_id: str) -> Optional[datetime]:
        with self._lock:
            return self._last_signal_time.get(security_id)

    def claim_signal_slot(self, security_id: str, now: datetime, window_seconds: float) -> bool:
        """
        Check-and-set the last notification time in one step.

        Returns:
            True if no notification fired within window_seconds and the
            slot now belongs to the caller; False if debounced.
        """
        with self._lock:
            last = self._last_signal_time.get(security_id)
            if last is not None and (now - last).total_seconds() < window_seconds:
                return False
            self._last_signal_time[security_id] = now
            return True

    # ------------------------------------------------------------------
    # Candle history
    # ------------------------------------------------------------------
    def add_candle(self, security_id: str, timeframe: timedelta, bar: OHLCVBar) -> None:
        key = (security_id, timeframe)
        with self._lock:
            history = self._candles.get(key)
            if history is None:
                history = deque(maxlen=self.history_size)
                self._candles[key] = history
            history.append(bar)

    def set_candles(self, security_id: str, timeframe: timedelta, bars: Iterable[OHLCVBar]) -> None:
        """Replace the cached history (e.g. after a backfill)."""
        with self._lock:
            self._candles[(security_id, timeframe)] = deque(bars, maxlen=self.history_size)

    def get_candles(self, security_id: str, timeframe: timedelta) -> Optional[List[OHLCVBar]]:
        """
        Ordered bars (oldest first) for an instrument/timeframe.

        Returns:
            A copy of the cached bars, or None if nothing is cached.
        """
        with self._lock:
            history = self._candles.get((security_id, timeframe))
            if not history:
                return None
            return list(history)

    def clear(self) -> None:
        with self._lock:
            self._last_signal_time.clear()
            self._candles.clear()
