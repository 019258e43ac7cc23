"""
Signal Change Notifier
----------------------
Decides whether a primary-signal change is logged and alerted.
"""
from typing import Optional
import logging
import threading

from thesis_engine.alerts.dispatcher import AlertDispatcher
from thesis_engine.analytics.models import AnalysisResult, PrimarySignal
from thesis_engine.clock import Clock
from thesis_engine.persistence.signal_logger import SignalLoggerService
from thesis_engine.state.analysis_state import AnalysisStateManager


logger = logging.getLogger(__name__)


class SignalChangeNotifier:
    """
    Gate between thesis synthesis and the log/alert collaborators.

    A change fires only when:
    - the primary signal actually changed,
    - the previous signal is not the Initializing sentinel,
    - nothing fired for the instrument within the debounce window.

    The debounce slot is claimed before any side effect, so two concurrent
    evaluations of one instrument cannot both fire. Log failures are logged
    with traceback and do not stop the alert; alert delivery runs on the
    dispatcher's worker.
    """

    def __init__(
        self,
        state: AnalysisStateManager,
        signal_logger: Optional[SignalLoggerService],
        alert_dispatcher: Optional[AlertDispatcher],
        clock: Clock,
        debounce_seconds: Optional[float] = None
    ):
        if debounce_seconds is None:
            from config.settings import SIGNAL_DEBOUNCE_SECONDS
            debounce_seconds = SIGNAL_DEBOUNCE_SECONDS

        self.state = state
        self.signal_logger = signal_logger
        self.alert_dispatcher = alert_dispatcher
        self.clock = clock
        self.debounce_seconds = debounce_seconds

        self.total_fired = 0
        self.total_debounced = 0
        self._stats_lock = threading.Lock()

    def should_consider(self, old_signal: PrimarySignal, new_signal: PrimarySignal) -> bool:
        return new_signal != old_signal and old_signal != PrimarySignal.INITIALIZING

    def notify(self, result: AnalysisResult, old_signal: PrimarySignal) -> bool:
        """
        Log and alert a signal change if it passes the gate.

        Args:
            result: Analysis record already carrying the new primary signal
            old_signal: Primary signal before this evaluation

        Returns:
            True if the change was logged/alerted.
        """
        if not self.should_consider(old_signal, result.primary_signal):
            return False

        now = self.clock.now()
        if not self.state.claim_signal_slot(result.security_id, now, self.debounce_seconds):
            with self._stats_lock:
                self.total_debounced += 1
            logger.debug(
                f"[{result.security_id}] Signal change {old_signal.value} -> "
                f"{result.primary_signal.value} debounced"
            )
            return False

        with self._stats_lock:
            self.total_fired += 1
        logger.info(
            f"[{result.security_id}] Signal change {old_signal.value} -> "
            f"{result.primary_signal.value} ({result.final_trade_signal}, conviction {result.conviction_score})"
        )

        if self.signal_logger is not None:
            try:
                self.signal_logger.log_signal(result, logged_at=now)
            except Exception:
                logger.exception(f"[{result.security_id}] Signal log write failed")

        if self.alert_dispatcher is not None:
            try:
                self.alert_dispatcher.submit(result, old_signal)
            except Exception:
                logger.exception(f"[{result.security_id}] Alert hand-off failed")

        return True
