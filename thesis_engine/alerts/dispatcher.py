"""
Alert Dispatcher
----------------
Fire-and-forget hand-off of signal alerts to a background worker.
"""
import copy
import logging
import queue
import threading
from typing import Callable, Optional

from thesis_engine.analytics.models import AnalysisResult, PrimarySignal

logger = logging.getLogger(__name__)

AlertSink = Callable[[AnalysisResult, PrimarySignal], object]

_STOP = object()


class AlertDispatcher:
    """
    Background worker that delivers alerts from a queue.

    submit() only enqueues and returns. Every delivery error is caught and
    logged on the worker thread, so it can never reach the evaluation call.
    Delivery retries belong to the sink.
    """

    def __init__(self, sink: AlertSink, max_queue_size: int = 0):
        self.sink = sink
        self._queue: "queue.Queue" = queue.Queue(maxsize=max_queue_size)
        self._thread: Optional[threading.Thread] = None
        self._start_lock = threading.Lock()

        # Stats
        self.total_submitted = 0
        self.total_delivered = 0
        self.total_failed = 0
        self.total_dropped = 0
        self._stats_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """Starts the worker thread (idempotent)."""
        with self._start_lock:
            if self.is_running:
                return
            self._thread = threading.Thread(target=self._run, name="alert-dispatcher", daemon=True)
            self._thread.start()

    def stop(self, timeout: Optional[float] = 5.0):
        """Delivers what is already queued, then stops the worker."""
        if not self.is_running:
            return
        self._queue.put(_STOP)
        self._thread.join(timeout)

    def submit(self, result: AnalysisResult, previous_signal: PrimarySignal) -> bool:
        """
        Enqueue an alert for background delivery.

        The record is copied so later ticks cannot change what gets sent.

        Returns:
            False if the queue is full and the alert was dropped.
        """
        self.start()
        try:
            self._queue.put_nowait((copy.copy(result), previous_signal))
        except queue.Full:
            with self._stats_lock:
                self.total_dropped += 1
            logger.warning(f"[{result.security_id}] Alert queue full, dropping alert")
            return False
        with self._stats_lock:
            self.total_submitted += 1
        return True

    def join(self):
        """Block until every queued alert has been processed (tests, shutdown)."""
        self._queue.join()

    def _run(self):
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                result, previous_signal = item
                self._deliver(result, previous_signal)
            finally:
                self._queue.task_done()

    def _deliver(self, result: AnalysisResult, previous_signal: PrimarySignal):
        try:
            self.sink(result, previous_signal)
        except Exception as e:
            with self._stats_lock:
                self.total_failed += 1
            logger.error(f"[{result.security_id}] Failed to send signal alert: {e}")
            return
        with self._stats_lock:
            self.total_delivered += 1
