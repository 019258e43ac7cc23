"""
Clock - Single Source of Truth for Time
---------------------------------------
Abstracts time so debounce windows and market phases work in both
live evaluation and historical replay.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
import pytz


class Clock(ABC):
    """
    Abstract base class for all clocks.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Returns the current 'system' time (timezone-aware)."""
        pass


class RealTimeClock(Clock):
    """
    Clock implementation for live evaluation.
    """

    def __init__(self, timezone: str = 'Asia/Kolkata'):
        self.tz = pytz.timezone(timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz)


class ReplayClock(Clock):
    """
    Clock implementation for replay and tests.
    Time only advances when manually stepped.
    """

    def __init__(self, start_time: datetime):
        self._current_time = start_time

    def now(self) -> datetime:
        return self._current_time

    def set_time(self, dt: datetime):
        """Manually move the clock."""
        self._current_time = dt

    def advance(self, delta: timedelta):
        """Advance the clock by a duration."""
        self._current_time += delta
