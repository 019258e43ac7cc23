"""
Market Hours Utility
--------------------
Maps timestamps to Indian cash-market session phases.

Indian market hours (IST):
- Pre-open: before 9:15 AM
- Opening: 9:15 AM - 9:45 AM (volatile open, dampened confidence)
- Normal: 9:45 AM - 3:00 PM
- Closing: 3:00 PM - 3:30 PM
- Post-close: after 3:30 PM
"""

from datetime import datetime, time
from typing import Optional
import pytz

from thesis_engine.analytics.models import MarketPhase


class MarketHours:
    """
    Utility class for Indian market session phases.

    All times are in IST (Indian Standard Time).

    Usage:
        phase = MarketHours.get_market_phase()
        if phase == MarketPhase.OPENING:
            ...
    """

    IST = pytz.timezone("Asia/Kolkata")

    MARKET_OPEN = time(9, 15)
    OPENING_END = time(9, 45)
    CLOSING_START = time(15, 0)
    MARKET_CLOSE = time(15, 30)

    @classmethod
    def get_ist_now(cls) -> datetime:
        return datetime.now(cls.IST)

    @classmethod
    def to_ist(cls, dt: datetime) -> datetime:
        """
        Convert a datetime to IST.

        Args:
            dt: Datetime to convert (can be naive or aware).

        Returns:
            Datetime in IST timezone.
        """
        if dt.tzinfo is None:
            # Assume naive datetime is already IST
            return cls.IST.localize(dt)
        return dt.astimezone(cls.IST)

    @classmethod
    def get_market_phase(cls, dt: Optional[datetime] = None) -> MarketPhase:
        """
        Session phase for a timestamp.

        Args:
            dt: Datetime to check. Defaults to current IST time.
        """
        dt = cls.get_ist_now() if dt is None else cls.to_ist(dt)
        current = dt.time()

        if current < cls.MARKET_OPEN:
            return MarketPhase.PRE_OPEN
        if current < cls.OPENING_END:
            return MarketPhase.OPENING
        if current < cls.CLOSING_START:
            return MarketPhase.NORMAL
        if current < cls.MARKET_CLOSE:
            return MarketPhase.CLOSING
        return MarketPhase.POST_CLOSE
