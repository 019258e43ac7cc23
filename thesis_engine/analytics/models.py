"""
Analysis Snapshots & Models
---------------------------
Per-instrument analysis record, driver definitions and the closed
enumerations produced by thesis synthesis.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class MarketThesis(Enum):
    BULLISH_REVERSAL_AT_SUPPORT = "Bullish_Reversal_At_Support"
    BEARISH_REVERSAL_AT_RESISTANCE = "Bearish_Reversal_At_Resistance"
    BULLISH_BREAKOUT_ATTEMPT = "Bullish_Breakout_Attempt"
    BEARISH_BREAKDOWN_ATTEMPT = "Bearish_Breakdown_Attempt"
    BULLISH_TREND_CONTINUATION = "Bullish_Trend_Continuation"
    BEARISH_TREND_CONTINUATION = "Bearish_Trend_Continuation"
    HIGH_VOLATILITY_CHOPPY = "High_Volatility_Choppy"
    BALANCING_RANGE_BOUND = "Balancing_Range_Bound"
    INDETERMINATE = "Indeterminate"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ")


class DominantPlayer(Enum):
    BUYERS = "Buyers"
    SELLERS = "Sellers"
    BALANCE = "Balance"


class PrimarySignal(Enum):
    INITIALIZING = "Initializing"
    BULLISH = "Bullish"
    BEARISH = "Bearish"
    NEUTRAL = "Neutral"


class MarketPhase(Enum):
    PRE_OPEN = "PreOpen"
    OPENING = "Opening"
    NORMAL = "Normal"
    CLOSING = "Closing"
    POST_CLOSE = "PostClose"


NEUTRAL_THESIS = "Neutral"


@dataclass(frozen=True)
class SignalDriver:
    name: str
    weight: int  # positive = bullish, negative = bearish
    enabled: bool = True

    def describe(self) -> str:
        sign = "+" if self.weight > 0 else ""
        return f"{self.name} ({sign}{self.weight})"


@dataclass
class InstrumentQuote:
    """Session open and last price for one instrument (breadth input)."""
    symbol: str
    open: float
    ltp: float
    underlying_symbol: Optional[str] = None


@dataclass
class AnalysisResult:
    """
    Mutable per-instrument analysis record.

    Upstream analytics populate the indicator fields before each tick;
    thesis synthesis overwrites the output fields in place.
    """
    # Identification
    security_id: str
    symbol: str = ""
    instrument_group: str = "INDEX"

    # Price levels
    ltp: float = 0.0
    developing_poc: float = 0.0
    rsi_value_5min: float = 50.0

    # Categorical indicator states
    candle_signal_5min: str = "N/A"
    day_range_signal: str = "N/A"
    vwap_band_signal: str = "N/A"
    market_profile_signal: str = "N/A"
    volume_signal: str = "Neutral"
    micro_flow_signal: str = "N/A"
    institutional_intent: str = "N/A"
    price_vs_vwap_signal: str = "N/A"
    ema_signal_5min: str = "N/A"
    oi_signal: str = "N/A"
    gamma_signal: str = "N/A"
    iv_skew_signal: str = "N/A"
    initial_balance_signal: str = "N/A"
    volatility_state_signal: str = "N/A"
    atr_signal_5min: str = "N/A"
    obv_divergence_signal_5min: str = "N/A"
    rsi_signal_5min: str = "N/A"
    market_structure: str = "N/A"
    market_regime: str = "N/A"

    # Options gamma exposure
    gex_flip_point: float = 0.0
    net_gex: float = 0.0
    max_gex_level: float = 0.0

    # Synthesized output
    market_thesis: MarketThesis = MarketThesis.INDETERMINATE
    bullish_drivers: List[str] = field(default_factory=list)
    bearish_drivers: List[str] = field(default_factory=list)
    conviction_score: int = 0
    primary_signal: PrimarySignal = PrimarySignal.INITIALIZING
    final_trade_signal: str = ""
    active_thesis: str = NEUTRAL_THESIS
    active_thesis_entry_price: float = 0.0
    dominant_player: DominantPlayer = DominantPlayer.BALANCE
    market_narrative: str = ""
