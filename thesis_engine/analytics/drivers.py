"""
Driver Predicate Table
----------------------
Maps each named signal driver to a boolean condition over an
AnalysisResult and its latest 5-minute candle.

Drivers register themselves by name, so new conditions can be added
without touching the playbook cascade or the scorer. Unknown names are
simply inactive.
"""
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence
import logging

from thesis_engine.analytics.models import AnalysisResult
from thesis_engine.events import OHLCVBar


logger = logging.getLogger(__name__)

# Max-GEX pinning band as a fraction of LTP
PINNING_PROXIMITY_PCT = 0.001


@dataclass(frozen=True)
class DriverFeatures:
    """Reusable boolean features derived once per evaluation."""
    is_bullish_pattern: bool
    is_bearish_pattern: bool
    at_support: bool
    at_resistance: bool
    volume_confirmed: bool
    in_trend_thesis: bool
    is_bullish_candle: bool
    is_bearish_candle: bool

    @classmethod
    def from_result(
        cls,
        r: AnalysisResult,
        candles: Optional[Sequence[OHLCVBar]] = None
    ) -> "DriverFeatures":
        last_candle = candles[-1] if candles else None

        # NOTE: read before this tick's cascade runs, so the trend gate
        # reflects the previous tick's playbook.
        in_trend_thesis = "Trend" in r.market_thesis.value

        return cls(
            is_bullish_pattern="Bullish" in r.candle_signal_5min,
            is_bearish_pattern="Bearish" in r.candle_signal_5min,
            at_support=(
                r.day_range_signal == "Near Low"
                or r.vwap_band_signal == "At Lower Band"
                or "VAL" in r.market_profile_signal
            ),
            at_resistance=(
                r.day_range_signal == "Near High"
                or r.vwap_band_signal == "At Upper Band"
                or "VAH" in r.market_profile_signal
            ),
            volume_confirmed=r.volume_signal == "Volume Burst",
            in_trend_thesis=in_trend_thesis,
            is_bullish_candle=last_candle is not None and last_candle.is_bullish,
            is_bearish_candle=last_candle is not None and last_candle.is_bearish,
        )


DriverPredicate = Callable[[AnalysisResult, DriverFeatures], bool]

DRIVER_PREDICATES: Dict[str, DriverPredicate] = {}


def register_driver(name: str, predicate: DriverPredicate) -> None:
    """
    Register (or replace) the condition behind a driver name.

    Args:
        name: Driver name as it appears in the strategy settings
        predicate: Callable(result, features) -> bool
    """
    if name in DRIVER_PREDICATES:
        logger.warning(f"Driver '{name}' already registered, overwriting")
    DRIVER_PREDICATES[name] = predicate


def driver(name: str):
    """Decorator form of register_driver."""
    def decorator(fn: DriverPredicate) -> DriverPredicate:
        register_driver(name, fn)
        return fn
    return decorator


def list_registered_drivers() -> List[str]:
    return list(DRIVER_PREDICATES.keys())


def is_signal_active(
    r: AnalysisResult,
    driver_name: str,
    candles: Optional[Sequence[OHLCVBar]] = None,
    features: Optional[DriverFeatures] = None
) -> bool:
    """
    Evaluate a single driver against the current analysis record.

    Args:
        r: Analysis record for the instrument
        driver_name: Registered driver name
        candles: Recent 5-minute candles (oldest first), or None
        features: Pre-computed features; derived from r/candles when omitted

    Returns:
        True when the driver's condition holds. Unknown drivers are False.
    """
    predicate = DRIVER_PREDICATES.get(driver_name)
    if predicate is None:
        return False
    if features is None:
        features = DriverFeatures.from_result(r, candles)
    return bool(predicate(r, features))


# ------------------------------------------------------------------
# Candle patterns
# ------------------------------------------------------------------
@driver("Bullish Pattern at Key Support")
def _bullish_pattern_at_support(r, f):
    return f.is_bullish_pattern and f.at_support


@driver("Bearish Pattern at Key Resistance")
def _bearish_pattern_at_resistance(r, f):
    return f.is_bearish_pattern and f.at_resistance


@driver("Bullish Pattern with Volume Confirmation")
def _bullish_pattern_volume(r, f):
    return f.is_bullish_pattern and f.volume_confirmed


@driver("Bearish Pattern with Volume Confirmation")
def _bearish_pattern_volume(r, f):
    return f.is_bearish_pattern and f.volume_confirmed


@driver("Bullish Pattern (Standalone)")
def _bullish_pattern_standalone(r, f):
    return f.is_bullish_pattern and not f.at_support and not f.volume_confirmed


@driver("Bearish Pattern (Standalone)")
def _bearish_pattern_standalone(r, f):
    return f.is_bearish_pattern and not f.at_resistance and not f.volume_confirmed


# ------------------------------------------------------------------
# Order flow & intent
# ------------------------------------------------------------------
@driver("Aggressive Buying Pressure")
def _aggressive_buying(r, f):
    return r.micro_flow_signal == "Aggressive Buying"


@driver("Aggressive Selling Pressure")
def _aggressive_selling(r, f):
    return r.micro_flow_signal == "Aggressive Selling"


@driver("Institutional Intent is Bullish")
def _intent_bullish(r, f):
    return "Bullish" in r.institutional_intent


@driver("Institutional Intent is Bearish")
def _intent_bearish(r, f):
    return "Bearish" in r.institutional_intent


# ------------------------------------------------------------------
# Trend
# ------------------------------------------------------------------
@driver("Price above VWAP")
def _above_vwap(r, f):
    return r.price_vs_vwap_signal == "Above VWAP"


@driver("Price below VWAP")
def _below_vwap(r, f):
    return r.price_vs_vwap_signal == "Below VWAP"


@driver("5m EMA confirms bullish trend")
def _ema_bullish(r, f):
    return r.ema_signal_5min == "Bullish Cross"


@driver("5m EMA confirms bearish trend")
def _ema_bearish(r, f):
    return r.ema_signal_5min == "Bearish Cross"


@driver("Bullish Trend Continuation")
def _bullish_continuation(r, f):
    return (
        r.active_thesis == "Bullish_Trend_Continuation"
        and r.ltp > r.active_thesis_entry_price
        and r.price_vs_vwap_signal == "Above VWAP"
    )


@driver("Bearish Trend Continuation")
def _bearish_continuation(r, f):
    return (
        r.active_thesis == "Bearish_Trend_Continuation"
        and r.ltp < r.active_thesis_entry_price
        and r.price_vs_vwap_signal == "Below VWAP"
    )


# ------------------------------------------------------------------
# Derivatives positioning
# ------------------------------------------------------------------
@driver("OI confirms new longs")
def _oi_longs(r, f):
    return r.oi_signal == "Long Buildup"


@driver("OI confirms new shorts")
def _oi_shorts(r, f):
    return r.oi_signal == "Short Buildup"


@driver("High OTM Call Gamma")
def _call_gamma(r, f):
    return r.gamma_signal == "High OTM Call Gamma"


@driver("High OTM Put Gamma")
def _put_gamma(r, f):
    return r.gamma_signal == "High OTM Put Gamma"


@driver("Bullish Skew Divergence (Full)")
def _bullish_skew(r, f):
    return "Bullish" in r.iv_skew_signal and f.in_trend_thesis


@driver("Bearish Skew Divergence (Full)")
def _bearish_skew(r, f):
    return "Bearish" in r.iv_skew_signal and f.in_trend_thesis


# ------------------------------------------------------------------
# Market profile & initial balance
# ------------------------------------------------------------------
@driver("True Acceptance Above Y-VAH")
def _acceptance_above(r, f):
    return r.market_profile_signal == "True Acceptance Above Y-VAH"


@driver("True Acceptance Below Y-VAL")
def _acceptance_below(r, f):
    return r.market_profile_signal == "True Acceptance Below Y-VAL"


@driver("Look Above and Fail at Y-VAH")
def _look_above_fail(r, f):
    return r.market_profile_signal == "Look Above and Fail at Y-VAH"


@driver("Look Below and Fail at Y-VAL")
def _look_below_fail(r, f):
    return r.market_profile_signal == "Look Below and Fail at Y-VAL"


@driver("IB breakout is extending")
def _ib_extension_up(r, f):
    return r.initial_balance_signal == "IB Extension Up"


@driver("IB breakdown is extending")
def _ib_extension_down(r, f):
    return r.initial_balance_signal == "IB Extension Down"


# ------------------------------------------------------------------
# Volatility & volume
# ------------------------------------------------------------------
@driver("Bullish Breakout on Volume Burst")
def _bullish_volume_breakout(r, f):
    return f.volume_confirmed and f.is_bullish_candle


@driver("Bearish Breakdown on Volume Burst")
def _bearish_volume_breakdown(r, f):
    return f.volume_confirmed and f.is_bearish_candle


@driver("Option Breakout Setup")
def _iv_squeeze(r, f):
    return r.volatility_state_signal == "IV Squeeze Setup"


@driver("Range Contraction")
def _range_contraction(r, f):
    return r.atr_signal_5min == "Vol Contracting"


@driver("Low volume suggests exhaustion (Bullish)")
def _exhaustion_bullish(r, f):
    return (
        not f.volume_confirmed
        and r.atr_signal_5min == "Vol Contracting"
        and r.day_range_signal == "Near Low"
    )


@driver("Low volume suggests exhaustion (Bearish)")
def _exhaustion_bearish(r, f):
    return (
        not f.volume_confirmed
        and r.atr_signal_5min == "Vol Contracting"
        and r.day_range_signal == "Near High"
    )


# ------------------------------------------------------------------
# Momentum divergence
# ------------------------------------------------------------------
@driver("Bullish OBV Div at range low")
def _bullish_obv_div(r, f):
    return "Bullish" in r.obv_divergence_signal_5min and f.at_support and f.in_trend_thesis


@driver("Bearish OBV Div at range high")
def _bearish_obv_div(r, f):
    return "Bearish" in r.obv_divergence_signal_5min and f.at_resistance and f.in_trend_thesis


@driver("Bullish RSI Div at range low")
def _bullish_rsi_div(r, f):
    return "Bullish" in r.rsi_signal_5min and f.at_support and f.in_trend_thesis


@driver("Bearish RSI Div at range high")
def _bearish_rsi_div(r, f):
    return "Bearish" in r.rsi_signal_5min and f.at_resistance and f.in_trend_thesis


# ------------------------------------------------------------------
# Gamma exposure levels
# ------------------------------------------------------------------
@driver("Price Above GEX Flip Point (Bullish Hedging Flow)")
def _above_gex_flip(r, f):
    return r.gex_flip_point > 0 and r.ltp > r.gex_flip_point


@driver("Price Below GEX Flip Point (Bearish Hedging Flow)")
def _below_gex_flip(r, f):
    return r.gex_flip_point > 0 and r.ltp < r.gex_flip_point


@driver("Net GEX is Negative (Market Makers are Short Gamma, Volatility Amplified)")
def _net_gex_negative(r, f):
    return r.net_gex < 0


@driver("Net GEX is Positive (Volatility Dampened)")
def _net_gex_positive(r, f):
    return r.net_gex > 0


@driver("Price Approaching Max GEX Level (Pinning Risk)")
def _max_gex_pinning(r, f):
    if r.max_gex_level <= 0 or r.ltp <= 0:
        return False
    return abs(r.ltp - r.max_gex_level) < r.ltp * PINNING_PROXIMITY_PCT
