import pytest
from datetime import datetime, timedelta

from thesis_engine.analytics import drivers
from thesis_engine.analytics.drivers import (
    DRIVER_PREDICATES,
    DriverFeatures,
    is_signal_active,
    list_registered_drivers,
    register_driver,
)
from thesis_engine.analytics.models import MarketThesis
from thesis_engine.events import OHLCVBar


def _bar(open_, close):
    return OHLCVBar("NIFTY", datetime(2025, 1, 1, 10, 0), open_, max(open_, close) + 1,
                    min(open_, close) - 1, close, 1000)


class TestDriverFeatures:
    def test_support_from_any_source(self, make_result):
        assert DriverFeatures.from_result(make_result(day_range_signal="Near Low")).at_support
        assert DriverFeatures.from_result(make_result(vwap_band_signal="At Lower Band")).at_support
        assert DriverFeatures.from_result(make_result(market_profile_signal="Testing Y-VAL")).at_support
        assert not DriverFeatures.from_result(make_result()).at_support

    def test_resistance_from_any_source(self, make_result):
        assert DriverFeatures.from_result(make_result(day_range_signal="Near High")).at_resistance
        assert DriverFeatures.from_result(make_result(vwap_band_signal="At Upper Band")).at_resistance
        assert DriverFeatures.from_result(make_result(market_profile_signal="Rejected at VAH")).at_resistance

    def test_candle_direction_without_history(self, make_result):
        features = DriverFeatures.from_result(make_result(), None)
        assert not features.is_bullish_candle
        assert not features.is_bearish_candle

        features = DriverFeatures.from_result(make_result(), [])
        assert not features.is_bullish_candle

    def test_candle_direction_uses_last_bar(self, make_result):
        candles = [_bar(100, 90), _bar(100, 105)]
        features = DriverFeatures.from_result(make_result(), candles)
        assert features.is_bullish_candle
        assert not features.is_bearish_candle

    def test_trend_gate_reads_previous_thesis(self, make_result):
        r = make_result(market_thesis=MarketThesis.BULLISH_TREND_CONTINUATION)
        assert DriverFeatures.from_result(r).in_trend_thesis
        r = make_result(market_thesis=MarketThesis.BALANCING_RANGE_BOUND)
        assert not DriverFeatures.from_result(r).in_trend_thesis


def test_unknown_driver_is_inactive(make_result):
    assert is_signal_active(make_result(), "No Such Driver") is False


@pytest.mark.parametrize("name, inputs", [
    ("Bullish Pattern at Key Support", {"candle_signal_5min": "Bullish Hammer", "day_range_signal": "Near Low"}),
    ("Bearish Pattern at Key Resistance", {"candle_signal_5min": "Bearish Engulfing", "vwap_band_signal": "At Upper Band"}),
    ("Bullish Pattern with Volume Confirmation", {"candle_signal_5min": "Bullish Hammer", "volume_signal": "Volume Burst"}),
    ("Bearish Pattern with Volume Confirmation", {"candle_signal_5min": "Bearish Harami", "volume_signal": "Volume Burst"}),
    ("Bullish Pattern (Standalone)", {"candle_signal_5min": "Bullish Hammer"}),
    ("Bearish Pattern (Standalone)", {"candle_signal_5min": "Bearish Harami"}),
    ("Aggressive Buying Pressure", {"micro_flow_signal": "Aggressive Buying"}),
    ("Aggressive Selling Pressure", {"micro_flow_signal": "Aggressive Selling"}),
    ("Institutional Intent is Bullish", {"institutional_intent": "Strong Bullish"}),
    ("Institutional Intent is Bearish", {"institutional_intent": "Mild Bearish"}),
    ("Price above VWAP", {"price_vs_vwap_signal": "Above VWAP"}),
    ("Price below VWAP", {"price_vs_vwap_signal": "Below VWAP"}),
    ("5m EMA confirms bullish trend", {"ema_signal_5min": "Bullish Cross"}),
    ("5m EMA confirms bearish trend", {"ema_signal_5min": "Bearish Cross"}),
    ("OI confirms new longs", {"oi_signal": "Long Buildup"}),
    ("OI confirms new shorts", {"oi_signal": "Short Buildup"}),
    ("High OTM Call Gamma", {"gamma_signal": "High OTM Call Gamma"}),
    ("High OTM Put Gamma", {"gamma_signal": "High OTM Put Gamma"}),
    ("True Acceptance Above Y-VAH", {"market_profile_signal": "True Acceptance Above Y-VAH"}),
    ("True Acceptance Below Y-VAL", {"market_profile_signal": "True Acceptance Below Y-VAL"}),
    ("Look Above and Fail at Y-VAH", {"market_profile_signal": "Look Above and Fail at Y-VAH"}),
    ("Look Below and Fail at Y-VAL", {"market_profile_signal": "Look Below and Fail at Y-VAL"}),
    ("IB breakout is extending", {"initial_balance_signal": "IB Extension Up"}),
    ("IB breakdown is extending", {"initial_balance_signal": "IB Extension Down"}),
    ("Option Breakout Setup", {"volatility_state_signal": "IV Squeeze Setup"}),
    ("Range Contraction", {"atr_signal_5min": "Vol Contracting"}),
    ("Low volume suggests exhaustion (Bullish)", {"atr_signal_5min": "Vol Contracting", "day_range_signal": "Near Low"}),
    ("Low volume suggests exhaustion (Bearish)", {"atr_signal_5min": "Vol Contracting", "day_range_signal": "Near High"}),
    ("Price Above GEX Flip Point (Bullish Hedging Flow)", {"gex_flip_point": 21900.0}),
    ("Price Below GEX Flip Point (Bearish Hedging Flow)", {"gex_flip_point": 22100.0}),
    ("Net GEX is Negative (Market Makers are Short Gamma, Volatility Amplified)", {"net_gex": -1.5e9}),
    ("Net GEX is Positive (Volatility Dampened)", {"net_gex": 2.0e9}),
    ("Price Approaching Max GEX Level (Pinning Risk)", {"max_gex_level": 22010.0}),
])
def test_driver_fires_on_its_condition(make_result, name, inputs):
    assert is_signal_active(make_result(**inputs), name)
    # Default snapshot carries no signal at all
    assert not is_signal_active(make_result(), name)


def test_standalone_pattern_excludes_support_and_volume(make_result):
    name = "Bullish Pattern (Standalone)"
    assert not is_signal_active(make_result(candle_signal_5min="Bullish Hammer", day_range_signal="Near Low"), name)
    assert not is_signal_active(make_result(candle_signal_5min="Bullish Hammer", volume_signal="Volume Burst"), name)


def test_exhaustion_requires_quiet_volume(make_result):
    r = make_result(atr_signal_5min="Vol Contracting", day_range_signal="Near Low", volume_signal="Volume Burst")
    assert not is_signal_active(r, "Low volume suggests exhaustion (Bullish)")


def test_volume_burst_breakout_needs_candle_history(make_result):
    r = make_result(volume_signal="Volume Burst")
    assert not is_signal_active(r, "Bullish Breakout on Volume Burst", candles=None)
    assert is_signal_active(r, "Bullish Breakout on Volume Burst", candles=[_bar(100, 104)])
    assert is_signal_active(r, "Bearish Breakdown on Volume Burst", candles=[_bar(104, 100)])
    # Doji close never counts as directional
    assert not is_signal_active(r, "Bullish Breakout on Volume Burst", candles=[_bar(100, 100)])


def test_trend_continuation_needs_latched_thesis_and_progress(make_result):
    name = "Bullish Trend Continuation"
    r = make_result(
        active_thesis="Bullish_Trend_Continuation",
        active_thesis_entry_price=21900.0,
        price_vs_vwap_signal="Above VWAP",
    )
    assert is_signal_active(r, name)

    r.ltp = 21850.0
    assert not is_signal_active(r, name)

    r = make_result(
        active_thesis="Bearish_Trend_Continuation",
        active_thesis_entry_price=22100.0,
        price_vs_vwap_signal="Below VWAP",
    )
    assert is_signal_active(r, "Bearish Trend Continuation")
    assert not is_signal_active(r, name)


@pytest.mark.parametrize("name, inputs", [
    ("Bullish Skew Divergence (Full)", {"iv_skew_signal": "Bullish Skew Divergence"}),
    ("Bearish Skew Divergence (Full)", {"iv_skew_signal": "Bearish Skew Divergence"}),
    ("Bullish OBV Div at range low", {"obv_divergence_signal_5min": "Bullish Divergence", "day_range_signal": "Near Low"}),
    ("Bearish OBV Div at range high", {"obv_divergence_signal_5min": "Bearish Divergence", "day_range_signal": "Near High"}),
    ("Bullish RSI Div at range low", {"rsi_signal_5min": "Bullish Divergence", "day_range_signal": "Near Low"}),
    ("Bearish RSI Div at range high", {"rsi_signal_5min": "Bearish Divergence", "day_range_signal": "Near High"}),
])
def test_divergence_drivers_gate_on_trend_thesis(make_result, name, inputs):
    outside_trend = make_result(market_thesis=MarketThesis.BALANCING_RANGE_BOUND, **inputs)
    assert not is_signal_active(outside_trend, name)

    in_trend = make_result(market_thesis=MarketThesis.BEARISH_TREND_CONTINUATION, **inputs)
    assert is_signal_active(in_trend, name)


class TestGammaLevelGuards:
    def test_unset_flip_point_is_not_met(self, make_result):
        r = make_result(gex_flip_point=0.0)
        assert not is_signal_active(r, "Price Above GEX Flip Point (Bullish Hedging Flow)")
        assert not is_signal_active(r, "Price Below GEX Flip Point (Bearish Hedging Flow)")

    def test_unset_max_gex_is_not_met(self, make_result):
        assert not is_signal_active(make_result(max_gex_level=0.0), "Price Approaching Max GEX Level (Pinning Risk)")

    def test_zero_ltp_is_not_met(self, make_result):
        r = make_result(ltp=0.0, max_gex_level=22000.0)
        assert not is_signal_active(r, "Price Approaching Max GEX Level (Pinning Risk)")

    def test_pinning_band_is_ten_basis_points(self, make_result):
        name = "Price Approaching Max GEX Level (Pinning Risk)"
        assert is_signal_active(make_result(ltp=20000.0, max_gex_level=20019.0), name)
        assert not is_signal_active(make_result(ltp=20000.0, max_gex_level=20021.0), name)

    def test_flat_net_gex_is_neither(self, make_result):
        r = make_result(net_gex=0.0)
        assert not is_signal_active(r, "Net GEX is Positive (Volatility Dampened)")
        assert not is_signal_active(r, "Net GEX is Negative (Market Makers are Short Gamma, Volatility Amplified)")


def test_register_driver_extends_table(make_result, monkeypatch):
    monkeypatch.setattr(drivers, "DRIVER_PREDICATES", dict(DRIVER_PREDICATES))

    register_driver("RSI Overbought", lambda r, f: r.rsi_value_5min > 70)

    assert "RSI Overbought" in list_registered_drivers()
    assert is_signal_active(make_result(rsi_value_5min=75), "RSI Overbought")
    assert not is_signal_active(make_result(rsi_value_5min=55), "RSI Overbought")


def test_predicates_do_not_mutate_result(make_result):
    r = make_result(candle_signal_5min="Bullish Hammer", day_range_signal="Near Low", net_gex=1.0)
    before = repr(r)
    for name in list_registered_drivers():
        is_signal_active(r, name)
    assert repr(r) == before
