import pytest
from datetime import datetime
import pytz

from thesis_engine.analytics.models import AnalysisResult, SignalDriver
from thesis_engine.clock import ReplayClock
from thesis_engine.settings.strategy_settings import SettingsProvider, StrategySettings
from thesis_engine.state.analysis_state import AnalysisStateManager

IST = pytz.timezone("Asia/Kolkata")


@pytest.fixture
def temp_db(tmp_path):
    return str(tmp_path / "signals.duckdb")


@pytest.fixture
def replay_clock():
    # 10:00 IST falls in the Normal phase
    return ReplayClock(IST.localize(datetime(2025, 1, 1, 10, 0)))


@pytest.fixture
def state():
    return AnalysisStateManager(history_size=50)


@pytest.fixture
def make_result():
    def _make(**overrides):
        overrides.setdefault("security_id", "13")
        overrides.setdefault("symbol", "NIFTY")
        overrides.setdefault("ltp", 22000.0)
        return AnalysisResult(**overrides)
    return _make


@pytest.fixture
def reversal_settings():
    """Two +4 reversal drivers, mirrored -4 bearish drivers."""
    return StrategySettings(
        range_bound_bullish_drivers=(
            SignalDriver("Bullish Pattern at Key Support", 4),
            SignalDriver("Aggressive Buying Pressure", 4),
        ),
        range_bound_bearish_drivers=(
            SignalDriver("Bearish Pattern at Key Resistance", -4),
            SignalDriver("Aggressive Selling Pressure", -4),
        ),
    )


@pytest.fixture
def reversal_provider(reversal_settings):
    return SettingsProvider(settings=reversal_settings)


@pytest.fixture
def bullish_reversal_inputs():
    """Bullish candle at the day low with aggressive buying."""
    return {
        "candle_signal_5min": "Bullish Engulfing",
        "day_range_signal": "Near Low",
        "micro_flow_signal": "Aggressive Buying",
    }
