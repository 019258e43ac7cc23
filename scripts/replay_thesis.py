"""
Thesis Replay
-------------
Runs recorded analysis snapshots through the thesis synthesizer.

Input is JSON lines, one tick per line:

    {"timestamp": "2025-01-01T09:20:00", "snapshot": {"security_id": "13", ...},
     "candle": {"open": 100, "high": 101, "low": 99, "close": 100.5}}

"candle" is optional and is appended to the instrument's 5-minute history.
"""
import argparse
import json
import logging
import sys
from dataclasses import fields
from datetime import datetime
from pathlib import Path

# Add project root to sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

import pandas as pd

from thesis_engine.alerts.dispatcher import AlertDispatcher
from thesis_engine.alerts.telegram_notifier import TelegramNotifier, format_signal_alert
from thesis_engine.analytics.models import AnalysisResult
from thesis_engine.analytics.notifier import SignalChangeNotifier
from thesis_engine.analytics.thesis_synthesizer import CANDLE_TIMEFRAME, ThesisSynthesizer
from thesis_engine.clock import ReplayClock
from thesis_engine.events import OHLCVBar
from thesis_engine.logging.logger import setup_logger
from thesis_engine.persistence.signal_logger import SignalLoggerService
from thesis_engine.settings.strategy_settings import SettingsProvider
from thesis_engine.state.analysis_state import AnalysisStateManager
from thesis_engine.state.market_hours import MarketHours

OUTPUT_FIELDS = {
    "market_thesis", "bullish_drivers", "bearish_drivers", "conviction_score",
    "primary_signal", "final_trade_signal", "active_thesis",
    "active_thesis_entry_price", "dominant_player", "market_narrative",
}
INPUT_FIELDS = {f.name for f in fields(AnalysisResult)} - OUTPUT_FIELDS

logger = logging.getLogger("thesis_replay")


def _apply_snapshot(result: AnalysisResult, snapshot: dict):
    for key, value in snapshot.items():
        if key in INPUT_FIELDS:
            setattr(result, key, value)
        else:
            logger.warning(f"Ignoring unknown or output field in snapshot: {key}")


def _print_alert(result, previous_signal):
    print("ALERT\n" + format_signal_alert(result, previous_signal))


def run_replay(input_path: str, config_path: str = None, db_path: str = None,
               telegram: bool = False, debounce_seconds: float = None) -> pd.DataFrame:
    settings = SettingsProvider.from_config(config_path)
    state = AnalysisStateManager()
    clock = ReplayClock(MarketHours.to_ist(datetime(1970, 1, 1)))

    sink = TelegramNotifier().send_signal_alert if telegram else _print_alert
    dispatcher = AlertDispatcher(sink)
    notifier = SignalChangeNotifier(
        state=state,
        signal_logger=SignalLoggerService(db_path) if db_path else None,
        alert_dispatcher=dispatcher,
        clock=clock,
        debounce_seconds=debounce_seconds
    )
    synthesizer = ThesisSynthesizer(settings, state, notifier)

    results = {}
    rows = []
    with open(input_path, "r") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            tick = json.loads(line)
            # Naive timestamps are IST; offset timestamps are converted to IST
            ts = MarketHours.to_ist(datetime.fromisoformat(tick["timestamp"]))
            clock.set_time(ts)
            state.refresh_market_phase(clock)

            snapshot = tick["snapshot"]
            security_id = str(snapshot["security_id"])
            result = results.setdefault(security_id, AnalysisResult(security_id=security_id))
            _apply_snapshot(result, snapshot)

            candle = tick.get("candle")
            if candle:
                state.add_candle(security_id, CANDLE_TIMEFRAME, OHLCVBar(
                    symbol=result.symbol or security_id, timestamp=ts,
                    open=candle["open"], high=candle["high"], low=candle["low"],
                    close=candle["close"], volume=candle.get("volume", 0.0)
                ))

            synthesizer.synthesize_trade_signal(result)
            rows.append({
                "line": line_no,
                "timestamp": ts,
                "security_id": security_id,
                "phase": state.current_market_phase.value,
                "thesis": result.market_thesis.value,
                "conviction": result.conviction_score,
                "primary": result.primary_signal.value,
                "active_thesis": result.active_thesis,
                "dominant": result.dominant_player.value,
            })

    dispatcher.stop()
    logger.info(f"Replayed {len(rows)} ticks, {notifier.total_fired} signal changes fired, "
                f"{notifier.total_debounced} debounced")
    return pd.DataFrame(rows)


if __name__ == "__main__":
    setup_logger("thesis_replay")
    setup_logger("thesis_engine")

    parser = argparse.ArgumentParser(description="Replay analysis snapshots through thesis synthesis")
    parser.add_argument("input", help="JSON-lines file of ticks")
    parser.add_argument("--config", default=None, help="Driver config JSON (defaults to config/thesis_drivers.json)")
    parser.add_argument("--db", default=None, help="DuckDB file to log signal changes into")
    parser.add_argument("--telegram", action="store_true", help="Send alerts to Telegram instead of stdout")
    parser.add_argument("--debounce", type=float, default=None, help="Debounce window in seconds")
    args = parser.parse_args()

    df = run_replay(args.input, args.config, args.db, args.telegram, args.debounce)
    if df.empty:
        print("No ticks replayed.")
    else:
        print(df.to_string(index=False))
