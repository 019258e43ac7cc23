"""
Global Settings
"""
import os
from pathlib import Path

LOG_LEVEL = os.environ.get("THESIS_LOG_LEVEL", "INFO")

SIGNAL_DB_PATH = os.environ.get("THESIS_SIGNAL_DB_PATH", "data/signal_log.duckdb")
DRIVER_CONFIG_PATH = os.environ.get(
    "THESIS_DRIVER_CONFIG",
    str(Path(__file__).parent / "thesis_drivers.json")
)

# Only instruments in this group are synthesized; everything else passes through
THESIS_INSTRUMENT_GROUP = os.environ.get("THESIS_INSTRUMENT_GROUP", "INDEX")

SIGNAL_DEBOUNCE_SECONDS = float(os.environ.get("THESIS_SIGNAL_DEBOUNCE_SECONDS", "60"))
CANDLE_HISTORY_SIZE = int(os.environ.get("THESIS_CANDLE_HISTORY_SIZE", "200"))

TELEGRAM_TOKEN = os.environ.get("TELEGRAM_TOKEN")
TELEGRAM_CHAT_ID = os.environ.get("TELEGRAM_CHAT_ID")
