"""
Signal Logger
-------------
Durable record of primary-signal transitions, stored in DuckDB.
"""
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Generator, Optional
import json
import logging
import threading

import duckdb
import pandas as pd

from thesis_engine.analytics.models import AnalysisResult


logger = logging.getLogger(__name__)


class SignalLoggerService:
    """
    Appends one row per signal transition.

    Writes are serialized with a thread lock; each call opens a short-lived
    connection so readers in other processes are never locked out for long.
    """

    def __init__(self, db_path: Optional[str] = None):
        if db_path is None:
            from config.settings import SIGNAL_DB_PATH
            db_path = SIGNAL_DB_PATH
        self.db_path = db_path
        self._lock = threading.Lock()
        self._init_db()

    @contextmanager
    def _connection(self) -> Generator[duckdb.DuckDBPyConnection, None, None]:
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            conn = duckdb.connect(self.db_path)
            try:
                yield conn
            finally:
                conn.close()

    def _init_db(self):
        with self._connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS signal_log (
                    logged_at TIMESTAMP NOT NULL,
                    security_id VARCHAR NOT NULL,
                    symbol VARCHAR,
                    ltp DOUBLE,
                    primary_signal VARCHAR NOT NULL,
                    market_thesis VARCHAR NOT NULL,
                    conviction_score INTEGER NOT NULL,
                    active_thesis VARCHAR,
                    active_thesis_entry_price DOUBLE,
                    dominant_player VARCHAR,
                    bullish_drivers VARCHAR,
                    bearish_drivers VARCHAR,
                    market_narrative VARCHAR
                )
            """)

    def log_signal(self, result: AnalysisResult, logged_at: Optional[datetime] = None) -> None:
        """
        Persist the current synthesized state of an analysis record.

        Raises:
            duckdb.Error: If the write fails; callers decide the policy.
        """
        logged_at = logged_at or datetime.now()
        if logged_at.tzinfo is not None:
            logged_at = logged_at.replace(tzinfo=None)

        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO signal_log VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    logged_at,
                    result.security_id,
                    result.symbol,
                    float(result.ltp),
                    result.primary_signal.value,
                    result.market_thesis.value,
                    int(result.conviction_score),
                    result.active_thesis,
                    float(result.active_thesis_entry_price),
                    result.dominant_player.value,
                    json.dumps(result.bullish_drivers),
                    json.dumps(result.bearish_drivers),
                    result.market_narrative,
                ]
            )
        logger.debug(f"[{result.security_id}] Logged signal {result.primary_signal.value}")

    def fetch_signals(self, security_id: Optional[str] = None, limit: int = 100) -> pd.DataFrame:
        """Most recent logged transitions, newest first."""
        query = "SELECT * FROM signal_log"
        params = []
        if security_id is not None:
            query += " WHERE security_id = ?"
            params.append(security_id)
        query += " ORDER BY logged_at DESC LIMIT ?"
        params.append(int(limit))

        with self._connection() as conn:
            return conn.execute(query, params).df()
