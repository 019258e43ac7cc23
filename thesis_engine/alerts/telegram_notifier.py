"""
Telegram Notifier
-----------------
Delivers thesis signal alerts to a Telegram chat.
"""
import logging
from typing import Optional

import requests

from thesis_engine.analytics.models import AnalysisResult, PrimarySignal

logger = logging.getLogger(__name__)

# Legacy Markdown entity characters
MARKDOWN_SPECIAL = ("_", "*", "`", "[")

SIGNAL_ICONS = {
    PrimarySignal.BULLISH: "🟢",
    PrimarySignal.BEARISH: "🔴",
    PrimarySignal.NEUTRAL: "⚪",
}


class TelegramNotifier:
    """
    Telegram Bot API client. Calls block; run them off the evaluation
    thread (see AlertDispatcher).
    """

    def __init__(self, token: Optional[str] = None, chat_id: Optional[str] = None, timeout: float = 10.0):
        if token is None or chat_id is None:
            from config.settings import TELEGRAM_TOKEN, TELEGRAM_CHAT_ID
            token = token or TELEGRAM_TOKEN
            chat_id = chat_id or TELEGRAM_CHAT_ID
        self.token = token
        self.chat_id = chat_id
        self.timeout = timeout
        self.base_url = f"https://api.telegram.org/bot{self.token}/sendMessage" if self.token else None

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.chat_id)

    def send_message(self, text: str) -> bool:
        """
        Post a message. Returns False when Telegram is not configured.

        Raises:
            requests.RequestException: On transport or HTTP errors
        """
        if not self.is_configured:
            logger.debug("Telegram token or chat ID not set. Alert suppressed.")
            return False

        payload = {
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": "Markdown"
        }
        response = requests.post(self.base_url, json=payload, timeout=self.timeout)
        response.raise_for_status()
        return True

    def send_signal_alert(self, result: AnalysisResult, previous_signal: PrimarySignal) -> bool:
        return self.send_message(format_signal_alert(result, previous_signal))


def escape_markdown(text: str) -> str:
    """Backslash-escape entity characters for Telegram legacy Markdown."""
    for ch in MARKDOWN_SPECIAL:
        text = text.replace(ch, "\\" + ch)
    return text


def format_signal_alert(result: AnalysisResult, previous_signal: PrimarySignal) -> str:
    icon = SIGNAL_ICONS.get(result.primary_signal, "")
    lines = [
        f"{icon} *{escape_markdown(result.symbol or result.security_id)}*: "
        f"{previous_signal.value} → *{result.primary_signal.value}*",
        f"Playbook: {escape_markdown(result.final_trade_signal)}",
        f"Confidence: {result.conviction_score}",
        f"LTP: {result.ltp:.2f}",
        f"Dominant: {result.dominant_player.value}",
    ]
    if result.active_thesis != "Neutral":
        thesis = result.active_thesis.replace("_", " ")
        lines.append(f"Active thesis: {thesis} @ {result.active_thesis_entry_price:.2f}")
    if result.bullish_drivers:
        lines.append("Bullish: " + ", ".join(escape_markdown(d) for d in result.bullish_drivers))
    if result.bearish_drivers:
        lines.append("Bearish: " + ", ".join(escape_markdown(d) for d in result.bearish_drivers))
    return "\n".join(lines)
