"""
Playbook Cascade
----------------
Chooses exactly one market playbook per tick.

PLAYBOOK_RULES is walked in order and the first rule whose condition holds
wins (same short-circuit semantics as a SEQUENTIAL filter pipeline).
Reversal and breakout setups sit ahead of the trend rules so a strong
local signal is never masked by a weaker trend read; the last three
rules are fallbacks and the final one always matches.
"""
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import logging

from thesis_engine.analytics.drivers import DriverFeatures, is_signal_active
from thesis_engine.analytics.models import AnalysisResult, MarketThesis, SignalDriver
from thesis_engine.events import OHLCVBar
from thesis_engine.settings.strategy_settings import StrategySettings


logger = logging.getLogger(__name__)

ActiveGroups = List[List[SignalDriver]]
RuleCondition = Callable[[AnalysisResult, ActiveGroups], bool]


@dataclass(frozen=True)
class PlaybookRule:
    thesis: MarketThesis
    driver_lists: Tuple[str, ...]
    """Settings lists whose active drivers feed the condition"""

    condition: RuleCondition
    """Callable(result, active driver groups in driver_lists order) -> bool"""

    contributes_drivers: bool = True
    """Whether the matched drivers are returned for scoring"""


def _has_named(drivers: List[SignalDriver], fragment: str) -> bool:
    return any(fragment in d.name for d in drivers)


def _bullish_reversal(r, groups):
    drivers = groups[0]
    return len(drivers) >= 2 and _has_named(drivers, "Pattern at Key Support")


def _bearish_reversal(r, groups):
    drivers = groups[0]
    return len(drivers) >= 2 and _has_named(drivers, "Pattern at Key Resistance")


def _bullish_breakout(r, groups):
    return bool(groups[0]) and (
        r.initial_balance_signal == "IB Breakout"
        or "Acceptance Above" in r.market_profile_signal
    )


def _bearish_breakdown(r, groups):
    return bool(groups[0]) and (
        r.initial_balance_signal == "IB Breakdown"
        or "Acceptance Below" in r.market_profile_signal
    )


def _bullish_trend(r, groups):
    return r.market_structure == "Trending Up" and len(groups[0]) > 2


def _bearish_trend(r, groups):
    return r.market_structure == "Trending Down" and len(groups[0]) > 2


def _choppy(r, groups):
    bullish, bearish = groups
    return r.market_regime == "High Volatility" or (bool(bullish) and bool(bearish))


def _balancing(r, groups):
    return r.market_structure == "Balancing"


def _always(r, groups):
    return True


PLAYBOOK_RULES: Tuple[PlaybookRule, ...] = (
    PlaybookRule(MarketThesis.BULLISH_REVERSAL_AT_SUPPORT, ("range_bound_bullish_drivers",), _bullish_reversal),
    PlaybookRule(MarketThesis.BEARISH_REVERSAL_AT_RESISTANCE, ("range_bound_bearish_drivers",), _bearish_reversal),
    PlaybookRule(MarketThesis.BULLISH_BREAKOUT_ATTEMPT, ("breakout_bullish_drivers",), _bullish_breakout),
    PlaybookRule(MarketThesis.BEARISH_BREAKDOWN_ATTEMPT, ("breakout_bearish_drivers",), _bearish_breakdown),
    PlaybookRule(MarketThesis.BULLISH_TREND_CONTINUATION, ("trending_bull_drivers",), _bullish_trend),
    PlaybookRule(MarketThesis.BEARISH_TREND_CONTINUATION, ("trending_bear_drivers",), _bearish_trend),
    PlaybookRule(
        MarketThesis.HIGH_VOLATILITY_CHOPPY,
        ("trending_bull_drivers", "trending_bear_drivers"),
        _choppy
    ),
    PlaybookRule(MarketThesis.BALANCING_RANGE_BOUND, (), _balancing, contributes_drivers=False),
    PlaybookRule(MarketThesis.INDETERMINATE, (), _always, contributes_drivers=False),
)


def get_active_drivers(
    r: AnalysisResult,
    drivers: Sequence[SignalDriver],
    features: DriverFeatures
) -> List[SignalDriver]:
    """Drivers that are both enabled and currently true, in configured order."""
    return [
        d for d in drivers
        if d.enabled and is_signal_active(r, d.name, features=features)
    ]


def select_playbook(
    r: AnalysisResult,
    strategy: StrategySettings,
    candles: Optional[Sequence[OHLCVBar]] = None,
    rules: Sequence[PlaybookRule] = PLAYBOOK_RULES
) -> Tuple[MarketThesis, List[SignalDriver]]:
    """
    Run the playbook cascade.

    Args:
        r: Analysis record (read only here)
        strategy: Current driver lists
        candles: Recent 5-minute candles for candle-direction drivers
        rules: Ordered rules; the last one should always match

    Returns:
        (winning thesis, drivers contributing to it)
    """
    features = DriverFeatures.from_result(r, candles)
    active_by_list: Dict[str, List[SignalDriver]] = {}

    def active(list_name: str) -> List[SignalDriver]:
        if list_name not in active_by_list:
            active_by_list[list_name] = get_active_drivers(r, strategy.drivers(list_name), features)
        return active_by_list[list_name]

    for rule in rules:
        groups = [active(name) for name in rule.driver_lists]
        if rule.condition(r, groups):
            if not rule.contributes_drivers:
                return rule.thesis, []
            return rule.thesis, [d for group in groups for d in group]

    return MarketThesis.INDETERMINATE, []
