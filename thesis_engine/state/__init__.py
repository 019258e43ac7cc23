from .analysis_state import AnalysisStateManager
from .market_hours import MarketHours

__all__ = [
    'AnalysisStateManager',
    'MarketHours',
]
