from .strategy_settings import DriverConfigError, SettingsProvider, StrategySettings

__all__ = [
    'DriverConfigError',
    'SettingsProvider',
    'StrategySettings',
]
