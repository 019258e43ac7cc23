"""
Strategy Settings
-----------------
Six named driver lists consumed by the playbook cascade, loaded from
JSON and swappable at runtime.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import json
import logging
import threading

from thesis_engine.analytics.models import SignalDriver


logger = logging.getLogger(__name__)

DRIVER_LIST_NAMES: Tuple[str, ...] = (
    "range_bound_bullish_drivers",
    "range_bound_bearish_drivers",
    "breakout_bullish_drivers",
    "breakout_bearish_drivers",
    "trending_bull_drivers",
    "trending_bear_drivers",
)


class DriverConfigError(ValueError):
    """Raised when the driver configuration cannot be loaded."""
    pass


@dataclass(frozen=True)
class StrategySettings:
    range_bound_bullish_drivers: Tuple[SignalDriver, ...] = field(default_factory=tuple)
    range_bound_bearish_drivers: Tuple[SignalDriver, ...] = field(default_factory=tuple)
    breakout_bullish_drivers: Tuple[SignalDriver, ...] = field(default_factory=tuple)
    breakout_bearish_drivers: Tuple[SignalDriver, ...] = field(default_factory=tuple)
    trending_bull_drivers: Tuple[SignalDriver, ...] = field(default_factory=tuple)
    trending_bear_drivers: Tuple[SignalDriver, ...] = field(default_factory=tuple)

    def drivers(self, list_name: str) -> Tuple[SignalDriver, ...]:
        if list_name not in DRIVER_LIST_NAMES:
            raise KeyError(f"Unknown driver list '{list_name}'. Available: {list(DRIVER_LIST_NAMES)}")
        return getattr(self, list_name)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "StrategySettings":
        """
        Build settings from the "strategy" section of the driver config.

        Args:
            config: Mapping of list name -> list of {name, weight, enabled}

        Raises:
            DriverConfigError: On unknown list names or malformed driver records
        """
        unknown = set(config) - set(DRIVER_LIST_NAMES)
        if unknown:
            raise DriverConfigError(f"Unknown driver lists in config: {sorted(unknown)}")

        lists = {}
        for list_name in DRIVER_LIST_NAMES:
            lists[list_name] = tuple(
                _parse_driver(list_name, raw) for raw in config.get(list_name, [])
            )
        return cls(**lists)

    @classmethod
    def from_file(cls, config_path: str) -> "StrategySettings":
        """
        Load settings from a JSON file.

        Args:
            config_path: Path to thesis_drivers.json
        """
        try:
            with open(config_path, "r") as f:
                config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DriverConfigError(f"Cannot read driver config {config_path}: {e}") from e

        settings = cls.from_dict(config.get("strategy", {}))
        logger.info(
            f"Loaded driver config from {config_path}: "
            + ", ".join(f"{n}={len(settings.drivers(n))}" for n in DRIVER_LIST_NAMES)
        )
        return settings


def _parse_driver(list_name: str, raw: Dict[str, Any]) -> SignalDriver:
    try:
        name = raw["name"]
        weight = raw["weight"]
    except (KeyError, TypeError) as e:
        raise DriverConfigError(f"Malformed driver in {list_name}: {raw!r}") from e

    if not isinstance(name, str) or not name:
        raise DriverConfigError(f"Driver name must be a non-empty string in {list_name}: {raw!r}")
    if isinstance(weight, bool) or not isinstance(weight, int):
        raise DriverConfigError(f"Driver weight must be an integer in {list_name}: {raw!r}")

    return SignalDriver(name=name, weight=weight, enabled=bool(raw.get("enabled", True)))


class SettingsProvider:
    """
    Holds the current StrategySettings and swaps them on reload.

    Readers always get a complete, immutable settings object; a failed
    reload leaves the previous settings in place.
    """

    def __init__(self, settings: Optional[StrategySettings] = None, config_path: Optional[str] = None):
        self.config_path = config_path
        self._lock = threading.Lock()
        if settings is None:
            if config_path is None:
                raise ValueError("SettingsProvider needs either settings or a config_path")
            settings = StrategySettings.from_file(config_path)
        self._strategy = settings

    @classmethod
    def from_config(cls, config_path: Optional[str] = None) -> "SettingsProvider":
        if config_path is None:
            from config.settings import DRIVER_CONFIG_PATH
            config_path = DRIVER_CONFIG_PATH
        return cls(config_path=config_path)

    @property
    def strategy(self) -> StrategySettings:
        with self._lock:
            return self._strategy

    def update(self, settings: StrategySettings) -> None:
        with self._lock:
            self._strategy = settings

    def reload(self) -> StrategySettings:
        """Re-read the config file. Raises DriverConfigError and keeps old settings on failure."""
        if self.config_path is None:
            raise DriverConfigError("No config_path to reload from")
        try:
            settings = StrategySettings.from_file(self.config_path)
        except DriverConfigError:
            logger.error("Driver config reload failed, keeping previous settings")
            raise
        self.update(settings)
        return settings

    def all_drivers(self) -> List[SignalDriver]:
        strategy = self.strategy
        return [d for n in DRIVER_LIST_NAMES for d in strategy.drivers(n)]
