"""Runtime settings read from the environment at the server edge."""

import os
from dataclasses import dataclass

from signal_mcp.errors import ConfigurationError
from signal_mcp.timing.engine import TimingConfig
from signal_mcp.utils.validators import VALID_PERIODS


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'") from e


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got '{raw}'") from e


@dataclass(frozen=True)
class EngineSettings:
    """
    Settings for the tools layer.

    Attributes:
        min_bars: Fewest bars the timing module accepts
        price_staleness_days: Age of the last bar that counts as stale
        history_period: yfinance period fetched for price history
        result_store_dir: diskcache directory for stored results
        batch_delay_seconds: Pause between symbols in batch runs
    """

    min_bars: int = 30
    price_staleness_days: float = 5.0
    history_period: str = "1y"
    result_store_dir: str = ".cache/results"
    batch_delay_seconds: float = 0.5

    def __post_init__(self) -> None:
        if self.min_bars < 2:
            raise ConfigurationError(f"SIGNAL_MIN_BARS must be at least 2, got {self.min_bars}")
        if self.price_staleness_days <= 0:
            raise ConfigurationError(
                f"SIGNAL_PRICE_STALENESS_DAYS must be positive, got {self.price_staleness_days}"
            )
        if self.history_period not in VALID_PERIODS:
            raise ConfigurationError(
                f"SIGNAL_HISTORY_PERIOD must be one of {sorted(VALID_PERIODS)}, "
                f"got '{self.history_period}'"
            )
        if self.batch_delay_seconds < 0:
            raise ConfigurationError(
                f"BATCH_DELAY_SECONDS must be non-negative, got {self.batch_delay_seconds}"
            )

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """Build settings from environment variables (defaults when unset)."""
        return cls(
            min_bars=_env_int("SIGNAL_MIN_BARS", 30),
            price_staleness_days=_env_float("SIGNAL_PRICE_STALENESS_DAYS", 5.0),
            history_period=os.environ.get("SIGNAL_HISTORY_PERIOD", "1y").lower().strip(),
            result_store_dir=os.environ.get("RESULT_STORE_DIR", ".cache/results"),
            batch_delay_seconds=_env_float("BATCH_DELAY_SECONDS", 0.5),
        )

    def timing_config(self) -> TimingConfig:
        return TimingConfig(min_bars=self.min_bars, staleness_days=self.price_staleness_days)
