"""Validation utilities and parameter classes."""

import operator
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

# Allowlists for cache key stability
VALID_PERIODS = {"1mo", "3mo", "6mo", "1y", "2y", "5y", "10y", "ytd", "max"}
VALID_MODULES = {"timing", "fundamentals", "sentiment", "regime"}


@dataclass(frozen=True)
class FetchParams:
    """Immutable daily-history fetch parameters."""

    symbol: str
    period: str = "1y"
    adjusted: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbol", normalize_symbol(self.symbol))

        period = self.period.lower().strip()
        if period not in VALID_PERIODS:
            raise ValueError(
                f"Invalid period '{self.period}'. Must be one of: {sorted(VALID_PERIODS)}"
            )
        object.__setattr__(self, "period", period)

    def to_yf_kwargs(self) -> dict[str, Any]:
        """Kwargs for Ticker.history()."""
        return {
            "period": self.period,
            "interval": "1d",
            "auto_adjust": self.adjusted,
        }


def normalize_symbol(symbol: str) -> str:
    """
    Uppercase and strip a ticker.

    Raises:
        ValueError: If the symbol is empty
    """
    cleaned = (symbol or "").upper().strip()
    if not cleaned:
        raise ValueError("Symbol must be a non-empty string")
    return cleaned


def validate_module(module: str) -> str:
    """
    Normalize a module name.

    Raises:
        ValueError: If the module is unknown
    """
    name = (module or "").lower().strip()
    if name not in VALID_MODULES:
        raise ValueError(f"Unknown module '{module}'. Must be one of: {sorted(VALID_MODULES)}")
    return name


def check_rule(
    value: float | None,
    threshold: float,
    comparator: Callable[[float, float], bool] = operator.gt,
) -> bool | None:
    """
    Check a rule with nullable boolean semantics.

    If value is None, returns None (not False).

    Args:
        value: The value to check (may be None)
        threshold: The threshold to compare against
        comparator: Comparison function (default: operator.gt)

    Returns:
        True/False if value is not None, None otherwise
    """
    if value is None:
        return None
    return comparator(value, threshold)
