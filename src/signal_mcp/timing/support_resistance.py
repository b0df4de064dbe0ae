"""Support and resistance detection from clustered swing points."""

import logging
from dataclasses import dataclass
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceLevel:
    """A clustered price level."""

    price: float
    touches: int
    last_index: int
    strength: float


@dataclass(frozen=True)
class SupportResistance:
    """Nearest support below and resistance above the current price."""

    current_price: float
    support: PriceLevel | None
    resistance: PriceLevel | None

    @property
    def support_distance(self) -> float | None:
        """Distance to support as % of price."""
        if self.support is None or not self.current_price:
            return None
        return (self.current_price - self.support.price) / self.current_price * 100

    @property
    def resistance_distance(self) -> float | None:
        """Distance to resistance as % of price."""
        if self.resistance is None or not self.current_price:
            return None
        return (self.resistance.price - self.current_price) / self.current_price * 100

    def to_extension(self) -> dict[str, Any]:
        return {
            "support_level": self.support.price if self.support else None,
            "resistance_level": self.resistance.price if self.resistance else None,
            "support_distance": self.support_distance,
            "resistance_distance": self.resistance_distance,
            "support_strength": self.support.strength if self.support else None,
            "resistance_strength": self.resistance.strength if self.resistance else None,
        }


class SupportResistanceEngine:
    """
    Find support and resistance levels.

    Swing lows and highs are bars that are the extreme of a centred window.
    Swings within ``tolerance`` of a running cluster mean merge into one
    level; a level's strength grows with its touch count and recency.
    """

    def __init__(self, lookback: int = 120, window: int = 5, tolerance: float = 0.02):
        self.lookback = lookback
        self.window = window
        self.tolerance = tolerance

    def find_extrema(self, frame: pd.DataFrame) -> list[tuple[int, float]]:
        """
        Swing lows and highs inside the lookback.

        Returns:
            List of (bar index within the lookback, price)
        """
        recent = frame.tail(self.lookback).reset_index(drop=True)
        span = 2 * self.window + 1
        lows = recent["low"]
        highs = recent["high"]

        rolling_min = lows.rolling(window=span, center=True).min()
        rolling_max = highs.rolling(window=span, center=True).max()

        extrema: list[tuple[int, float]] = []
        extrema.extend((int(i), float(lows[i])) for i in recent.index[lows == rolling_min])
        extrema.extend((int(i), float(highs[i])) for i in recent.index[highs == rolling_max])
        return extrema

    def cluster(self, extrema: list[tuple[int, float]], n_bars: int) -> list[PriceLevel]:
        """Merge nearby extrema into levels, ordered by price."""
        if not extrema:
            return []

        groups: list[list[tuple[int, float]]] = []
        for index, price in sorted(extrema, key=lambda e: e[1]):
            if groups:
                current = groups[-1]
                mean = sum(p for _, p in current) / len(current)
                if mean and abs(price - mean) / mean <= self.tolerance:
                    current.append((index, price))
                    continue
            groups.append([(index, price)])

        levels = []
        horizon = max(n_bars, 1)
        for group in groups:
            touches = len(group)
            last_index = max(i for i, _ in group)
            age = (n_bars - 1) - last_index
            recency = max(0.0, 1.0 - age / horizon)
            strength = 70.0 * min(touches, 5) / 5 + 30.0 * recency
            levels.append(
                PriceLevel(
                    price=sum(p for _, p in group) / touches,
                    touches=touches,
                    last_index=last_index,
                    strength=strength,
                )
            )
        return levels

    def analyze(self, frame: pd.DataFrame) -> SupportResistance:
        """
        Nearest levels strictly below and above the last close.

        Args:
            frame: Standardized OHLCV frame ordered by date

        Returns:
            SupportResistance (a side without a level is None)
        """
        price = float(frame["close"].iloc[-1])
        n_bars = min(len(frame), self.lookback)
        levels = self.cluster(self.find_extrema(frame), n_bars)

        below = [lv for lv in levels if lv.price < price]
        above = [lv for lv in levels if lv.price > price]
        support = max(below, key=lambda lv: lv.price) if below else None
        resistance = min(above, key=lambda lv: lv.price) if above else None

        logger.debug(
            f"S/R: {len(levels)} levels, support={support.price if support else None} "
            f"resistance={resistance.price if resistance else None}"
        )
        return SupportResistance(current_price=price, support=support, resistance=resistance)
