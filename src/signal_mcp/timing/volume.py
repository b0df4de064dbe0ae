"""Volume analysis."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

import pandas as pd


class VolumeTrend(str, Enum):
    INCREASING = "Increasing"
    DECREASING = "Decreasing"
    STABLE = "Stable"


class VolumePriceRelationship(str, Enum):
    BULLISH_DIVERGENCE = "BullishDivergence"
    BEARISH_DIVERGENCE = "BearishDivergence"
    NEUTRAL = "Neutral"


@dataclass(frozen=True)
class VolumeAnalysis:
    current_volume: float
    avg_volume: float
    volume_ratio: float | None
    volume_trend: VolumeTrend
    vp_relationship: VolumePriceRelationship

    def to_extension(self) -> dict[str, Any]:
        return {
            "current_volume": self.current_volume,
            "avg_volume": self.avg_volume,
            "volume_ratio": self.volume_ratio,
            "volume_trend": self.volume_trend.value,
            "vp_relationship": self.vp_relationship.value,
        }


class VolumeAnalyzer:
    """Relate the latest volume to its average and to the price move."""

    def __init__(self, avg_window: int = 20, compare_window: int = 5):
        self.avg_window = avg_window
        self.compare_window = compare_window

    def _relationship(self, frame: pd.DataFrame) -> VolumePriceRelationship:
        n = self.compare_window
        if len(frame) < 2 * n:
            return VolumePriceRelationship.NEUTRAL

        close = frame["close"]
        volume = frame["volume"]
        # Price move within the recent window; volume against the window before it
        price_change = close.iloc[-1] - close.iloc[-n]
        volume_rising = volume.iloc[-n:].mean() > volume.iloc[-2 * n : -n].mean()

        if not volume_rising:
            return VolumePriceRelationship.NEUTRAL
        if price_change > 0:
            return VolumePriceRelationship.BULLISH_DIVERGENCE
        if price_change < 0:
            return VolumePriceRelationship.BEARISH_DIVERGENCE
        return VolumePriceRelationship.NEUTRAL

    def analyze(self, frame: pd.DataFrame) -> VolumeAnalysis:
        volume = frame["volume"]
        current = float(volume.iloc[-1])
        avg = float(volume.tail(self.avg_window).mean())
        ratio = current / avg if avg > 0 else None

        if ratio is not None and ratio > 1.2:
            trend = VolumeTrend.INCREASING
        elif ratio is not None and ratio < 0.8:
            trend = VolumeTrend.DECREASING
        else:
            trend = VolumeTrend.STABLE

        return VolumeAnalysis(
            current_volume=current,
            avg_volume=avg,
            volume_ratio=ratio,
            volume_trend=trend,
            vp_relationship=self._relationship(frame),
        )
