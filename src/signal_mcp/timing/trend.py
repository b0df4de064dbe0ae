"""Multi-horizon trend analysis."""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd

from signal_mcp.engine.quality import DataQualityFlagger
from signal_mcp.utils.indicators import calculate_regression_slope

logger = logging.getLogger(__name__)


class TrendDirection(str, Enum):
    UP = "Up"
    DOWN = "Down"
    SIDEWAYS = "Sideways"


@dataclass(frozen=True)
class HorizonTrend:
    """Trend over one horizon."""

    label: str
    bars: int
    direction: TrendDirection
    slope_pct: float
    strength: float
    consistency: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "bars": self.bars,
            "direction": self.direction.value,
            "slope_pct": round(self.slope_pct, 4),
            "strength": round(self.strength, 2),
            "consistency": round(self.consistency, 2),
        }


@dataclass(frozen=True)
class TrendSummary:
    """Short, medium and long horizon trends plus their averaged metrics."""

    short_term: HorizonTrend | None
    medium_term: HorizonTrend | None
    long_term: HorizonTrend | None
    strength: float | None
    consistency: float | None

    @property
    def horizons(self) -> list[HorizonTrend]:
        return [h for h in (self.short_term, self.medium_term, self.long_term) if h is not None]

    def to_extension(self) -> dict[str, Any]:
        """Extension section for the timing result."""
        return {
            "short_term": self.short_term.direction.value if self.short_term else None,
            "medium_term": self.medium_term.direction.value if self.medium_term else None,
            "long_term": self.long_term.direction.value if self.long_term else None,
            "strength": self.strength,
            "consistency": self.consistency,
            "horizons": {h.label: h.to_dict() for h in self.horizons},
        }


class TrendAnalyzer:
    """
    Classify price direction over several horizons.

    Each horizon fits a least-squares line to its closes. Direction comes
    from the slope (as % of the mean price per bar) with a dead band around
    zero; strength compares the slope with the noise of the window; and
    consistency counts how many sub-intervals move the same way.
    """

    def __init__(
        self,
        short_bars: int = 10,
        medium_bars: int = 50,
        long_bars: int = 200,
        dead_band: float = 0.05,
        segments: int = 5,
        strong_threshold: float = 60.0,
    ):
        self.horizons = {
            "short-term": short_bars,
            "medium-term": medium_bars,
            "long-term": long_bars,
        }
        self.dead_band = dead_band
        self.segments = segments
        self.strong_threshold = strong_threshold

    def _consistency(self, window: np.ndarray, overall_sign: float) -> float:
        agree = 0
        counted = 0
        for chunk in np.array_split(window, self.segments):
            local = calculate_regression_slope(chunk)
            if local is None:
                continue
            counted += 1
            if np.sign(local) == overall_sign:
                agree += 1
        return 100.0 * agree / counted if counted else 0.0

    def analyze_horizon(self, close: pd.Series, bars: int, label: str = "") -> HorizonTrend | None:
        """
        Trend over the last ``bars`` closes.

        Returns:
            HorizonTrend, or None when the history is shorter than ``bars``
        """
        if len(close) < bars or bars < 2:
            return None

        window = close.iloc[-bars:].to_numpy(dtype=float)
        mean_price = float(window.mean())
        slope = calculate_regression_slope(window)
        if slope is None or mean_price == 0:
            return None
        slope_pct = slope / mean_price * 100

        if abs(slope_pct) < self.dead_band:
            direction = TrendDirection.SIDEWAYS
        elif slope_pct > 0:
            direction = TrendDirection.UP
        else:
            direction = TrendDirection.DOWN

        returns = pd.Series(window).pct_change().dropna() * 100
        sigma = float(returns.std()) if len(returns) > 1 else 0.0
        if not math.isfinite(sigma) or sigma == 0:
            strength = 100.0 if slope_pct != 0 else 0.0
        else:
            strength = min(100.0, 50.0 * abs(slope_pct) * math.sqrt(bars) / sigma)

        consistency = self._consistency(window, float(np.sign(slope_pct)))

        return HorizonTrend(
            label=label,
            bars=bars,
            direction=direction,
            slope_pct=slope_pct,
            strength=strength,
            consistency=consistency,
        )

    def analyze(self, close: pd.Series, flagger: DataQualityFlagger | None = None) -> TrendSummary:
        """
        Analyze every configured horizon.

        Horizons longer than the available history are reported as None
        and flagged.

        Args:
            close: Close prices ordered by date
            flagger: Flag collector for insufficient-history notices

        Returns:
            TrendSummary
        """
        results: dict[str, HorizonTrend | None] = {}
        for label, bars in self.horizons.items():
            trend = self.analyze_horizon(close, bars, label)
            if trend is None and flagger is not None:
                flagger.add(f"insufficient history for {label} trend (need {bars} bars)")
            results[label] = trend

        available = [t for t in results.values() if t is not None]
        strength = sum(t.strength for t in available) / len(available) if available else None
        consistency = sum(t.consistency for t in available) / len(available) if available else None

        summary = TrendSummary(
            short_term=results["short-term"],
            medium_term=results["medium-term"],
            long_term=results["long-term"],
            strength=strength,
            consistency=consistency,
        )
        logger.debug(
            f"Trend: {[f'{t.label}={t.direction.value}' for t in available]} "
            f"strength={strength} consistency={consistency}"
        )
        return summary

    def trend_score(self, summary: TrendSummary) -> float | None:
        """
        Signed trend sub-score: mean of per-horizon votes.

        Up scores +1.0 when its strength reaches the strong threshold and
        +0.5 otherwise; Down mirrors that; Sideways scores 0.
        """
        votes = []
        for trend in summary.horizons:
            if trend.direction is TrendDirection.SIDEWAYS:
                votes.append(0.0)
                continue
            magnitude = 1.0 if trend.strength >= self.strong_threshold else 0.5
            votes.append(magnitude if trend.direction is TrendDirection.UP else -magnitude)
        if not votes:
            return None
        return sum(votes) / len(votes)
