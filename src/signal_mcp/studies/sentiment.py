"""Sentiment module: revisions, relative strength, short interest and options flow."""

from collections.abc import Iterable, Mapping
from typing import Any

from signal_mcp.engine.components import RawMetric
from signal_mcp.engine.config import MetricSpec, ModuleConfig
from signal_mcp.engine.confidence import ConfidenceEstimator
from signal_mcp.engine.generic import CompositeEngine
from signal_mcp.engine.normalizer import Normalizer
from signal_mcp.engine.signals import SignalThresholds

RATING_VALUES = {
    "strong_buy": 1.0,
    "buy": 1.0,
    "outperform": 1.0,
    "overweight": 1.0,
    "hold": 0.0,
    "neutral": 0.0,
    "underperform": -1.0,
    "underweight": -1.0,
    "sell": -1.0,
    "strong_sell": -1.0,
}

SENTIMENT_CONFIG = ModuleConfig(
    name="sentiment",
    components=(
        MetricSpec("earnings_revisions", 0.40, Normalizer.identity()),
        MetricSpec("relative_strength", 0.30, Normalizer.identity()),
        MetricSpec("short_interest", 0.20, Normalizer(0.0, 0.20, higher_is_better=False)),
        MetricSpec("options_flow", 0.10, Normalizer(0.5, 1.5, higher_is_better=False)),
    ),
    thresholds=SignalThresholds.symmetric(0.5, 0.2),
    confidence=ConfidenceEstimator(mode="product"),
    staleness_days=30.0,
)


def _clamp_unit(value: float) -> float:
    return max(-1.0, min(1.0, value))


def earnings_revision(current_eps: float | None, previous_eps: float | None) -> float | None:
    """
    Relative change between two EPS estimates, clamped to [-1, 1].

    Returns:
        Revision score, or None when the previous estimate is missing or zero
    """
    if current_eps is None or previous_eps is None or previous_eps == 0:
        return None
    return _clamp_unit((current_eps - previous_eps) / abs(previous_eps))


def relative_strength(rsi: float | None, change_pct_14d: float | None) -> float | None:
    """
    Blend RSI position and the 14-day % change into a [-1, 1] score.

    70% weight on (rsi - 50) / 50, 30% on the change scaled by 10 points.
    """
    if rsi is None or change_pct_14d is None:
        return None
    rsi_sentiment = (rsi - 50.0) / 50.0
    return 0.7 * rsi_sentiment + 0.3 * _clamp_unit(change_pct_14d / 10.0)


def analyst_consensus(ratings: Iterable[str], limit: int = 5) -> float | None:
    """
    Mean of the most recent analyst ratings (+1 buy, 0 hold, -1 sell).

    Args:
        ratings: Rating labels, most recent first
        limit: Number of ratings considered

    Returns:
        Consensus in [-1, 1], or None without any recognised rating
    """
    values = []
    for rating in ratings:
        key = str(rating).lower().strip().replace(" ", "_").replace("-", "_")
        if key in RATING_VALUES:
            values.append(RATING_VALUES[key])
        if len(values) >= limit:
            break
    if not values:
        return None
    return sum(values) / len(values)


def _value(raw: Any) -> float | None:
    metric = RawMetric.coerce(raw)
    return float(metric.value) if metric.available else None


def _difference(a: float | None, b: float | None) -> float | None:
    if a is None or b is None:
        return None
    return a - b


class SentimentEngine(CompositeEngine):
    """Score market sentiment towards a stock."""

    def __init__(self, config: ModuleConfig = SENTIMENT_CONFIG):
        super().__init__(config)

    def module_extensions(
        self,
        scores: dict[str, float | None],
        inputs: Mapping[str, Any],
    ) -> dict[str, Any]:
        """15-day performance relative to the market and the sector, in % points."""
        stock = _value(inputs.get("return_15d"))
        market = _value(inputs.get("market_return_15d"))
        sector = _value(inputs.get("sector_return_15d"))
        if stock is None and market is None and sector is None:
            return {}
        return {
            "relative_performance": {
                "return_15d": stock,
                "market_return_15d": market,
                "relative_to_market": _difference(stock, market),
                "sector_return_15d": sector,
                "relative_to_sector": _difference(stock, sector),
            }
        }
