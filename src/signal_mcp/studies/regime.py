"""Market regime module: market-wide trend, volatility, breadth and sentiment."""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from signal_mcp.engine.components import RawMetric
from signal_mcp.engine.config import MetricSpec, ModuleConfig
from signal_mcp.engine.confidence import ConfidenceEstimator
from signal_mcp.engine.generic import CompositeEngine
from signal_mcp.engine.normalizer import Normalizer
from signal_mcp.engine.signals import SignalThresholds

MARKET_SYMBOL = "MARKET"

DEFAULT_VIX = 20.0
DEFAULT_BREADTH = 1.0
DEFAULT_MARKET_VOLATILITY = 2.0


class MarketRegime(str, Enum):
    BULL = "Bull"
    BEAR = "Bear"
    SIDEWAYS = "Sideways"
    VOLATILE = "Volatile"
    STABLE = "Stable"
    TRANSITION = "Transition"

    @property
    def stock_analysis_multiplier(self) -> float:
        """Scaling applied to single-stock conviction in this regime."""
        return _MULTIPLIERS[self]


_MULTIPLIERS = {
    MarketRegime.BULL: 1.2,
    MarketRegime.BEAR: 0.8,
    MarketRegime.SIDEWAYS: 1.0,
    MarketRegime.VOLATILE: 0.9,
    MarketRegime.STABLE: 1.1,
    MarketRegime.TRANSITION: 0.95,
}


class MarketTrend(str, Enum):
    STRONG_BULLISH = "StrongBullish"
    BULLISH = "Bullish"
    NEUTRAL = "Neutral"
    BEARISH = "Bearish"
    STRONG_BEARISH = "StrongBearish"


class MarketRiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    VERY_HIGH = "VeryHigh"


REGIME_CONFIG = ModuleConfig(
    name="regime",
    components=(
        MetricSpec("short_trend", 0.25, Normalizer(-0.05, 0.05)),
        MetricSpec("medium_trend", 0.20, Normalizer(-0.10, 0.10)),
        MetricSpec("vix", 0.20, Normalizer(12.0, 35.0, higher_is_better=False)),
        MetricSpec("breadth", 0.15, Normalizer(0.5, 2.0)),
        MetricSpec("put_call", 0.10, Normalizer(0.6, 1.2, higher_is_better=False)),
        MetricSpec("fear_greed", 0.10, Normalizer(0.0, 100.0)),
    ),
    thresholds=SignalThresholds.symmetric(0.6, 0.2),
    confidence=ConfidenceEstimator(mode="product"),
    staleness_days=3.0,
)


def bucket_trend(change: float | None, strong: float, weak: float) -> MarketTrend:
    """
    Bucket a fractional index change.

    Args:
        change: Fractional change (0.03 = +3%), None counts as neutral
        strong: Magnitude beyond which the trend is strong
        weak: Magnitude beyond which the trend is directional
    """
    if change is None:
        return MarketTrend.NEUTRAL
    if change > strong:
        return MarketTrend.STRONG_BULLISH
    if change > weak:
        return MarketTrend.BULLISH
    if change < -strong:
        return MarketTrend.STRONG_BEARISH
    if change < -weak:
        return MarketTrend.BEARISH
    return MarketTrend.NEUTRAL


def market_volatility(short_change: float | None) -> float:
    """Absolute 20-day index change in percent."""
    if short_change is None:
        return DEFAULT_MARKET_VOLATILITY
    return abs(short_change) * 100


def detect_regime(
    volatility: float,
    short_term: MarketTrend,
    medium_term: MarketTrend,
    vix: float | None,
    breadth: float | None,
) -> MarketRegime:
    """Classify the market regime; the first matching rule wins."""
    vix_level = vix if vix is not None else DEFAULT_VIX
    breadth_ratio = breadth if breadth is not None else DEFAULT_BREADTH

    if volatility > 3.0 or vix_level > 30.0:
        return MarketRegime.VOLATILE
    if volatility < 1.0 and vix_level < 15.0:
        return MarketRegime.STABLE
    if (
        short_term is MarketTrend.STRONG_BULLISH
        and medium_term is MarketTrend.BULLISH
        and breadth_ratio > 1.5
    ):
        return MarketRegime.BULL
    if (
        short_term is MarketTrend.STRONG_BEARISH
        and medium_term is MarketTrend.BEARISH
        and breadth_ratio < 0.7
    ):
        return MarketRegime.BEAR
    if (
        short_term is MarketTrend.NEUTRAL
        and medium_term is MarketTrend.NEUTRAL
        and volatility < 2.0
    ):
        return MarketRegime.SIDEWAYS
    return MarketRegime.TRANSITION


def market_risk(volatility: float, vix: float | None) -> tuple[float, MarketRiskLevel]:
    """Risk score on 0-100 and its level."""
    raw = volatility * 20.0
    if vix is not None:
        raw += vix * 2.0

    if raw > 80:
        level = MarketRiskLevel.VERY_HIGH
    elif raw > 60:
        level = MarketRiskLevel.HIGH
    elif raw > 40:
        level = MarketRiskLevel.MEDIUM
    else:
        level = MarketRiskLevel.LOW
    return min(100.0, raw), level


def trend_consistency(short_term: MarketTrend, medium_term: MarketTrend) -> float:
    # Long-term trend mirrors the medium-term one
    return 90.0 if short_term is medium_term else 70.0


def regime_confidence(
    spy_present: bool,
    vix: float | None,
    breadth: float | None,
    consistency: float,
    volatility: float,
) -> float:
    """Additive confidence in the regime label, clipped to [0, 1]."""
    confidence = 0.5
    if spy_present:
        confidence += 0.1
    if vix is not None:
        confidence += 0.1
    if breadth is not None:
        confidence += 0.1

    if consistency > 80:
        confidence += 0.1
    elif consistency < 50:
        confidence -= 0.1

    if breadth is not None and (breadth > 1.2 or breadth < 0.8):
        confidence += 0.1
    if volatility > 3.0 or volatility < 1.0:
        confidence += 0.1

    return max(0.0, min(1.0, confidence))


def _value(raw: Any) -> float | None:
    metric = RawMetric.coerce(raw)
    return float(metric.value) if metric.available else None


class RegimeEngine(CompositeEngine):
    """Score the overall market backdrop and label its regime."""

    def __init__(self, config: ModuleConfig = REGIME_CONFIG):
        super().__init__(config)

    def module_extensions(
        self,
        scores: dict[str, float | None],
        inputs: Mapping[str, Any],
    ) -> dict[str, Any]:
        short_change = _value(inputs.get("short_trend"))
        medium_change = _value(inputs.get("medium_trend"))
        vix = _value(inputs.get("vix"))
        breadth = _value(inputs.get("breadth"))
        spy_present = _value(inputs.get("spy_price")) is not None or short_change is not None

        short_term = bucket_trend(short_change, strong=0.05, weak=0.02)
        medium_term = bucket_trend(medium_change, strong=0.10, weak=0.05)
        volatility = market_volatility(short_change)
        regime = detect_regime(volatility, short_term, medium_term, vix, breadth)
        risk_score, risk_level = market_risk(volatility, vix)
        consistency = trend_consistency(short_term, medium_term)

        return {
            "regime": {
                "market_regime": regime.value,
                "short_term_trend": short_term.value,
                "medium_term_trend": medium_term.value,
                "market_volatility": volatility,
                "risk_score": risk_score,
                "risk_level": risk_level.value,
                "regime_confidence": regime_confidence(
                    spy_present, vix, breadth, consistency, volatility
                ),
                "stock_analysis_multiplier": regime.stock_analysis_multiplier,
            }
        }
