"""Threshold classification of composite scores into trading signals."""

import math
from dataclasses import dataclass
from enum import Enum

from signal_mcp.engine.scale import ScaleKind
from signal_mcp.errors import ConfigurationError


class TradingSignal(str, Enum):
    """Discrete recommendation derived from a composite score."""

    STRONG_BUY = "StrongBuy"
    WEAK_BUY = "WeakBuy"
    HOLD = "Hold"
    WEAK_SELL = "WeakSell"
    STRONG_SELL = "StrongSell"

    @property
    def position_size(self) -> float:
        """Recommended exposure, from +1.0 (max long) to -1.0 (max short)."""
        return _POSITION_SIZES[self]


_POSITION_SIZES = {
    TradingSignal.STRONG_BUY: 1.0,
    TradingSignal.WEAK_BUY: 0.5,
    TradingSignal.HOLD: 0.0,
    TradingSignal.WEAK_SELL: -0.5,
    TradingSignal.STRONG_SELL: -1.0,
}


@dataclass(frozen=True)
class SignalThresholds:
    """Boundaries between the five signals, expressed on a module's scale."""

    strong_buy: float = 0.6
    weak_buy: float = 0.2
    weak_sell: float = -0.2
    strong_sell: float = -0.6
    scale: ScaleKind = ScaleKind.SIGNED

    def __post_init__(self) -> None:
        values = (self.strong_sell, self.weak_sell, self.weak_buy, self.strong_buy)
        if not all(math.isfinite(v) for v in values):
            raise ConfigurationError(f"Signal thresholds must be finite, got {values}")
        if not (self.strong_sell < self.weak_sell < self.weak_buy < self.strong_buy):
            raise ConfigurationError(
                "Signal thresholds must satisfy strong_sell < weak_sell < weak_buy < strong_buy, "
                f"got {values}"
            )
        if self.strong_sell < self.scale.lower or self.strong_buy > self.scale.upper:
            raise ConfigurationError(
                f"Signal thresholds {values} fall outside the {self.scale.value} scale"
            )

    @classmethod
    def symmetric(
        cls,
        strong: float,
        weak: float,
        scale: ScaleKind = ScaleKind.SIGNED,
    ) -> "SignalThresholds":
        """Symmetric signed thresholds (e.g. 0.6/0.2), expressed on the given scale."""
        return cls(
            strong_buy=scale.from_signed(strong),
            weak_buy=scale.from_signed(weak),
            weak_sell=scale.from_signed(-weak),
            strong_sell=scale.from_signed(-strong),
            scale=scale,
        )

    def for_scale(self, scale: ScaleKind) -> "SignalThresholds":
        """Equivalent thresholds on another scale."""
        if scale is self.scale:
            return self

        def to_signed(v: float) -> float:
            return v if self.scale is ScaleKind.SIGNED else v / 50.0 - 1.0

        return SignalThresholds(
            strong_buy=scale.from_signed(to_signed(self.strong_buy)),
            weak_buy=scale.from_signed(to_signed(self.weak_buy)),
            weak_sell=scale.from_signed(to_signed(self.weak_sell)),
            strong_sell=scale.from_signed(to_signed(self.strong_sell)),
            scale=scale,
        )


class SignalClassifier:
    """
    Map composite scores to trading signals.

    Stateless and total over the reals. A value exactly on a boundary
    resolves to the less extreme signal, so +0.6 is WeakBuy and +0.2 is Hold.
    """

    def __init__(self, thresholds: SignalThresholds | None = None):
        self.thresholds = thresholds if thresholds is not None else SignalThresholds()

    def classify(self, composite: float) -> TradingSignal:
        """
        Classify a composite score.

        Raises:
            ValueError: If composite is NaN
        """
        if math.isnan(composite):
            raise ValueError("Cannot classify a NaN composite score")

        t = self.thresholds
        if composite > t.strong_buy:
            return TradingSignal.STRONG_BUY
        if composite > t.weak_buy:
            return TradingSignal.WEAK_BUY
        if composite < t.strong_sell:
            return TradingSignal.STRONG_SELL
        if composite < t.weak_sell:
            return TradingSignal.WEAK_SELL
        return TradingSignal.HOLD
