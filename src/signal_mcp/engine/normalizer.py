"""Raw metric normalization onto a bounded sub-score scale."""

import math
from dataclasses import dataclass

from signal_mcp.engine.scale import ScaleKind
from signal_mcp.errors import ConfigurationError

VALID_CURVES = {"linear", "logistic"}


@dataclass(frozen=True)
class NormalizedValue:
    """Outcome of normalizing one raw value."""

    score: float | None
    clamped: bool = False


@dataclass(frozen=True)
class Normalizer:
    """
    Map a raw metric onto a module scale.

    The raw value is clamped to [low, high] before rescaling, so an outlier
    saturates at the extreme sub-score instead of extrapolating.

    Attributes:
        low: Lower bound of the reference range
        high: Upper bound of the reference range
        higher_is_better: Polarity; False flips the direction
        curve: "linear" or "logistic"
        scale: Target scale for the sub-score
        flag_clamped: Whether clamping should surface as a quality flag
    """

    low: float
    high: float
    higher_is_better: bool = True
    curve: str = "linear"
    scale: ScaleKind = ScaleKind.SIGNED
    flag_clamped: bool = True

    def __post_init__(self) -> None:
        if not (math.isfinite(self.low) and math.isfinite(self.high)):
            raise ConfigurationError(f"Normalizer range must be finite, got [{self.low}, {self.high}]")
        if self.low >= self.high:
            raise ConfigurationError(
                f"Normalizer range must satisfy low < high, got [{self.low}, {self.high}]"
            )
        curve = self.curve.lower().strip()
        if curve not in VALID_CURVES:
            raise ConfigurationError(f"Invalid curve '{self.curve}'. Must be one of: {VALID_CURVES}")
        object.__setattr__(self, "curve", curve)

    @classmethod
    def identity(cls, scale: ScaleKind = ScaleKind.SIGNED, flag_clamped: bool = True) -> "Normalizer":
        """Normalizer for inputs that are already sub-scores on the target scale."""
        return cls(low=scale.lower, high=scale.upper, scale=scale, flag_clamped=flag_clamped)

    def _fraction(self, x: float) -> float:
        span = self.high - self.low
        if self.curve == "linear":
            return (x - self.low) / span

        # Logistic centred on the range midpoint, rescaled so the bounds hit 0 and 1 exactly
        k = 8.0 / span
        mid = (self.low + self.high) / 2.0

        def sigmoid(v: float) -> float:
            return 1.0 / (1.0 + math.exp(-k * (v - mid)))

        f_low = sigmoid(self.low)
        f_high = sigmoid(self.high)
        return (sigmoid(x) - f_low) / (f_high - f_low)

    def normalize(self, raw: float | None) -> NormalizedValue:
        """
        Normalize a raw value.

        Args:
            raw: Raw metric value, or None when absent

        Returns:
            NormalizedValue with score None for absent or non-finite input
        """
        if raw is None:
            return NormalizedValue(score=None)
        try:
            x = float(raw)
        except (TypeError, ValueError):
            return NormalizedValue(score=None)
        if not math.isfinite(x):
            return NormalizedValue(score=None)

        clamped = x < self.low or x > self.high
        x = max(self.low, min(self.high, x))

        fraction = max(0.0, min(1.0, self._fraction(x)))
        if not self.higher_is_better:
            fraction = 1.0 - fraction

        return NormalizedValue(score=self.scale.from_fraction(fraction), clamped=clamped)

    def __call__(self, raw: float | None) -> NormalizedValue:
        return self.normalize(raw)
