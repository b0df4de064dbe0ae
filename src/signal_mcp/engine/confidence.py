"""Confidence estimation from data completeness and freshness."""

from dataclasses import dataclass

from signal_mcp.engine.components import ComponentSet
from signal_mcp.errors import ConfigurationError

VALID_MODES = {"product", "weighted"}
DEFAULT_FLOOR = 0.05


def _unit(value: float) -> float:
    return max(0.0, min(1.0, value))


@dataclass(frozen=True)
class ConfidenceEstimator:
    """
    Estimate how far a result can be trusted.

    Both modes are monotonically non-decreasing in every input, and the
    result never drops below ``floor`` so "low confidence" stays distinct
    from "no result".

    Attributes:
        mode: "product" multiplies the ratios; "weighted" averages them
        availability_weight: Weight of the availability ratio (weighted mode)
        freshness_weight: Weight of the freshness ratio (weighted mode)
        history_weight: Weight of the history ratio (weighted mode)
        history_target: Observation count that counts as a full history
        floor: Minimum confidence returned
    """

    mode: str = "product"
    availability_weight: float = 0.4
    freshness_weight: float = 0.3
    history_weight: float = 0.3
    history_target: int | None = None
    floor: float = DEFAULT_FLOOR

    def __post_init__(self) -> None:
        if self.mode not in VALID_MODES:
            raise ConfigurationError(f"Invalid confidence mode '{self.mode}'. Must be one of: {VALID_MODES}")
        weights = (self.availability_weight, self.freshness_weight, self.history_weight)
        if any(w < 0 for w in weights) or sum(weights) <= 0:
            raise ConfigurationError(f"Confidence weights must be non-negative with a positive sum, got {weights}")
        if not (0.0 < self.floor < 1.0):
            raise ConfigurationError(f"Confidence floor must be in (0, 1), got {self.floor}")
        if self.history_target is not None and self.history_target <= 0:
            raise ConfigurationError(f"history_target must be positive, got {self.history_target}")

    def history_ratio(self, observations: int) -> float | None:
        """Observations relative to the target window, or None when no target is set."""
        if self.history_target is None:
            return None
        return _unit(observations / self.history_target)

    def estimate(
        self,
        availability: float,
        freshness: float = 1.0,
        history: float | None = None,
    ) -> float:
        """
        Combine completeness ratios into a confidence in [floor, 1].

        Args:
            availability: Available weight relative to 1.0
            freshness: Data freshness in [0, 1] (1 = just fetched)
            history: Optional price-history ratio in [0, 1]

        Returns:
            Confidence in [floor, 1]
        """
        availability = _unit(availability)
        freshness = _unit(freshness)

        if self.mode == "product":
            value = availability * freshness
            if history is not None:
                value *= _unit(history)
        else:
            parts = [
                (self.availability_weight, availability),
                (self.freshness_weight, freshness),
            ]
            if history is not None:
                parts.append((self.history_weight, _unit(history)))
            total_weight = sum(w for w, _ in parts)
            value = sum(w * v for w, v in parts) / total_weight if total_weight > 0 else 0.0

        return max(self.floor, min(1.0, value))

    def estimate_for(self, component_set: ComponentSet, observations: int | None = None) -> float:
        """Confidence for a scored component set, optionally with a history length."""
        history = self.history_ratio(observations) if observations is not None else None
        return self.estimate(
            availability=component_set.available_weight(),
            freshness=component_set.mean_freshness(),
            history=history,
        )
