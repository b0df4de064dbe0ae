"""Components and weighted component sets."""

import logging
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from signal_mcp.engine.normalizer import NormalizedValue, Normalizer
from signal_mcp.engine.quality import DataQualityFlagger, age_in_days
from signal_mcp.engine.scale import ScaleKind
from signal_mcp.errors import ConfigurationError

logger = logging.getLogger(__name__)

WEIGHT_TOLERANCE = 1e-6

NormalizerFn = Normalizer | Callable[[float | None], NormalizedValue | float | None]


@dataclass(frozen=True)
class RawMetric:
    """A single externally supplied observation and where it came from."""

    value: float | None
    source: str | None = None
    url: str | None = None
    observed_at: datetime | None = None

    @property
    def available(self) -> bool:
        if self.value is None or isinstance(self.value, bool):
            return False
        try:
            return math.isfinite(float(self.value))
        except (TypeError, ValueError):
            return False

    @classmethod
    def coerce(cls, raw: "RawMetric | float | int | None") -> "RawMetric":
        if isinstance(raw, RawMetric):
            return raw
        return cls(value=raw)


@dataclass(frozen=True)
class Component:
    """One named, weighted sub-score."""

    name: str
    weight: float
    score: float | None
    available: bool
    raw_value: float | None = None
    source: str | None = None
    url: str | None = None
    observed_at: datetime | None = None
    freshness: float = 1.0
    clamped: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "weight": self.weight,
            "score": self.score,
            "available": self.available,
            "raw_value": self.raw_value,
            "source": self.source,
            "url": self.url,
            "observed_at": self.observed_at.isoformat() if self.observed_at else None,
            "freshness": self.freshness,
            "clamped": self.clamped,
        }


def validate_weights(name: str, weights: Mapping[str, float]) -> None:
    """
    Check that weights are each in (0, 1] and sum to 1.0.

    Raises:
        ConfigurationError: If the weighting scheme is invalid
    """
    if not weights:
        raise ConfigurationError(f"Component set '{name}' declares no components")
    for component, weight in weights.items():
        if not (0.0 < weight <= 1.0):
            raise ConfigurationError(
                f"Component set '{name}': weight for '{component}' must be in (0, 1], got {weight}"
            )
    total = math.fsum(weights.values())
    if abs(total - 1.0) > WEIGHT_TOLERANCE:
        raise ConfigurationError(
            f"Component set '{name}': weights must sum to 1.0 (got {total:.6f})"
        )


def _apply(normalizer: NormalizerFn, value: float | None) -> NormalizedValue:
    result = normalizer(value)
    if isinstance(result, NormalizedValue):
        return result
    return NormalizedValue(score=result)


class ComponentSet:
    """
    Ordered, weighted collection of sub-scores for one scoring category.

    Weights are declared up front and validated on construction. Components
    are added one at a time; once scored the set is frozen.
    """

    def __init__(
        self,
        name: str,
        weights: Mapping[str, float],
        scale: ScaleKind = ScaleKind.SIGNED,
        flagger: DataQualityFlagger | None = None,
        as_of: datetime | None = None,
        staleness_days: float | None = None,
    ):
        validate_weights(name, weights)
        self.name = name
        self.scale = scale
        self.flagger = flagger if flagger is not None else DataQualityFlagger()
        self.as_of = as_of if as_of is not None else datetime.now(timezone.utc)
        self.staleness_days = staleness_days
        self._weights: dict[str, float] = dict(weights)
        self._components: dict[str, Component] = {}
        self._frozen = False

    @property
    def declared(self) -> list[str]:
        return list(self._weights)

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def components(self) -> list[Component]:
        """Components in declaration order (only those added so far)."""
        return [self._components[n] for n in self._weights if n in self._components]

    def get(self, name: str) -> Component | None:
        return self._components.get(name)

    def _freshness(self, observed_at: datetime | None) -> float:
        if observed_at is None or not self.staleness_days:
            return 1.0
        return 0.5 ** (age_in_days(observed_at, self.as_of) / self.staleness_days)

    def add(
        self,
        name: str,
        normalizer: NormalizerFn,
        raw: RawMetric | float | None,
        weight: float | None = None,
    ) -> Component:
        """
        Normalize a raw value and store it as a component.

        Args:
            name: Declared component name
            normalizer: Normalizer (or callable) producing the sub-score
            raw: Raw metric, plain number, or None when absent
            weight: Optional weight, must match the declared weight

        Returns:
            The stored Component

        Raises:
            ConfigurationError: If the set is frozen, the name is undeclared,
                already added, or the weight disagrees with the declaration
        """
        if self._frozen:
            raise ConfigurationError(f"Component set '{self.name}' is already scored")
        if name not in self._weights:
            raise ConfigurationError(f"Component '{name}' is not declared in set '{self.name}'")
        if name in self._components:
            raise ConfigurationError(f"Component '{name}' already added to set '{self.name}'")
        declared = self._weights[name]
        if weight is not None and abs(weight - declared) > WEIGHT_TOLERANCE:
            raise ConfigurationError(
                f"Component '{name}' weight {weight} does not match declared weight {declared}"
            )

        metric = RawMetric.coerce(raw)
        if metric.available:
            normalized = _apply(normalizer, float(metric.value))
        else:
            normalized = NormalizedValue(score=None)

        score = normalized.score
        available = score is not None and math.isfinite(score)
        if available:
            score = self.scale.clamp(score)
        else:
            score = None

        if not available:
            self.flagger.missing(name)
        else:
            if normalized.clamped and getattr(normalizer, "flag_clamped", True):
                self.flagger.clamped(name)
            self.flagger.check_staleness(name, metric.observed_at, self.as_of, self.staleness_days)

        component = Component(
            name=name,
            weight=declared,
            score=score,
            available=available,
            raw_value=float(metric.value) if metric.available else None,
            source=metric.source,
            url=metric.url,
            observed_at=metric.observed_at,
            freshness=self._freshness(metric.observed_at) if available else 0.0,
            clamped=normalized.clamped,
        )
        self._components[name] = component
        return component

    def freeze(self) -> None:
        """Mark declared-but-never-added components unavailable and lock the set."""
        if self._frozen:
            return
        for name, weight in self._weights.items():
            if name not in self._components:
                self.flagger.missing(name)
                self._components[name] = Component(
                    name=name, weight=weight, score=None, available=False, freshness=0.0
                )
        self._frozen = True

    def weighted_sum(self) -> float:
        """Sum of weight * score over available components."""
        return math.fsum(c.weight * c.score for c in self._components.values() if c.available)

    def available_weight(self) -> float:
        """Sum of weights of available components."""
        return math.fsum(c.weight for c in self._components.values() if c.available)

    def available_count(self) -> int:
        return sum(1 for c in self._components.values() if c.available)

    def mean_freshness(self) -> float:
        """Weight-averaged freshness of available components (0.0 when none)."""
        total = self.available_weight()
        if total <= 0:
            return 0.0
        return math.fsum(
            c.weight * c.freshness for c in self._components.values() if c.available
        ) / total

    def __len__(self) -> int:
        return len(self._components)

    def __repr__(self) -> str:
        return (
            f"ComponentSet(name={self.name!r}, scale={self.scale.value}, "
            f"available_weight={self.available_weight():.4f}, frozen={self._frozen})"
        )
