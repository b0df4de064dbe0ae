"""Configuration data for the generic scoring engine."""

from dataclasses import dataclass, field

from signal_mcp.engine.components import validate_weights
from signal_mcp.engine.confidence import ConfidenceEstimator
from signal_mcp.engine.normalizer import Normalizer
from signal_mcp.engine.scale import ScaleKind
from signal_mcp.engine.signals import SignalThresholds
from signal_mcp.errors import ConfigurationError


@dataclass(frozen=True)
class MetricSpec:
    """One declared component: name, weight and how to normalize its raw value."""

    name: str
    weight: float
    normalizer: Normalizer


@dataclass(frozen=True)
class CategorySpec:
    """A category scored from its own metrics before the top-level combination."""

    name: str
    weight: float
    metrics: tuple[MetricSpec, ...]

    def __post_init__(self) -> None:
        validate_weights(self.name, self.weights)

    @property
    def weights(self) -> dict[str, float]:
        return {m.name: m.weight for m in self.metrics}


@dataclass(frozen=True)
class ModuleConfig:
    """
    Everything that distinguishes one scoring module from another.

    A module is either single-level (``components``) or two-level
    (``categories``), never both.

    Attributes:
        name: Module name (timing, fundamentals, sentiment, regime)
        scale: Scale of every sub-score and the composite
        components: Top-level metric declarations (single-level modules)
        categories: Category declarations (two-level modules)
        thresholds: Signal boundaries on ``scale``
        confidence: Confidence estimator
        staleness_days: Age after which an input is flagged stale
    """

    name: str
    scale: ScaleKind = ScaleKind.SIGNED
    components: tuple[MetricSpec, ...] = ()
    categories: tuple[CategorySpec, ...] = ()
    thresholds: SignalThresholds = field(default_factory=SignalThresholds)
    confidence: ConfidenceEstimator = field(default_factory=ConfidenceEstimator)
    staleness_days: float | None = None

    def __post_init__(self) -> None:
        if bool(self.components) == bool(self.categories):
            raise ConfigurationError(
                f"Module '{self.name}' must declare either components or categories"
            )
        validate_weights(self.name, self.top_weights)
        if self.thresholds.scale is not self.scale:
            raise ConfigurationError(
                f"Module '{self.name}' thresholds are on the {self.thresholds.scale.value} scale, "
                f"module scale is {self.scale.value}"
            )
        for metric in self.all_metrics:
            if metric.normalizer.scale is not self.scale:
                raise ConfigurationError(
                    f"Module '{self.name}': normalizer for '{metric.name}' targets "
                    f"{metric.normalizer.scale.value}, module scale is {self.scale.value}"
                )

    @property
    def top_weights(self) -> dict[str, float]:
        if self.categories:
            return {c.name: c.weight for c in self.categories}
        return {m.name: m.weight for m in self.components}

    @property
    def all_metrics(self) -> list[MetricSpec]:
        if self.categories:
            return [m for c in self.categories for m in c.metrics]
        return list(self.components)
