"""Generic, configuration-driven composite scoring engine."""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from signal_mcp.engine.components import ComponentSet, RawMetric
from signal_mcp.engine.config import ModuleConfig
from signal_mcp.engine.quality import DataQualityFlagger
from signal_mcp.engine.result import AnalysisResult
from signal_mcp.engine.scoring import CompositeScorer
from signal_mcp.engine.signals import SignalClassifier

logger = logging.getLogger(__name__)

RawInput = RawMetric | float | int | None


class CompositeEngine:
    """
    Run the shared pipeline for one module.

    normalize -> combine -> classify -> confidence -> flags. Subclasses add
    module-specific flags and extensions through ``module_flags`` and
    ``module_extensions``; everything else is driven by ``ModuleConfig``.
    """

    def __init__(self, config: ModuleConfig):
        self.config = config
        self.scorer = CompositeScorer()
        self.classifier = SignalClassifier(config.thresholds)

    def _new_set(
        self,
        name: str,
        weights: Mapping[str, float],
        flagger: DataQualityFlagger,
        as_of: datetime,
    ) -> ComponentSet:
        return ComponentSet(
            name,
            weights,
            scale=self.config.scale,
            flagger=flagger,
            as_of=as_of,
            staleness_days=self.config.staleness_days,
        )

    def build_sets(
        self,
        inputs: Mapping[str, Any],
        flagger: DataQualityFlagger,
        as_of: datetime,
    ) -> tuple[float, ComponentSet, dict[str, ComponentSet]]:
        """
        Populate and score the module's component sets.

        Inputs for a two-level module may be nested (category -> metric ->
        raw), flat (metric -> raw) or carry a precomputed category score.

        Returns:
            Tuple of (composite, top-level set, category sets by name)

        Raises:
            InsufficientDataError: If no component is available at all
        """
        config = self.config
        if not config.categories:
            top = self._new_set(config.name, config.top_weights, flagger, as_of)
            for metric in config.components:
                top.add(metric.name, metric.normalizer, inputs.get(metric.name))
            return self.scorer.score(top), top, {}

        category_inputs: dict[str, ComponentSet | RawInput] = {}
        category_sets: dict[str, ComponentSet] = {}
        for category in config.categories:
            given = inputs.get(category.name)
            if given is not None and not isinstance(given, Mapping):
                category_inputs[category.name] = given
                continue
            metrics = given if isinstance(given, Mapping) else inputs
            category_set = self._new_set(category.name, category.weights, flagger, as_of)
            for metric in category.metrics:
                category_set.add(metric.name, metric.normalizer, metrics.get(metric.name))
            category_inputs[category.name] = category_set
            category_sets[category.name] = category_set

        composite, top = self.scorer.score_categories(
            config.name,
            category_inputs,
            config.top_weights,
            scale=config.scale,
            flagger=flagger,
            as_of=as_of,
        )
        return composite, top, category_sets

    def _leaf_quality(
        self,
        top: ComponentSet,
        category_sets: Mapping[str, ComponentSet],
    ) -> tuple[float, float]:
        """Availability and freshness measured at the leaf metrics."""
        if not category_sets:
            return top.available_weight(), top.mean_freshness()

        availability = 0.0
        freshness_num = 0.0
        for component in top.components:
            if not component.available:
                continue
            category_set = category_sets.get(component.name)
            if category_set is None:
                availability += component.weight
                freshness_num += component.weight * component.freshness
                continue
            inner = category_set.available_weight()
            availability += component.weight * inner
            freshness_num += component.weight * inner * category_set.mean_freshness()
        freshness = freshness_num / availability if availability > 0 else 0.0
        return availability, freshness

    def module_flags(self, scores: dict[str, float | None]) -> list[str]:
        """Extra advisory flags derived from the scored components."""
        return []

    def module_extensions(
        self,
        scores: dict[str, float | None],
        inputs: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Module-specific extension sections attached to the result."""
        return {}

    def analyze(
        self,
        symbol: str,
        inputs: Mapping[str, Any],
        as_of: datetime | None = None,
        observations: int | None = None,
        extensions: dict[str, Any] | None = None,
        flagger: DataQualityFlagger | None = None,
        freshness: float | None = None,
    ) -> AnalysisResult:
        """
        Score one symbol.

        Args:
            symbol: Ticker (or MARKET for market-wide modules)
            inputs: Raw values keyed by metric (or category) name
            as_of: Reference time; defaults to now (UTC)
            observations: Price history length for history-aware confidence
            extensions: Extra extension sections supplied by the caller
            flagger: Flagger already holding flags from earlier stages
            freshness: Freshness measured outside the components (e.g. age of
                the last price bar); overrides the component average

        Returns:
            AnalysisResult

        Raises:
            InsufficientDataError: If no component is available
        """
        as_of = as_of if as_of is not None else datetime.now(timezone.utc)
        flagger = flagger if flagger is not None else DataQualityFlagger()

        composite, top, category_sets = self.build_sets(inputs, flagger, as_of)
        signal = self.classifier.classify(composite)

        availability, leaf_freshness = self._leaf_quality(top, category_sets)
        if freshness is None:
            freshness = leaf_freshness
        history = (
            self.config.confidence.history_ratio(observations)
            if observations is not None
            else None
        )
        confidence = self.config.confidence.estimate(availability, freshness, history)

        scores = {c.name: c.score for c in top.components}
        flagger.extend(self.module_flags(scores))

        sections: dict[str, Any] = dict(extensions or {})
        sections.update(self.module_extensions(scores, inputs))
        if category_sets:
            sections["category_detail"] = {
                name: {
                    "score": scores.get(name),
                    "available_weight": round(cs.available_weight(), 6),
                    "metrics": {c.name: c.score for c in cs.components},
                }
                for name, cs in category_sets.items()
            }

        logger.debug(
            f"{self.config.name}({symbol}): composite={composite:.4f} signal={signal.value} "
            f"confidence={confidence:.2f} flags={len(flagger)}"
        )

        return AnalysisResult(
            symbol=symbol.upper().strip(),
            module=self.config.name,
            scale=self.config.scale,
            composite_score=composite,
            signal=signal,
            confidence=confidence,
            components=tuple(top.components),
            flags=tuple(flagger.flags),
            timestamp=as_of,
            extensions=sections,
        )

