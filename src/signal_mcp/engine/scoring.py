"""Composite scoring with renormalization over available weight."""

import logging
from collections.abc import Mapping
from datetime import datetime

from signal_mcp.engine.components import ComponentSet, RawMetric
from signal_mcp.engine.normalizer import Normalizer
from signal_mcp.engine.quality import DataQualityFlagger
from signal_mcp.engine.scale import ScaleKind
from signal_mcp.errors import InsufficientDataError

logger = logging.getLogger(__name__)


class CompositeScorer:
    """
    Combine a component set into one composite value.

    composite = weighted_sum / available_weight, clamped to the set's scale.
    Missing components shift influence onto the remaining ones instead of
    pulling the composite towards zero.
    """

    def score(self, component_set: ComponentSet) -> float:
        """
        Score a component set (freezes it).

        Raises:
            InsufficientDataError: If no component is available
        """
        component_set.freeze()
        available_weight = component_set.available_weight()
        if available_weight <= 0.0:
            raise InsufficientDataError(
                f"No data available for '{component_set.name}'",
                required=1,
                available=0,
            )

        composite = component_set.weighted_sum() / available_weight
        clamped = component_set.scale.clamp(composite)
        logger.debug(
            f"{component_set.name}: weighted_sum={component_set.weighted_sum():.6f} "
            f"available_weight={available_weight:.6f} composite={clamped:.6f}"
        )
        return clamped

    def score_categories(
        self,
        name: str,
        category_inputs: Mapping[str, ComponentSet | RawMetric | float | None],
        top_weights: Mapping[str, float],
        scale: ScaleKind = ScaleKind.SIGNED,
        flagger: DataQualityFlagger | None = None,
        as_of: datetime | None = None,
    ) -> tuple[float, ComponentSet]:
        """
        Two-level composition: score each category, then the top level.

        Each category composite becomes the raw value of the top-level
        component with the same name. A category with no available data is
        an unavailable top-level component. A category may also be supplied
        as an already computed score (RawMetric or number) on the same scale.

        Args:
            name: Name of the top-level set
            category_inputs: Category name -> populated ComponentSet or score
            top_weights: Category weights (must sum to 1.0)
            scale: Scale shared by every level
            flagger: Shared flagger for the top-level set
            as_of: Reference time for the top-level set

        Returns:
            Tuple of (composite, scored top-level ComponentSet)

        Raises:
            InsufficientDataError: If no category has any available data
        """
        top = ComponentSet(name, top_weights, scale=scale, flagger=flagger, as_of=as_of)
        identity = Normalizer.identity(scale)

        for category in top_weights:
            given = category_inputs.get(category)
            if not isinstance(given, ComponentSet):
                top.add(category, identity, given)
                continue

            try:
                category_score: float | None = self.score(given)
            except InsufficientDataError:
                category_score = None
            sources = sorted({c.source for c in given.components if c.available and c.source})
            top.add(
                category,
                identity,
                RawMetric(value=category_score, source=",".join(sources) or None),
            )

        return self.score(top), top
