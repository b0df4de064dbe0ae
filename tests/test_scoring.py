"""Tests for composite scoring and renormalization."""

import random

import pytest

from signal_mcp.engine.components import ComponentSet, RawMetric
from signal_mcp.engine.normalizer import Normalizer
from signal_mcp.engine.scale import ScaleKind
from signal_mcp.engine.scoring import CompositeScorer
from signal_mcp.errors import InsufficientDataError

IDENTITY = Normalizer.identity()


def random_weights(rng: random.Random, n: int) -> dict[str, float]:
    raw = [rng.uniform(0.05, 1.0) for _ in range(n)]
    total = sum(raw)
    return {f"c{i}": w / total for i, w in enumerate(raw)}


class TestCompositeScorer:
    """Tests for single-level scoring."""

    def test_all_available(self) -> None:
        """Test composite is the weighted mean when nothing is missing."""
        cs = ComponentSet("s", {"a": 0.6, "b": 0.4})
        cs.add("a", IDENTITY, 0.5)
        cs.add("b", IDENTITY, -0.5)

        assert CompositeScorer().score(cs) == pytest.approx(0.1)

    def test_missing_component_renormalizes(self) -> None:
        """Test missing weight is redistributed instead of pulling towards zero."""
        cs = ComponentSet("s", {"a": 0.6, "b": 0.4})
        cs.add("a", IDENTITY, 0.5)

        assert CompositeScorer().score(cs) == pytest.approx(0.5)

    def test_nothing_available_raises(self) -> None:
        """Test zero available weight raises InsufficientDataError."""
        cs = ComponentSet("s", {"a": 0.6, "b": 0.4})
        cs.add("a", IDENTITY, None)

        with pytest.raises(InsufficientDataError) as exc_info:
            CompositeScorer().score(cs)
        assert exc_info.value.available == 0

    def test_scoring_freezes_set(self) -> None:
        """Test scoring freezes the set."""
        cs = ComponentSet("s", {"a": 1.0})
        cs.add("a", IDENTITY, 0.2)
        CompositeScorer().score(cs)

        assert cs.frozen is True

    def test_random_subsets_renormalize(self) -> None:
        """Test composite equals sum(w*s)/sum(w) over available components for random inputs."""
        rng = random.Random(1234)
        scorer = CompositeScorer()

        for _ in range(200):
            n = rng.randint(1, 8)
            weights = random_weights(rng, n)
            scores = {name: rng.uniform(-1.0, 1.0) for name in weights}
            dropped = {name for name in weights if rng.random() < 0.4}
            if len(dropped) == n:
                dropped.pop()

            cs = ComponentSet("random", weights)
            for name in weights:
                cs.add(name, IDENTITY, None if name in dropped else scores[name])

            kept = [name for name in weights if name not in dropped]
            expected = sum(weights[k] * scores[k] for k in kept) / sum(weights[k] for k in kept)
            composite = scorer.score(cs)

            assert composite == pytest.approx(expected, abs=1e-9)
            assert -1.0 <= composite <= 1.0

    def test_unsigned_composite_in_range(self) -> None:
        """Test unsigned composites stay within 0-100."""
        rng = random.Random(99)
        for _ in range(50):
            weights = random_weights(rng, 4)
            cs = ComponentSet("u", weights, scale=ScaleKind.UNSIGNED)
            for name in weights:
                cs.add(name, Normalizer.identity(ScaleKind.UNSIGNED), rng.uniform(0, 100))
            assert 0.0 <= CompositeScorer().score(cs) <= 100.0


class TestScoreCategories:
    """Tests for two-level composition."""

    def test_category_composites_feed_top_level(self) -> None:
        """Test category scores become top-level components."""
        quality = ComponentSet("quality", {"x": 0.5, "y": 0.5})
        quality.add("x", IDENTITY, RawMetric(0.8, source="a"))
        quality.add("y", IDENTITY, RawMetric(0.4, source="b"))
        value = ComponentSet("value", {"z": 1.0})
        value.add("z", IDENTITY, -0.2)

        composite, top = CompositeScorer().score_categories(
            "module", {"quality": quality, "value": value}, {"quality": 0.75, "value": 0.25}
        )

        assert top.get("quality").score == pytest.approx(0.6)
        assert top.get("quality").source == "a,b"
        assert composite == pytest.approx(0.75 * 0.6 + 0.25 * -0.2)

    def test_empty_category_is_unavailable(self) -> None:
        """Test a category with no data drops out of the top level."""
        quality = ComponentSet("quality", {"x": 1.0})
        quality.add("x", IDENTITY, 0.5)
        value = ComponentSet("value", {"z": 1.0})
        value.add("z", IDENTITY, None)

        composite, top = CompositeScorer().score_categories(
            "module", {"quality": quality, "value": value}, {"quality": 0.75, "value": 0.25}
        )

        assert top.get("value").available is False
        assert composite == pytest.approx(0.5)

    def test_precomputed_category(self) -> None:
        """Test a category may be supplied as a number."""
        composite, _ = CompositeScorer().score_categories(
            "module", {"quality": 0.4, "value": None}, {"quality": 0.75, "value": 0.25}
        )
        assert composite == pytest.approx(0.4)

    def test_no_category_available_raises(self) -> None:
        """Test all-empty categories raise InsufficientDataError."""
        with pytest.raises(InsufficientDataError):
            CompositeScorer().score_categories("module", {}, {"quality": 0.5, "value": 0.5})
