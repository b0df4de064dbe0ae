"""Tests for confidence estimation and quality flags."""

from datetime import datetime, timedelta, timezone

import pytest

from signal_mcp.engine.confidence import ConfidenceEstimator
from signal_mcp.engine.quality import DataQualityFlagger, age_in_days
from signal_mcp.errors import ConfigurationError

GRID = [i / 10 for i in range(11)]


class TestConfidenceEstimator:
    """Tests for both confidence modes."""

    @pytest.mark.parametrize("mode", ["product", "weighted"])
    def test_monotone_in_availability(self, mode: str) -> None:
        """Test confidence never falls as availability rises."""
        estimator = ConfidenceEstimator(mode=mode)
        for freshness in GRID:
            values = [estimator.estimate(a, freshness) for a in GRID]
            assert values == sorted(values)

    @pytest.mark.parametrize("mode", ["product", "weighted"])
    def test_monotone_in_freshness(self, mode: str) -> None:
        """Test confidence never falls as freshness rises."""
        estimator = ConfidenceEstimator(mode=mode)
        for availability in GRID:
            values = [estimator.estimate(availability, f) for f in GRID]
            assert values == sorted(values)

    def test_product(self) -> None:
        """Test product mode multiplies the ratios."""
        assert ConfidenceEstimator().estimate(0.9, 0.5) == pytest.approx(0.45)
        assert ConfidenceEstimator().estimate(0.5, 1.0, history=0.5) == pytest.approx(0.25)

    def test_weighted(self) -> None:
        """Test weighted mode averages the ratios by weight."""
        estimator = ConfidenceEstimator(mode="weighted")
        assert estimator.estimate(1.0, 0.5, history=0.0) == pytest.approx(0.4 + 0.15)
        # Without history the remaining weights are renormalized
        assert estimator.estimate(1.0, 0.0) == pytest.approx(0.4 / 0.7)

    def test_floor(self) -> None:
        """Test confidence never drops below the floor."""
        assert ConfidenceEstimator().estimate(0.0, 0.0) == pytest.approx(0.05)

    def test_inputs_clamped(self) -> None:
        """Test ratios outside [0, 1] are clamped."""
        assert ConfidenceEstimator().estimate(1.7, 2.0) == 1.0

    def test_history_ratio(self) -> None:
        """Test observation count relative to the target."""
        estimator = ConfidenceEstimator(history_target=200)
        assert estimator.history_ratio(100) == pytest.approx(0.5)
        assert estimator.history_ratio(400) == 1.0
        assert ConfidenceEstimator().history_ratio(100) is None

    def test_invalid_mode(self) -> None:
        """Test an unknown mode raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Invalid confidence mode"):
            ConfidenceEstimator(mode="median")

    def test_invalid_floor(self) -> None:
        """Test the floor must be inside (0, 1)."""
        with pytest.raises(ConfigurationError, match="floor"):
            ConfidenceEstimator(floor=0.0)


class TestDataQualityFlagger:
    """Tests for flag collection."""

    def test_flag_wording(self) -> None:
        """Test the standard flag messages."""
        flagger = DataQualityFlagger()
        flagger.missing("earnings_revisions")
        flagger.stale("short_interest", 30)
        flagger.clamped("pe_ratio")
        flagger.stale("price", 2.5)

        assert flagger.flags == [
            "missing earnings revisions data",
            "stale short interest data (age > 30 days)",
            "extreme pe ratio value clamped",
            "stale price data (age > 2.5 days)",
        ]

    def test_flags_is_a_copy(self) -> None:
        """Test callers cannot mutate the collected flags."""
        flagger = DataQualityFlagger()
        flagger.add("x")
        flagger.flags.append("y")
        assert len(flagger) == 1

    def test_check_staleness_skips_unknown(self) -> None:
        """Test no observation time or no limit skips the check."""
        flagger = DataQualityFlagger()
        now = datetime.now(timezone.utc)
        assert flagger.check_staleness("a", None, now, 1) is False
        assert flagger.check_staleness("a", now - timedelta(days=9), now, None) is False
        assert len(flagger) == 0

    def test_age_never_negative(self) -> None:
        """Test observations after as_of have zero age."""
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert age_in_days(now + timedelta(days=2), now) == 0.0
        assert age_in_days(now - timedelta(hours=36), now) == pytest.approx(1.5)
