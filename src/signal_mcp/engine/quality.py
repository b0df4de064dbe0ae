"""Data-quality flag collection."""

import logging
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


def _label(name: str) -> str:
    return name.replace("_", " ").strip()


def _as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def age_in_days(observed_at: datetime, as_of: datetime) -> float:
    """Age of an observation in fractional days (never negative)."""
    delta = _as_utc(as_of) - _as_utc(observed_at)
    return max(0.0, delta.total_seconds() / 86400.0)


def _format_days(days: float) -> str:
    return str(int(days)) if float(days).is_integer() else f"{days:g}"


class DataQualityFlagger:
    """
    Append-only collector of human-readable data-quality flags.

    Flags are advisory; recording one never interrupts scoring.
    """

    def __init__(self) -> None:
        self._flags: list[str] = []

    @property
    def flags(self) -> list[str]:
        return list(self._flags)

    def add(self, message: str) -> None:
        logger.debug(f"Data quality flag: {message}")
        self._flags.append(message)

    def extend(self, messages: list[str]) -> None:
        for message in messages:
            self.add(message)

    def missing(self, name: str) -> None:
        self.add(f"missing {_label(name)} data")

    def stale(self, metric: str, max_age_days: float) -> None:
        self.add(f"stale {_label(metric)} data (age > {_format_days(max_age_days)} days)")

    def clamped(self, metric: str) -> None:
        self.add(f"extreme {_label(metric)} value clamped")

    def check_staleness(
        self,
        metric: str,
        observed_at: datetime | None,
        as_of: datetime,
        max_age_days: float | None,
    ) -> bool:
        """
        Flag a metric whose observation is older than the allowed age.

        Args:
            metric: Metric name used in the flag
            observed_at: When the value was observed (None skips the check)
            as_of: Reference time of the analysis
            max_age_days: Staleness threshold (None skips the check)

        Returns:
            True if the metric was flagged stale
        """
        if observed_at is None or max_age_days is None:
            return False
        if age_in_days(observed_at, as_of) > max_age_days:
            self.stale(metric, max_age_days)
            return True
        return False

    def __len__(self) -> int:
        return len(self._flags)
