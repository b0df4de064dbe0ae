"""Score scales shared by every component set and result."""

from enum import Enum


class ScaleKind(str, Enum):
    """Range a module's sub-scores and composite live in.

    SIGNED scores carry direction in their sign; UNSIGNED scores are 0-100
    with 50 as neutral. The two are never mixed inside one component set.
    """

    SIGNED = "signed"
    UNSIGNED = "unsigned"

    @property
    def lower(self) -> float:
        return -1.0 if self is ScaleKind.SIGNED else 0.0

    @property
    def upper(self) -> float:
        return 1.0 if self is ScaleKind.SIGNED else 100.0

    @property
    def neutral(self) -> float:
        return 0.0 if self is ScaleKind.SIGNED else 50.0

    @property
    def decimals(self) -> int:
        """Decimal places used when a score on this scale is stored."""
        return 4 if self is ScaleKind.SIGNED else 2

    def clamp(self, value: float) -> float:
        """Clamp a value into this scale."""
        return max(self.lower, min(self.upper, value))

    def from_fraction(self, fraction: float) -> float:
        """Map a fraction in [0, 1] onto this scale."""
        if self is ScaleKind.SIGNED:
            return 2.0 * fraction - 1.0
        return 100.0 * fraction

    def from_signed(self, value: float) -> float:
        """Convert a signed [-1, 1] value onto this scale."""
        if self is ScaleKind.SIGNED:
            return value
        return (value + 1.0) * 50.0
