"""Exception taxonomy for the scoring engine."""


class SignalEngineError(Exception):
    """Base class for scoring engine errors."""

    pass


class ConfigurationError(SignalEngineError):
    """Raised when weights, thresholds or normalizer ranges are invalid.

    Always surfaced at construction time and never recovered.
    """

    pass


class InsufficientDataError(SignalEngineError):
    """Raised when an analysis cannot produce a meaningful result."""

    def __init__(
        self,
        message: str,
        *,
        required: int | float | None = None,
        available: int | float | None = None,
    ):
        super().__init__(message)
        self.required = required
        self.available = available
