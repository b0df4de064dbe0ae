"""Score caller-supplied raw values without fetching anything."""

import logging
from collections.abc import Mapping
from datetime import datetime
from time import perf_counter
from typing import Any

from signal_mcp.engine.components import RawMetric
from signal_mcp.engine.generic import CompositeEngine
from signal_mcp.engine.result import AnalysisResult
from signal_mcp.errors import ConfigurationError
from signal_mcp.studies.fundamentals import FundamentalsEngine
from signal_mcp.studies.regime import MARKET_SYMBOL, RegimeEngine
from signal_mcp.studies.sentiment import SentimentEngine
from signal_mcp.timing.engine import TimingEngine, timing_module_config
from signal_mcp.tools.common import error_response, get_settings
from signal_mcp.utils.provenance import build_meta, build_provenance
from signal_mcp.utils.validators import validate_module

logger = logging.getLogger(__name__)


def _parse_time(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as e:
        raise ConfigurationError(f"Invalid observed_at {value!r}: expected an ISO 8601 timestamp") from e


def to_raw_metric(value: Any) -> Any:
    """
    Convert one JSON input into a RawMetric.

    Numbers and None become bare RawMetrics; a mapping with a ``value`` key
    carries source, url and observed_at; any other mapping is a nested
    category and is converted recursively.
    """
    if isinstance(value, Mapping):
        if "value" in value:
            return RawMetric(
                value=value.get("value"),
                source=value.get("source"),
                url=value.get("url"),
                observed_at=_parse_time(value.get("observed_at")),
            )
        return {k: to_raw_metric(v) for k, v in value.items()}
    return RawMetric(value=value)


def score_inputs(
    module: str,
    inputs: Mapping[str, Any],
    symbol: str | None = None,
    as_of: datetime | None = None,
) -> AnalysisResult:
    """
    Run a module over supplied inputs.

    For timing, ``inputs`` may hold ``bars`` (full analysis) or precomputed
    indicator values keyed by component name.

    Raises:
        ConfigurationError: If the module is unknown or a timestamp is malformed
        InsufficientDataError: If nothing usable was supplied
    """
    try:
        module = validate_module(module)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
    settings = get_settings()

    if module == "timing" and "bars" in inputs:
        return TimingEngine(settings.timing_config()).analyze(
            symbol or "UNKNOWN", inputs["bars"], as_of=as_of
        )

    raw = {name: to_raw_metric(value) for name, value in inputs.items()}
    if module == "timing":
        engine: CompositeEngine = CompositeEngine(timing_module_config(settings.timing_config()))
    elif module == "fundamentals":
        engine = FundamentalsEngine()
    elif module == "sentiment":
        engine = SentimentEngine()
    else:
        engine = RegimeEngine()
        symbol = MARKET_SYMBOL
    return engine.analyze(symbol or "UNKNOWN", raw, as_of=as_of)


async def score_components(
    module: str,
    inputs: dict[str, Any],
    symbol: str | None = None,
) -> dict[str, Any]:
    """
    Score raw values supplied by the caller.

    Args:
        module: timing, fundamentals, sentiment or regime
        inputs: Component (or category) name -> value or {value, source, url, observed_at}
        symbol: Optional label for the result

    Returns:
        Dict with composite, signal, confidence, components and flags
    """
    start_time = perf_counter()
    try:
        result = score_inputs(module, inputs, symbol=symbol)
    except Exception as e:
        return error_response(e, symbol)

    logger.info(f"score_components({result.module}, {result.symbol}): {result.signal.value}")
    duration_ms = (perf_counter() - start_time) * 1000
    return {
        "meta": build_meta("score_components", duration_ms),
        "data_provenance": build_provenance("caller", as_of=result.timestamp),
        **result.to_dict(),
    }
