"""Sequential batch analysis across many symbols."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from time import perf_counter
from typing import Any

from signal_mcp.tools.common import get_settings
from signal_mcp.tools.fundamentals import analyze_fundamentals
from signal_mcp.tools.sentiment import analyze_sentiment
from signal_mcp.tools.timing import analyze_timing
from signal_mcp.utils.provenance import build_error_response, build_meta
from signal_mcp.utils.validators import normalize_symbol

logger = logging.getLogger(__name__)

AnalyzeFn = Callable[[str], Awaitable[dict[str, Any]]]

BATCH_TOOLS: dict[str, AnalyzeFn] = {
    "timing": analyze_timing,
    "fundamentals": analyze_fundamentals,
    "sentiment": analyze_sentiment,
}


def _summary(symbol: str, response: dict[str, Any]) -> dict[str, Any]:
    return {
        "symbol": symbol,
        "signal": response.get("signal"),
        "composite_score": response.get("composite_score"),
        "confidence": response.get("confidence"),
        "record_id": response.get("record_id"),
        "flags": len(response.get("flags") or []),
    }


async def batch_analysis(
    symbols: list[str],
    module: str,
    analyze_fn: AnalyzeFn | None = None,
    delay_seconds: float | None = None,
) -> dict[str, Any]:
    """
    Analyze symbols one after another.

    A failure for one symbol (raised or returned as an error response) is
    logged and recorded, and the batch moves on.

    Args:
        symbols: Tickers to analyze (duplicates are skipped)
        module: timing, fundamentals or sentiment
        analyze_fn: Per-symbol analysis coroutine; the module's tool when None
        delay_seconds: Pause between symbols (default from BATCH_DELAY_SECONDS)

    Returns:
        Dict with processed/errors counts, per-symbol results and failures
    """
    start_time = perf_counter()
    module = (module or "").lower().strip()
    if analyze_fn is None:
        if module not in BATCH_TOOLS:
            return build_error_response(
                "configuration_error",
                f"Batch analysis supports {sorted(BATCH_TOOLS)}, got '{module}'",
            )
        analyze_fn = BATCH_TOOLS[module]
    if delay_seconds is None:
        delay_seconds = get_settings().batch_delay_seconds

    results: list[dict[str, Any]] = []
    failures: list[dict[str, Any]] = []

    seen: set[str] = set()
    ordered: list[str] = []
    for raw in symbols:
        try:
            symbol = normalize_symbol(raw)
        except ValueError as e:
            logger.warning(f"Batch {module}: skipping invalid symbol {raw!r}: {e}")
            failures.append({"symbol": raw, "error_type": type(e).__name__, "message": str(e)})
            continue
        if symbol not in seen:
            seen.add(symbol)
            ordered.append(symbol)

    for index, symbol in enumerate(ordered):
        if index > 0 and delay_seconds > 0:
            await asyncio.sleep(delay_seconds)

        try:
            response = await analyze_fn(symbol)
        except Exception as e:
            logger.warning(f"Batch {module}: {symbol} failed: {type(e).__name__}: {e}")
            failures.append({"symbol": symbol, "error_type": type(e).__name__, "message": str(e)})
            continue

        if isinstance(response, dict) and response.get("error"):
            logger.warning(f"Batch {module}: {symbol} failed: {response.get('message')}")
            failures.append(
                {
                    "symbol": symbol,
                    "error_type": response.get("error_type"),
                    "message": response.get("message"),
                }
            )
            continue

        results.append(_summary(symbol, response))

    logger.info(f"Batch {module}: {len(results)} processed, {len(failures)} errors")
    duration_ms = (perf_counter() - start_time) * 1000
    return {
        "meta": build_meta("run_batch", duration_ms),
        "module": module,
        "processed": len(results),
        "errors": len(failures),
        "results": results,
        "failures": failures,
    }
