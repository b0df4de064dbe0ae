"""Timing analysis tool."""

import logging
from time import perf_counter
from typing import Any

from signal_mcp.data.market_data import SOURCE, fetch_history
from signal_mcp.data.store import ResultStore
from signal_mcp.timing.engine import TimingEngine
from signal_mcp.tools.common import error_response, get_settings, history_provenance, success_response
from signal_mcp.utils.validators import FetchParams

logger = logging.getLogger(__name__)


async def analyze_timing(
    symbol: str,
    period: str | None = None,
    store: ResultStore | None = None,
) -> dict[str, Any]:
    """
    Score entry/exit timing for a symbol from its daily bars.

    Args:
        symbol: Stock ticker symbol
        period: History period (default from SIGNAL_HISTORY_PERIOD)
        store: Result store override

    Returns:
        Dict with composite, signal, confidence, components, flags, trend,
        support/resistance, volume and risk sections
    """
    start_time = perf_counter()
    settings = get_settings()

    try:
        params = FetchParams(symbol=symbol, period=period or settings.history_period)
        history, fetch_prov = await fetch_history(params)
        result = TimingEngine(settings.timing_config()).analyze(params.symbol, history, source=SOURCE)
    except Exception as e:
        return error_response(e, symbol)

    provenance = history_provenance(history, [fetch_prov])
    logger.info(f"analyze_timing({params.symbol}): {result.signal.value}")
    return success_response("analyze_timing", result, provenance, start_time, store)
