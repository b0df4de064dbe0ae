"""Market regime analysis tool."""

import asyncio
import logging
from datetime import datetime, timezone
from time import perf_counter
from typing import Any

from signal_mcp.data.adapters import regime_inputs_from_history
from signal_mcp.data.market_data import fetch_history, fetch_put_call_ratio
from signal_mcp.data.store import ResultStore
from signal_mcp.studies.regime import MARKET_SYMBOL, RegimeEngine
from signal_mcp.tools.common import error_response, history_provenance, optional_fetch, success_response
from signal_mcp.utils.validators import FetchParams

logger = logging.getLogger(__name__)

BENCHMARK = "SPY"
VOLATILITY_INDEX = "^VIX"


async def analyze_regime(
    breadth: float | None = None,
    fear_greed: float | None = None,
    store: ResultStore | None = None,
) -> dict[str, Any]:
    """
    Score the market backdrop and classify its regime.

    Benchmark history is required. VIX and index options are optional;
    breadth and fear/greed have no free feed and may be supplied.

    Args:
        breadth: Advancing/declining issues ratio
        fear_greed: Fear & greed index reading (0-100)
        store: Result store override

    Returns:
        Dict with composite, signal, confidence, components, flags and the
        regime section
    """
    start_time = perf_counter()
    failures: list[dict[str, Any]] = []
    fetches: list[dict[str, Any]] = []

    try:
        spy_history, spy_prov = await fetch_history(FetchParams(symbol=BENCHMARK, period="6mo"))
        fetches.append(spy_prov)

        vix_f, pc_f = await asyncio.gather(
            optional_fetch(
                "vix_history",
                fetch_history(FetchParams(symbol=VOLATILITY_INDEX, period="1mo")),
                failures,
            ),
            optional_fetch("put_call_ratio", fetch_put_call_ratio(BENCHMARK), failures),
        )
        vix_history = None
        if vix_f is not None:
            vix_history, vix_prov = vix_f
            fetches.append(vix_prov)
        put_call = None
        if pc_f is not None:
            put_call, pc_prov = pc_f
            fetches.append(pc_prov)

        inputs = regime_inputs_from_history(
            spy_history,
            vix_history,
            put_call_ratio=put_call,
            breadth=breadth,
            fear_greed=fear_greed,
        )
        result = RegimeEngine().analyze(MARKET_SYMBOL, inputs, as_of=datetime.now(timezone.utc))
    except Exception as e:
        return error_response(e, MARKET_SYMBOL)

    provenance = history_provenance(spy_history, fetches, failures)
    logger.info(f"analyze_regime: {result.extensions['regime']['market_regime']}")
    return success_response("analyze_regime", result, provenance, start_time, store)
