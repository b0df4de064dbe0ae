"""Fundamentals analysis tool."""

import asyncio
import logging
from datetime import datetime, timezone
from time import perf_counter
from typing import Any

from signal_mcp.data.adapters import fundamentals_inputs_from_info
from signal_mcp.data.market_data import SOURCE, fetch_financials, fetch_info
from signal_mcp.data.store import ResultStore
from signal_mcp.studies.fundamentals import FundamentalsEngine
from signal_mcp.tools.common import error_response, optional_fetch, success_response
from signal_mcp.utils.provenance import build_provenance
from signal_mcp.utils.validators import normalize_symbol

logger = logging.getLogger(__name__)


async def analyze_fundamentals(symbol: str, store: ResultStore | None = None) -> dict[str, Any]:
    """
    Score a company's financial quality.

    The info payload is required; the annual statements only fill in the
    efficiency and coverage ratios and are skipped when unavailable.

    Args:
        symbol: Stock ticker symbol
        store: Result store override

    Returns:
        Dict with composite, signal, confidence, category components,
        per-metric detail and flags
    """
    start_time = perf_counter()
    failures: list[dict[str, Any]] = []

    try:
        normalized_symbol = normalize_symbol(symbol)
        (info, info_prov), financials = await asyncio.gather(
            fetch_info(normalized_symbol),
            optional_fetch("financials", fetch_financials(normalized_symbol), failures),
        )
        fetches = [info_prov]
        statements = None
        if financials is not None:
            statements, statements_prov = financials
            fetches.append(statements_prov)

        fetched_at = datetime.now(timezone.utc)
        inputs = fundamentals_inputs_from_info(info, observed_at=fetched_at, statements=statements)
        result = FundamentalsEngine().analyze(normalized_symbol, inputs, as_of=fetched_at)
    except Exception as e:
        return error_response(e, symbol)

    price = info.get("currentPrice") or info.get("regularMarketPrice")
    provenance = build_provenance(
        SOURCE,
        as_of=fetched_at,
        endpoints=[f["endpoint"] for f in fetches],
        price_data_points=0,
        analysis_period_days=None,
        current_price=float(price) if isinstance(price, (int, float)) else None,
        fetches=fetches,
        warnings=[f"{f['fetch']} unavailable" for f in failures],
    )
    logger.info(f"analyze_fundamentals({normalized_symbol}): {result.signal.value}")
    return success_response("analyze_fundamentals", result, provenance, start_time, store)
