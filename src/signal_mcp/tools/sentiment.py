"""Sentiment analysis tool."""

import asyncio
import logging
from datetime import datetime, timezone
from time import perf_counter
from typing import Any

from signal_mcp.data.adapters import sector_etf, sentiment_inputs_from_market_data
from signal_mcp.data.market_data import (
    fetch_eps_trend,
    fetch_history,
    fetch_info,
    fetch_put_call_ratio,
    fetch_rating_changes,
)
from signal_mcp.data.store import ResultStore
from signal_mcp.studies.sentiment import SentimentEngine, analyst_consensus
from signal_mcp.tools.common import (
    error_response,
    get_settings,
    history_provenance,
    optional_fetch,
    success_response,
)
from signal_mcp.utils.validators import FetchParams

logger = logging.getLogger(__name__)

MARKET_BENCHMARK = "SPY"


def _payload(fetched: Any, fetches: list[dict[str, Any]]) -> Any:
    """Unpack a (payload, provenance) pair from an optional fetch."""
    if fetched is None:
        return None
    payload, prov = fetched
    fetches.append(prov)
    return payload


async def analyze_sentiment(symbol: str, store: ResultStore | None = None) -> dict[str, Any]:
    """
    Score market sentiment towards a stock.

    The stock's own price history is required; estimates, short interest,
    options and benchmark data are optional and only remove their
    component when unavailable.

    Args:
        symbol: Stock ticker symbol
        store: Result store override

    Returns:
        Dict with composite, signal, confidence, components, flags and
        relative performance
    """
    start_time = perf_counter()
    settings = get_settings()
    failures: list[dict[str, Any]] = []
    fetches: list[dict[str, Any]] = []

    try:
        params = FetchParams(symbol=symbol, period=settings.history_period)
        history, history_prov = await fetch_history(params)
        fetches.append(history_prov)

        info_f, eps_f, pc_f, ratings_f, market_f = await asyncio.gather(
            optional_fetch("info", fetch_info(params.symbol), failures),
            optional_fetch("eps_trend", fetch_eps_trend(params.symbol), failures),
            optional_fetch("put_call_ratio", fetch_put_call_ratio(params.symbol), failures),
            optional_fetch("rating_changes", fetch_rating_changes(params.symbol), failures),
            optional_fetch(
                "market_history",
                fetch_history(FetchParams(symbol=MARKET_BENCHMARK, period="3mo")),
                failures,
            ),
        )
        info = _payload(info_f, fetches)
        eps_trend = _payload(eps_f, fetches)
        put_call = _payload(pc_f, fetches)
        ratings = _payload(ratings_f, fetches) or []
        market_history = _payload(market_f, fetches)

        sector_history = None
        etf = sector_etf(info)
        if etf is not None:
            sector_history = _payload(
                await optional_fetch(
                    "sector_history",
                    fetch_history(FetchParams(symbol=etf, period="3mo")),
                    failures,
                ),
                fetches,
            )

        fetched_at = datetime.now(timezone.utc)
        inputs = sentiment_inputs_from_market_data(
            params.symbol,
            history,
            info=info,
            eps_trend=eps_trend,
            put_call_ratio=put_call,
            market_history=market_history,
            sector_history=sector_history,
            fetched_at=fetched_at,
        )
        consensus = analyst_consensus(ratings)
        result = SentimentEngine().analyze(
            params.symbol,
            inputs,
            as_of=fetched_at,
            extensions={
                "analyst": {
                    "consensus": consensus,
                    "ratings_considered": min(len(ratings), 5),
                    "sector_etf": etf,
                }
            },
        )
    except Exception as e:
        return error_response(e, symbol)

    provenance = history_provenance(history, fetches, failures)
    logger.info(f"analyze_sentiment({params.symbol}): {result.signal.value}")
    return success_response("analyze_sentiment", result, provenance, start_time, store)
