"""Shared plumbing for the analysis tools."""

import asyncio
import logging
from collections.abc import Awaitable
from datetime import datetime
from functools import lru_cache
from time import perf_counter
from typing import Any

import pandas as pd

from signal_mcp.config import EngineSettings
from signal_mcp.data.market_data import (
    SOURCE,
    DataFetchRetryError,
    ServerShuttingDownError,
)
from signal_mcp.data.store import ResultStore
from signal_mcp.engine.result import AnalysisResult
from signal_mcp.errors import ConfigurationError, InsufficientDataError
from signal_mcp.utils.provenance import build_error_response, build_meta, build_provenance

logger = logging.getLogger(__name__)

OPTIONAL_FETCH_TIMEOUT_SECONDS = 30


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    """Settings read once from the environment."""
    return EngineSettings.from_env()


@lru_cache(maxsize=1)
def get_store() -> ResultStore:
    """Process-wide result store."""
    return ResultStore(get_settings().result_store_dir)


def error_response(error: Exception, symbol: str | None = None) -> dict[str, Any]:
    """
    Map an exception onto a structured error response.

    Args:
        error: Exception raised while analyzing
        symbol: Symbol being analyzed

    Returns:
        Error response dict
    """
    if isinstance(error, InsufficientDataError):
        response = build_error_response("insufficient_data", str(error), symbol)
        if error.required is not None:
            response["required"] = error.required
            response["available"] = error.available
        return response
    if isinstance(error, ConfigurationError):
        return build_error_response("configuration_error", str(error), symbol)
    if isinstance(error, (ValueError, KeyError, DataFetchRetryError, ServerShuttingDownError)):
        return build_error_response("data_unavailable", f"Failed to fetch data: {error}", symbol)

    logger.exception(f"Unexpected error while analyzing {symbol}")
    return build_error_response("internal_error", f"{type(error).__name__}: {error}", symbol)


async def optional_fetch(
    name: str,
    coro: Awaitable[Any],
    failures: list[dict[str, Any]],
) -> Any:
    """
    Await a fetch whose failure only removes an input.

    A failed or timed-out fetch is recorded in ``failures`` and yields None
    so the affected components are flagged missing by the engine.
    """
    start = perf_counter()
    try:
        return await asyncio.wait_for(coro, timeout=OPTIONAL_FETCH_TIMEOUT_SECONDS)
    except (TimeoutError, ValueError, KeyError, DataFetchRetryError) as e:
        logger.warning(f"Optional fetch {name} failed: {e}")
        failures.append(
            {
                "fetch": name,
                "error": type(e).__name__,
                "message": str(e),
                "duration_ms": round((perf_counter() - start) * 1000, 1),
            }
        )
        return None


def history_provenance(
    history: pd.DataFrame,
    fetches: list[dict[str, Any]],
    failures: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """
    Provenance block for an analysis built on daily bars.

    Args:
        history: Standardized bars of the analyzed symbol
        fetches: Provenance dicts of every successful fetch
        failures: Optional fetches that failed

    Returns:
        Provenance dict (see ``build_provenance``)
    """
    dates = pd.to_datetime(history["date"], errors="coerce", utc=True) if len(history) else None
    as_of: datetime | None = None
    period_days = None
    if dates is not None and dates.notna().any():
        as_of = dates.max().to_pydatetime()
        period_days = int((dates.max() - dates.min()).days)

    current_price = float(history["close"].iloc[-1]) if len(history) else None
    return build_provenance(
        SOURCE,
        as_of=as_of,
        endpoints=[f["endpoint"] for f in fetches if f],
        price_data_points=len(history),
        analysis_period_days=period_days,
        current_price=current_price,
        fetches=[f for f in fetches if f],
        warnings=[f"{f['fetch']} unavailable" for f in failures or []],
    )


def success_response(
    tool: str,
    result: AnalysisResult,
    provenance: dict[str, Any],
    start_time: float,
    store: ResultStore | None = None,
) -> dict[str, Any]:
    """
    Persist a result and wrap it for the tool response.

    Args:
        tool: Tool name for the meta block
        result: Analysis result
        provenance: Provenance block
        start_time: ``perf_counter()`` value at tool start
        store: Result store; the process-wide one when None

    Returns:
        Response dict with the result, record id, provenance and meta
    """
    store = store if store is not None else get_store()
    record_id = store.save(result, provenance)
    duration_ms = (perf_counter() - start_time) * 1000
    return {
        "meta": build_meta(tool, duration_ms),
        "data_provenance": provenance,
        "record_id": record_id,
        **result.to_dict(),
    }
