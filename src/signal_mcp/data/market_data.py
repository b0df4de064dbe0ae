"""Async yfinance client with bounded concurrency and retry logic."""

import asyncio
import logging
import os
import random
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar

import pandas as pd
import pytz
import yfinance as yf
from requests.exceptions import HTTPError

from signal_mcp.utils.ohlcv import standardize_ohlcv
from signal_mcp.utils.validators import FetchParams, normalize_symbol

logger = logging.getLogger(__name__)

SOURCE = "yfinance"

# Bounded concurrency for yfinance calls
_max_workers = int(os.environ.get("DATA_MAX_WORKERS", "4"))
_executor = ThreadPoolExecutor(max_workers=_max_workers)
_fetch_semaphore = asyncio.Semaphore(_max_workers)

# Retry configuration
_max_retries = int(os.environ.get("DATA_MAX_RETRIES", "3"))
_base_delay = float(os.environ.get("DATA_BASE_DELAY", "1.0"))  # seconds
_max_delay = float(os.environ.get("DATA_MAX_DELAY", "30.0"))  # seconds

# Shutdown coordination
shutdown_event = asyncio.Event()

T = TypeVar("T")

_RETRYABLE_PATTERNS = (
    "rate limit",
    "too many requests",
    "connection",
    "timeout",
    "timed out",
    "temporary",
)


class ServerShuttingDownError(Exception):
    """Raised when server is shutting down."""

    pass


class DataFetchRetryError(Exception):
    """Raised when a fetch fails after all retries."""

    def __init__(self, message: str, last_error: Exception | None = None):
        super().__init__(message)
        self.last_error = last_error


def _is_retryable_error(error: Exception) -> bool:
    """Transient errors: rate limits, timeouts, connection drops and 5xx."""
    if isinstance(error, HTTPError) and error.response is not None:
        status_code = error.response.status_code
        if status_code == 429 or 500 <= status_code < 600:
            return True

    if isinstance(error, (TimeoutError, ConnectionError)):
        return True

    error_str = str(error).lower()
    return any(pattern in error_str for pattern in _RETRYABLE_PATTERNS)


def _calculate_backoff(attempt: int) -> float:
    """Exponential backoff with +/-25% jitter, capped at the max delay."""
    delay = _base_delay * (2**attempt)
    jitter = delay * 0.25 * (2 * random.random() - 1)
    return min(delay + jitter, _max_delay)


@dataclass
class RetryResult:
    """Result of a retried call plus what it took to get it."""

    result: Any
    attempts: int
    total_backoff_seconds: float
    endpoint: str
    source: str = SOURCE

    def to_provenance(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "endpoint": self.endpoint,
            "attempts": self.attempts,
            "total_backoff_seconds": self.total_backoff_seconds,
        }


async def _retry_with_backoff(
    operation_name: str,
    sync_func: Callable[[], T],
    max_retries: int = _max_retries,
) -> RetryResult:
    """
    Execute a synchronous function in the executor with retry logic.

    Args:
        operation_name: Name for logging and provenance (e.g. "history(AAPL)")
        sync_func: Synchronous function to execute
        max_retries: Maximum number of retry attempts

    Returns:
        RetryResult

    Raises:
        DataFetchRetryError: If all retries exhausted
        ServerShuttingDownError: If server is shutting down
    """
    total_backoff = 0.0

    for attempt in range(max_retries + 1):
        if shutdown_event.is_set():
            raise ServerShuttingDownError("Server is shutting down")

        try:
            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(_executor, sync_func)
            return RetryResult(
                result=result,
                attempts=attempt + 1,
                total_backoff_seconds=round(total_backoff, 2),
                endpoint=operation_name,
            )
        except Exception as e:
            if not _is_retryable_error(e):
                raise

            if attempt >= max_retries:
                logger.warning(
                    f"{operation_name}: Failed after {attempt + 1} attempts. Last error: {e}"
                )
                raise DataFetchRetryError(
                    f"Failed after {attempt + 1} attempts: {e}",
                    last_error=e,
                ) from e

            delay = _calculate_backoff(attempt)
            total_backoff += delay
            logger.info(
                f"{operation_name}: Attempt {attempt + 1} failed ({e}). "
                f"Retrying in {delay:.1f}s..."
            )
            await asyncio.sleep(delay)

    raise DataFetchRetryError(f"Failed after {max_retries + 1} attempts")


async def _fetch(operation_name: str, sync_func: Callable[[], T]) -> RetryResult:
    if shutdown_event.is_set():
        raise ServerShuttingDownError("Server is shutting down")
    async with _fetch_semaphore:
        return await _retry_with_backoff(operation_name, sync_func)


async def fetch_history(params: FetchParams) -> tuple[pd.DataFrame, dict[str, Any]]:
    """
    Fetch daily bars.

    Args:
        params: Fetch parameters

    Returns:
        Tuple of (standardized OHLCV DataFrame, provenance dict)

    Raises:
        ServerShuttingDownError: If server is shutting down
        DataFetchRetryError: If all retries exhausted for retryable errors
        ValueError: If no data is returned
    """

    def _history() -> pd.DataFrame:
        df = yf.Ticker(params.symbol).history(**params.to_yf_kwargs())
        if df is None or df.empty:
            raise ValueError(f"No data returned for {params.symbol}")
        return standardize_ohlcv(df)

    retry_result = await _fetch(f"history({params.symbol},{params.period})", _history)
    return retry_result.result, retry_result.to_provenance()


async def fetch_info(symbol: str) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Fetch the quote/fundamentals info dict.

    Returns:
        Tuple of (info dict, provenance dict)

    Raises:
        ValueError: If the symbol returns no info
    """
    symbol = normalize_symbol(symbol)

    def _info() -> dict[str, Any]:
        info = yf.Ticker(symbol).info
        if not info:
            raise ValueError(f"Invalid symbol: {symbol}")
        return dict(info)

    retry_result = await _fetch(f"info({symbol})", _info)
    return retry_result.result, retry_result.to_provenance()


async def fetch_financials(symbol: str) -> tuple[dict[str, pd.DataFrame | None], dict[str, Any]]:
    """
    Fetch the annual income statement and balance sheet.

    Returns:
        Tuple of ({"income_stmt": ..., "balance_sheet": ...}, provenance dict);
        a statement yfinance does not cover is None
    """
    symbol = normalize_symbol(symbol)

    def _financials() -> dict[str, pd.DataFrame | None]:
        ticker = yf.Ticker(symbol)
        income_stmt = ticker.income_stmt
        balance_sheet = ticker.balance_sheet
        return {
            "income_stmt": income_stmt if income_stmt is not None and len(income_stmt) else None,
            "balance_sheet": balance_sheet if balance_sheet is not None and len(balance_sheet) else None,
        }

    retry_result = await _fetch(f"financials({symbol})", _financials)
    return retry_result.result, retry_result.to_provenance()


async def fetch_eps_trend(symbol: str) -> tuple[pd.DataFrame | None, dict[str, Any]]:
    """
    Fetch consensus EPS estimates and how they moved.

    Returns:
        Tuple of (eps_trend DataFrame or None when not covered, provenance dict)
    """
    symbol = normalize_symbol(symbol)

    def _eps_trend() -> pd.DataFrame | None:
        trend = yf.Ticker(symbol).eps_trend
        if trend is None or len(trend) == 0:
            return None
        return trend

    retry_result = await _fetch(f"eps_trend({symbol})", _eps_trend)
    return retry_result.result, retry_result.to_provenance()


async def fetch_rating_changes(symbol: str) -> tuple[list[str], dict[str, Any]]:
    """
    Fetch analyst rating grades, most recent first.

    Returns:
        Tuple of (list of grade labels, provenance dict)
    """
    symbol = normalize_symbol(symbol)

    def _ratings() -> list[str]:
        changes = yf.Ticker(symbol).upgrades_downgrades
        if changes is None or len(changes) == 0 or "ToGrade" not in changes.columns:
            return []
        changes = changes.sort_index(ascending=False)
        return [str(g) for g in changes["ToGrade"].dropna().tolist()]

    retry_result = await _fetch(f"upgrades_downgrades({symbol})", _ratings)
    return retry_result.result, retry_result.to_provenance()


async def fetch_put_call_ratio(symbol: str) -> tuple[float | None, dict[str, Any]]:
    """
    Put/call volume ratio for the nearest option expiry.

    Returns:
        Tuple of (ratio or None when there is no listed option volume, provenance dict)
    """
    symbol = normalize_symbol(symbol)

    def _ratio() -> float | None:
        ticker = yf.Ticker(symbol)
        expiries = ticker.options
        if not expiries:
            return None
        chain = ticker.option_chain(expiries[0])
        call_volume = float(chain.calls["volume"].fillna(0).sum())
        put_volume = float(chain.puts["volume"].fillna(0).sum())
        if call_volume <= 0:
            return None
        return put_volume / call_volume

    retry_result = await _fetch(f"option_chain({symbol})", _ratio)
    return retry_result.result, retry_result.to_provenance()


def get_market_state(tz: str = "America/New_York") -> dict[str, str]:
    """
    Determine market state. Clock-based only (no holiday calendar).

    Args:
        tz: Timezone (default: America/New_York)

    Returns:
        Dict with state, method, and checked_at timestamp
    """
    eastern = pytz.timezone(tz)
    now = datetime.now(eastern)

    if now.weekday() >= 5:
        state = "closed"
    else:
        minutes = now.hour * 60 + now.minute
        if minutes < 4 * 60:
            state = "closed"
        elif minutes < 9 * 60 + 30:
            state = "pre_market"
        elif minutes < 16 * 60:
            state = "regular"
        elif minutes < 20 * 60:
            state = "after_hours"
        else:
            state = "closed"

    return {
        "state": state,
        "method": "clock_only_no_holidays",
        "checked_at": now.isoformat(),
    }


async def shutdown_executor() -> None:
    """Cleanup on server shutdown."""
    shutdown_event.set()
    _executor.shutdown(wait=False, cancel_futures=True)
