"""Data layer: market data fetching, input adapters and result storage."""

from signal_mcp.data.market_data import (
    DataFetchRetryError,
    RetryResult,
    ServerShuttingDownError,
    fetch_eps_trend,
    fetch_financials,
    fetch_history,
    fetch_info,
    fetch_put_call_ratio,
    fetch_rating_changes,
    get_market_state,
    shutdown_executor,
)
from signal_mcp.data.store import ResultStore

__all__ = [
    "DataFetchRetryError",
    "RetryResult",
    "ServerShuttingDownError",
    "fetch_eps_trend",
    "fetch_financials",
    "fetch_history",
    "fetch_info",
    "fetch_put_call_ratio",
    "fetch_rating_changes",
    "get_market_state",
    "shutdown_executor",
    "ResultStore",
]
