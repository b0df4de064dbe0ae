"""Utility modules."""

from signal_mcp.utils.indicators import (
    calculate_atr,
    calculate_bollinger_bands,
    calculate_ema,
    calculate_macd,
    calculate_returns,
    calculate_rsi,
    calculate_sma,
    calculate_stochastic,
    calculate_williams_r,
)
from signal_mcp.utils.ohlcv import bars_to_frame, standardize_ohlcv
from signal_mcp.utils.provenance import (
    append_provenance,
    build_error_response,
    build_meta,
    build_provenance,
)
from signal_mcp.utils.validators import FetchParams, check_rule

__all__ = [
    "calculate_atr",
    "calculate_bollinger_bands",
    "calculate_ema",
    "calculate_macd",
    "calculate_returns",
    "calculate_rsi",
    "calculate_sma",
    "calculate_stochastic",
    "calculate_williams_r",
    "bars_to_frame",
    "standardize_ohlcv",
    "append_provenance",
    "build_error_response",
    "build_meta",
    "build_provenance",
    "FetchParams",
    "check_rule",
]
