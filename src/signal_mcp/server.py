"""Composite Signal Scoring MCP Server using FastMCP."""

import json
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP

from signal_mcp import SCHEMA_VERSION, SERVER_VERSION
from signal_mcp.data.market_data import shutdown_executor
from signal_mcp.prompts.templates import get_prompt
from signal_mcp.tools import (
    analyze_fundamentals as fundamentals_analysis,
    analyze_regime as regime_analysis,
    analyze_sentiment as sentiment_analysis,
    analyze_timing as timing_analysis,
    batch_analysis,
    get_stored_result as stored_result,
    market_status,
    score_components as component_scoring,
)
from signal_mcp.tools.common import get_store

# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=getattr(logging, log_level, logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Stop the fetch pool and close the result store when the server exits."""
    try:
        yield
    finally:
        await shutdown_executor()
        get_store().close()
        logger.info("Signal Engine MCP Server stopped")


# Create FastMCP server instance
mcp = FastMCP(
    name="signal-engine",
    lifespan=lifespan,
)


# ============================================================================
# TOOLS
# ============================================================================


@mcp.tool
async def analyze_timing(symbol: str, period: str = "1y") -> str:
    """
    Score entry/exit timing from daily price bars.

    Combines RSI, MACD, Bollinger position, stochastic, Williams %R,
    moving averages, ATR and volume with multi-horizon trend analysis.
    Also reports support/resistance, volume and risk sections.

    Args:
        symbol: Stock ticker symbol (e.g., AAPL, MSFT)
        period: History period - 1mo, 3mo, 6mo, 1y, 2y, 5y, 10y, ytd, max

    Returns:
        JSON with composite_score, signal, confidence, position_size,
        components, flags and timing sections
    """
    result = await timing_analysis(symbol=symbol, period=period)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def analyze_fundamentals(symbol: str) -> str:
    """
    Score business quality from profitability, growth, valuation,
    financial strength and efficiency metrics.

    Args:
        symbol: Stock ticker symbol

    Returns:
        JSON with composite_score, signal, confidence, per-category
        components and data-quality flags
    """
    result = await fundamentals_analysis(symbol=symbol)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def analyze_sentiment(symbol: str) -> str:
    """
    Score market sentiment from estimate revisions, short interest,
    options positioning, relative strength and analyst ratings.

    Args:
        symbol: Stock ticker symbol

    Returns:
        JSON with composite_score, signal, confidence, components,
        flags and relative performance
    """
    result = await sentiment_analysis(symbol=symbol)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def analyze_regime(breadth: float | None = None, fear_greed: float | None = None) -> str:
    """
    Classify the market regime from benchmark trend, VIX, breadth,
    options positioning and fear/greed.

    Args:
        breadth: Advancing/declining issues ratio (optional)
        fear_greed: Fear & greed index reading 0-100 (optional)

    Returns:
        JSON with composite_score, signal, confidence, components and
        the regime section (regime, risk level, stock multiplier)
    """
    result = await regime_analysis(breadth=breadth, fear_greed=fear_greed)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def score_components(module: str, inputs: dict[str, Any], symbol: str | None = None) -> str:
    """
    Score caller-supplied raw values without fetching any data.

    Args:
        module: timing, fundamentals, sentiment or regime
        inputs: Component name -> number, or {value, source, url, observed_at}.
                Fundamentals also accepts category -> {metric: value}.
                Timing also accepts {"bars": [{date, open, high, low, close, volume}, ...]}.
                Example: {"earnings_revisions": 0.05, "short_interest": 0.032}
        symbol: Optional label for the result

    Returns:
        JSON with composite_score, signal, confidence, components and flags
    """
    result = await component_scoring(module=module, inputs=inputs, symbol=symbol)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def run_batch(symbols: list[str], module: str = "timing") -> str:
    """
    Run one module over several symbols sequentially.

    Symbols that fail are reported under failures; the rest still run.

    Args:
        symbols: List of stock ticker symbols
        module: timing, fundamentals or sentiment

    Returns:
        JSON with processed/errors counts, per-symbol summaries and failures
    """
    result = await batch_analysis(symbols=symbols, module=module)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def get_stored_result(
    record_id: str | None = None,
    module: str | None = None,
    symbol: str | None = None,
) -> str:
    """
    Fetch a stored analysis record by id, or the latest for module + symbol.

    Args:
        record_id: Id returned by an analysis tool
        module: Module name (with symbol, for the latest record)
        symbol: Stock ticker symbol (with module, for the latest record)

    Returns:
        JSON with the flat storage record
    """
    result = await stored_result(record_id=record_id, module=module, symbol=symbol)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def get_market_status() -> str:
    """
    Get the current US market session (pre_market, regular, after_hours, closed).

    Returns:
        JSON with state, method and checked_at timestamp
    """
    result = await market_status()
    return json.dumps(result, indent=2, default=str)


# ============================================================================
# RESOURCES
# ============================================================================


@mcp.resource("result://{record_id}")
def get_result_record(record_id: str) -> str:
    """
    Get a stored analysis record as JSON.

    Args:
        record_id: Id returned by an analysis tool

    Returns:
        JSON storage record
    """
    record = get_store().get(record_id)
    if record is None:
        return f"Result not found: {record_id}. Run an analysis tool first."
    return json.dumps(record, indent=2, default=str)


# ============================================================================
# PROMPTS
# ============================================================================


@mcp.prompt
def explain_signal(symbol: str, module: str, record_id: str | None = None) -> str:
    """Explain a composite signal component by component."""
    arguments = {"symbol": symbol, "module": module}
    if record_id:
        arguments["record_id"] = record_id
    result = get_prompt("explain_signal", arguments)
    if result:
        return result["messages"][0]["content"]
    return f"Explain the {module} signal for {symbol}."


@mcp.prompt
def compare_signals(symbols: str, module: str) -> str:
    """Compare one module's signals across comma-separated symbols."""
    result = get_prompt("compare_signals", {"symbols": symbols, "module": module})
    if result:
        return result["messages"][0]["content"]
    return f"Compare {module} signals for {symbols} using run_batch."


@mcp.prompt
def market_briefing() -> str:
    """Short market briefing built on the regime module."""
    result = get_prompt("market_briefing", {})
    if result:
        return result["messages"][0]["content"]
    return "Summarize the market regime using analyze_regime."


# ============================================================================
# ENTRY POINT
# ============================================================================


def main() -> None:
    """Run the MCP server."""
    logger.info(f"Starting Signal Engine MCP Server v{SERVER_VERSION} (schema v{SCHEMA_VERSION})")
    mcp.run()


if __name__ == "__main__":
    main()
