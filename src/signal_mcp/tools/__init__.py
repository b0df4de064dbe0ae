"""Signal analysis tools."""

from signal_mcp.tools.batch import batch_analysis
from signal_mcp.tools.fundamentals import analyze_fundamentals
from signal_mcp.tools.regime import analyze_regime
from signal_mcp.tools.results import get_stored_result, market_status
from signal_mcp.tools.score_components import score_components
from signal_mcp.tools.sentiment import analyze_sentiment
from signal_mcp.tools.timing import analyze_timing

__all__ = [
    "analyze_fundamentals",
    "analyze_regime",
    "analyze_sentiment",
    "analyze_timing",
    "batch_analysis",
    "get_stored_result",
    "market_status",
    "score_components",
]
