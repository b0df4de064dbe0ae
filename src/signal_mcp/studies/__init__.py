"""Study modules built on the generic composite engine."""

from signal_mcp.studies.fundamentals import FUNDAMENTALS_CONFIG, FundamentalsEngine
from signal_mcp.studies.regime import MARKET_SYMBOL, REGIME_CONFIG, MarketRegime, RegimeEngine
from signal_mcp.studies.sentiment import (
    SENTIMENT_CONFIG,
    SentimentEngine,
    analyst_consensus,
    earnings_revision,
    relative_strength,
)

__all__ = [
    "FUNDAMENTALS_CONFIG",
    "FundamentalsEngine",
    "MARKET_SYMBOL",
    "REGIME_CONFIG",
    "MarketRegime",
    "RegimeEngine",
    "SENTIMENT_CONFIG",
    "SentimentEngine",
    "analyst_consensus",
    "earnings_revision",
    "relative_strength",
]
