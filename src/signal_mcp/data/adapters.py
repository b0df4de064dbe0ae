"""Pure mappers from yfinance payloads onto engine inputs.

Nothing here performs I/O. Fields that are absent, non-numeric or
meaningless (e.g. a negative P/E) become unavailable RawMetrics so the
engine flags them instead of scoring garbage.
"""

import math
from datetime import datetime
from typing import Any

import pandas as pd

from signal_mcp.engine.components import RawMetric
from signal_mcp.studies.sentiment import earnings_revision, relative_strength
from signal_mcp.utils.indicators import calculate_returns, calculate_rsi

SOURCE = "yfinance"
QUOTE_URL = "https://finance.yahoo.com/quote/{symbol}"

# yfinance sector name -> SPDR sector ETF
SECTOR_ETFS = {
    "Technology": "XLK",
    "Financial Services": "XLF",
    "Healthcare": "XLV",
    "Consumer Cyclical": "XLY",
    "Consumer Defensive": "XLP",
    "Energy": "XLE",
    "Industrials": "XLI",
    "Basic Materials": "XLB",
    "Utilities": "XLU",
    "Real Estate": "XLRE",
    "Communication Services": "XLC",
}

# metric -> (info key, divisor, must be positive)
_INFO_FIELDS: dict[str, tuple[str, float, bool]] = {
    "roe": ("returnOnEquity", 1.0, False),
    "roa": ("returnOnAssets", 1.0, False),
    "net_margin": ("profitMargins", 1.0, False),
    "operating_margin": ("operatingMargins", 1.0, False),
    "revenue_growth": ("revenueGrowth", 1.0, False),
    "earnings_growth": ("earningsGrowth", 1.0, False),
    "pe_ratio": ("trailingPE", 1.0, True),
    "peg_ratio": ("trailingPegRatio", 1.0, True),
    "ps_ratio": ("priceToSalesTrailing12Months", 1.0, True),
    "pb_ratio": ("priceToBook", 1.0, True),
    "ev_ebitda": ("enterpriseToEbitda", 1.0, True),
    # yfinance reports debt/equity in percent
    "debt_to_equity": ("debtToEquity", 100.0, False),
    "current_ratio": ("currentRatio", 1.0, False),
    "quick_ratio": ("quickRatio", 1.0, False),
}

# Computed from info totals when present, else from the annual statements
_DERIVED_METRICS = (
    "interest_coverage",
    "asset_turnover",
    "inventory_turnover",
    "days_sales_outstanding",
)

# Statement row labels, first match wins
_REVENUE_ROWS = ("Total Revenue", "Operating Revenue")
_COST_ROWS = ("Cost Of Revenue", "Reconciled Cost Of Revenue")
_EBIT_ROWS = ("EBIT", "Operating Income")
_INTEREST_ROWS = ("Interest Expense", "Interest Expense Non Operating")
_ASSET_ROWS = ("Total Assets",)
_INVENTORY_ROWS = ("Inventory",)
_RECEIVABLE_ROWS = ("Accounts Receivable", "Receivables")


def _number(value: Any) -> float | None:
    """A finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        x = float(value)
    except (TypeError, ValueError):
        return None
    return x if math.isfinite(x) else None


def _last_bar_time(history: pd.DataFrame | None) -> datetime | None:
    if history is None or len(history) == 0 or "date" not in history.columns:
        return None
    last = pd.to_datetime(history["date"].iloc[-1], errors="coerce", utc=True)
    return None if pd.isna(last) else last.to_pydatetime()


def _statement_value(statement: pd.DataFrame | None, rows: tuple[str, ...]) -> float | None:
    """Most recent value of the first row label present in a yfinance statement."""
    if statement is None or len(statement) == 0:
        return None
    for row in rows:
        if row not in statement.index:
            continue
        values = statement.loc[row].dropna()
        if len(values) == 0:
            continue
        return _number(values.sort_index(ascending=False).iloc[0])
    return None


def _ratio(numerator: float | None, denominator: float | None) -> float | None:
    if numerator is None or denominator is None or denominator <= 0:
        return None
    return numerator / denominator


def statement_ratios(
    income_stmt: pd.DataFrame | None,
    balance_sheet: pd.DataFrame | None,
) -> dict[str, float | None]:
    """
    Efficiency and coverage ratios from the latest annual statements.

    Args:
        income_stmt: ``Ticker.income_stmt`` (rows are line items, columns periods)
        balance_sheet: ``Ticker.balance_sheet``

    Returns:
        interest_coverage, asset_turnover, inventory_turnover and
        days_sales_outstanding (None where a line item is missing)
    """
    revenue = _statement_value(income_stmt, _REVENUE_ROWS)
    cost = _statement_value(income_stmt, _COST_ROWS)
    ebit = _statement_value(income_stmt, _EBIT_ROWS)
    interest = _statement_value(income_stmt, _INTEREST_ROWS)
    assets = _statement_value(balance_sheet, _ASSET_ROWS)
    inventory = _statement_value(balance_sheet, _INVENTORY_ROWS)
    receivables = _statement_value(balance_sheet, _RECEIVABLE_ROWS)

    receivable_ratio = _ratio(receivables, revenue)
    return {
        "interest_coverage": _ratio(ebit, abs(interest) if interest is not None else None),
        "asset_turnover": _ratio(revenue, assets),
        "inventory_turnover": _ratio(cost, inventory),
        "days_sales_outstanding": receivable_ratio * 365 if receivable_ratio is not None else None,
    }


def _metric(
    value: float | None,
    symbol: str | None = None,
    observed_at: datetime | None = None,
) -> RawMetric:
    if value is None:
        return RawMetric(value=None)
    return RawMetric(
        value=value,
        source=SOURCE,
        url=QUOTE_URL.format(symbol=symbol) if symbol else None,
        observed_at=observed_at,
    )


def fundamentals_inputs_from_info(
    info: dict[str, Any],
    observed_at: datetime | None = None,
    statements: dict[str, pd.DataFrame | None] | None = None,
) -> dict[str, RawMetric]:
    """
    Map a yfinance info dict onto fundamentals metrics.

    Info rarely carries the totals behind the efficiency ratios, so those
    come from ``statements`` when it is given; without it the efficiency
    category is usually missing.

    Args:
        info: ``Ticker.info`` payload
        observed_at: When the payload was fetched
        statements: Optional ``income_stmt`` and ``balance_sheet`` frames

    Returns:
        Metric name -> RawMetric for every fundamentals metric
    """
    symbol = info.get("symbol")
    inputs: dict[str, RawMetric] = {}

    for metric, (key, divisor, positive_only) in _INFO_FIELDS.items():
        value = _number(info.get(key))
        if metric == "pe_ratio" and value is None:
            value = _number(info.get("forwardPE"))
        if metric == "peg_ratio" and value is None:
            value = _number(info.get("pegRatio"))
        if value is not None:
            value = value / divisor
            if positive_only and value <= 0:
                value = None
        inputs[metric] = _metric(value, symbol, observed_at)

    ebitda = _number(info.get("ebitda"))
    interest = _number(info.get("interestExpense"))
    revenue = _number(info.get("totalRevenue"))
    assets = _number(info.get("totalAssets"))
    from_info = {
        "interest_coverage": ebitda / abs(interest) if ebitda is not None and interest else None,
        "asset_turnover": revenue / assets if revenue is not None and assets else None,
    }

    from_statements: dict[str, float | None] = {}
    if statements:
        from_statements = statement_ratios(statements.get("income_stmt"), statements.get("balance_sheet"))

    for metric in _DERIVED_METRICS:
        value = from_info.get(metric)
        if value is None:
            value = from_statements.get(metric)
        inputs[metric] = _metric(value, symbol, observed_at)
    return inputs


def eps_revision_from_trend(eps_trend: pd.DataFrame | None) -> float | None:
    """
    Revision of the current-year EPS estimate over the last 30 days.

    Uses the "0y" row when present, otherwise the first row.
    """
    if eps_trend is None or len(eps_trend) == 0:
        return None
    if "current" not in eps_trend.columns or "30daysAgo" not in eps_trend.columns:
        return None
    row = eps_trend.loc["0y"] if "0y" in eps_trend.index else eps_trend.iloc[0]
    return earnings_revision(_number(row["current"]), _number(row["30daysAgo"]))


def _return_pct(history: pd.DataFrame | None, periods: int) -> float | None:
    if history is None or len(history) == 0:
        return None
    value = calculate_returns(history["close"].astype(float), periods)
    return value * 100 if value is not None else None


def sentiment_inputs_from_market_data(
    symbol: str,
    history: pd.DataFrame,
    info: dict[str, Any] | None = None,
    eps_trend: pd.DataFrame | None = None,
    put_call_ratio: float | None = None,
    market_history: pd.DataFrame | None = None,
    sector_history: pd.DataFrame | None = None,
    fetched_at: datetime | None = None,
) -> dict[str, RawMetric]:
    """
    Map price history, info and options data onto sentiment inputs.

    Args:
        symbol: Ticker
        history: Standardized daily bars for the stock
        info: ``Ticker.info`` payload (short interest)
        eps_trend: ``Ticker.eps_trend`` frame
        put_call_ratio: Nearest-expiry put/call volume ratio
        market_history: Daily bars for the market benchmark
        sector_history: Daily bars for the sector ETF
        fetched_at: When the non-price payloads were fetched

    Returns:
        Component name (and relative-performance field) -> RawMetric
    """
    info = info or {}
    bar_time = _last_bar_time(history)
    close = history["close"].astype(float) if len(history) else pd.Series(dtype=float)

    rsi = None
    if len(close) > 14:
        last_rsi = calculate_rsi(close).iloc[-1]
        rsi = None if pd.isna(last_rsi) else float(last_rsi)

    return {
        "earnings_revisions": _metric(eps_revision_from_trend(eps_trend), symbol, fetched_at),
        "relative_strength": _metric(
            relative_strength(rsi, _return_pct(history, 14)), symbol, bar_time
        ),
        "short_interest": _metric(_number(info.get("shortPercentOfFloat")), symbol, fetched_at),
        "options_flow": _metric(_number(put_call_ratio), symbol, fetched_at),
        "return_15d": _metric(_return_pct(history, 15), symbol, bar_time),
        "market_return_15d": _metric(_return_pct(market_history, 15)),
        "sector_return_15d": _metric(_return_pct(sector_history, 15)),
    }


def regime_inputs_from_history(
    spy_history: pd.DataFrame | None,
    vix_history: pd.DataFrame | None = None,
    put_call_ratio: float | None = None,
    breadth: float | None = None,
    fear_greed: float | None = None,
) -> dict[str, RawMetric]:
    """
    Map benchmark and volatility-index bars onto regime inputs.

    Breadth and fear/greed have no yfinance source; callers may pass them
    in, otherwise they are unavailable.

    Returns:
        Component name (plus ``spy_price``) -> RawMetric
    """
    spy_time = _last_bar_time(spy_history)
    vix_time = _last_bar_time(vix_history)

    def _change(periods: int) -> float | None:
        pct = _return_pct(spy_history, periods)
        return pct / 100 if pct is not None else None

    spy_price = None
    if spy_history is not None and len(spy_history):
        spy_price = _number(spy_history["close"].iloc[-1])
    vix = None
    if vix_history is not None and len(vix_history):
        vix = _number(vix_history["close"].iloc[-1])

    return {
        "spy_price": _metric(spy_price, "SPY", spy_time),
        "short_trend": _metric(_change(20), "SPY", spy_time),
        "medium_trend": _metric(_change(50), "SPY", spy_time),
        "vix": _metric(vix, "^VIX", vix_time),
        "breadth": _metric(_number(breadth)),
        "put_call": _metric(_number(put_call_ratio), "SPY"),
        "fear_greed": _metric(_number(fear_greed)),
    }


def sector_etf(info: dict[str, Any] | None) -> str | None:
    """Sector ETF for a company's sector, if known."""
    if not info:
        return None
    return SECTOR_ETFS.get(str(info.get("sector") or ""))
