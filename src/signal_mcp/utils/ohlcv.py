"""OHLCV bar standardization utilities."""

from collections.abc import Iterable, Mapping
from typing import Any

import pandas as pd

OHLCV_COLUMNS = ["date", "open", "high", "low", "close", "volume"]


def standardize_ohlcv(df: pd.DataFrame) -> pd.DataFrame:
    """
    Standardize a raw yfinance frame to the bar schema.

    Output columns (always, in this order): date, open, high, low, close, volume
    All lowercase. No 'Adj Close' column. Missing columns filled with NaN.
    Dates stay as timestamps so bar age can be measured.

    Args:
        df: Raw DataFrame from yfinance

    Returns:
        Standardized DataFrame
    """
    df = df.copy()

    # yf.download returns a column MultiIndex even for one ticker
    if isinstance(df.columns, pd.MultiIndex):
        df.columns = df.columns.get_level_values(0)

    if "Adj Close" in df.columns:
        df = df.drop(columns=["Adj Close"])

    df.columns = [str(c).lower() for c in df.columns]
    df = df.reset_index()

    date_cols = [c for c in df.columns if str(c).lower() in ("date", "datetime", "index")]
    if date_cols:
        df = df.rename(columns={date_cols[0]: "date"})

    for col in OHLCV_COLUMNS:
        if col not in df.columns:
            df[col] = pd.NA

    return df[OHLCV_COLUMNS]


def bars_to_frame(bars: pd.DataFrame | Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    """
    Turn caller-supplied bars into a clean, date-ordered frame.

    Accepts a DataFrame or any iterable of ``{date, open, high, low, close,
    volume}`` mappings. Non-numeric values become NaN and bars without a
    close are dropped. Missing high/low fall back to the close and missing
    volume to 0.

    Args:
        bars: Bars in either form

    Returns:
        DataFrame with the canonical columns and a RangeIndex
    """
    if isinstance(bars, pd.DataFrame):
        df = bars.copy()
        if isinstance(df.columns, pd.MultiIndex):
            df.columns = df.columns.get_level_values(0)
        if isinstance(df.index, pd.DatetimeIndex):
            index_name = df.index.name or "date"
            df = df.reset_index(names=index_name)
        df.columns = [str(c).lower() for c in df.columns]
        if "date" not in df.columns and "datetime" in df.columns:
            df = df.rename(columns={"datetime": "date"})
    else:
        df = pd.DataFrame([dict(bar) for bar in bars])
        df.columns = [str(c).lower() for c in df.columns]

    for col in OHLCV_COLUMNS:
        if col not in df.columns:
            df[col] = pd.NA

    df = df[OHLCV_COLUMNS].copy()
    for col in OHLCV_COLUMNS[1:]:
        df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)
    df["date"] = pd.to_datetime(df["date"], errors="coerce", utc=True)

    df = df.dropna(subset=["close"])
    df["high"] = df["high"].fillna(df["close"])
    df["low"] = df["low"].fillna(df["close"])
    df["open"] = df["open"].fillna(df["close"])
    df["volume"] = df["volume"].fillna(0.0)

    if df["date"].notna().all():
        df = df.sort_values("date", kind="mergesort")
    return df.reset_index(drop=True)
