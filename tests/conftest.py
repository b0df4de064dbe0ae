"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta

import numpy as np
import pandas as pd
import pytest

from signal_mcp.data.store import ResultStore


def _bars(close: np.ndarray, volume: float | np.ndarray = 1_000_000.0, spread: float = 0.01) -> pd.DataFrame:
    """Daily bars around a close path, one business day apart."""
    n = len(close)
    return pd.DataFrame(
        {
            "date": pd.date_range("2024-01-01", periods=n, freq="B", tz="UTC"),
            "open": close,
            "high": close * (1 + spread),
            "low": close * (1 - spread),
            "close": close,
            "volume": np.broadcast_to(np.asarray(volume, dtype=float), (n,)).copy(),
        }
    )


def _as_of_after(bars: pd.DataFrame, days: float = 1.0) -> datetime:
    return bars["date"].iloc[-1].to_pydatetime() + timedelta(days=days)


@pytest.fixture
def sample_ohlcv_df() -> pd.DataFrame:
    """Sample OHLCV DataFrame for testing."""
    return pd.DataFrame(
        {
            "Date": pd.date_range("2024-01-01", periods=10, freq="D"),
            "Open": [100.0, 101.0, 102.0, 101.5, 103.0, 104.0, 103.5, 105.0, 106.0, 105.5],
            "High": [101.0, 102.5, 103.0, 102.5, 104.5, 105.5, 105.0, 106.5, 107.0, 106.5],
            "Low": [99.5, 100.5, 101.0, 100.5, 102.0, 103.0, 102.5, 104.0, 105.0, 104.5],
            "Close": [100.5, 102.0, 101.5, 102.0, 104.0, 103.5, 104.5, 106.0, 105.5, 106.0],
            "Volume": [1000000] * 10,
        }
    ).set_index("Date")


@pytest.fixture
def sample_ohlcv_df_with_adj_close(sample_ohlcv_df: pd.DataFrame) -> pd.DataFrame:
    """Sample OHLCV DataFrame with Adj Close column."""
    df = sample_ohlcv_df.copy()
    df["Adj Close"] = df["Close"] - 0.5
    return df


@pytest.fixture
def sample_price_series() -> pd.Series:
    """Sample price series for indicator testing."""
    return pd.Series(
        [100.0, 101.0, 102.0, 101.5, 103.0, 104.0, 103.5, 105.0, 106.0, 105.5,
         107.0, 108.0, 107.5, 109.0, 110.0, 109.5, 111.0, 112.0, 111.5, 113.0,
         114.0, 113.5, 115.0, 116.0, 115.5, 117.0, 118.0, 117.5, 119.0, 120.0]
    )


@pytest.fixture
def uptrend_bars() -> pd.DataFrame:
    """260 bars compounding +0.2% a day."""
    return _bars(100.0 * 1.002 ** np.arange(260))


@pytest.fixture
def downtrend_bars() -> pd.DataFrame:
    """260 bars compounding -0.2% a day."""
    return _bars(100.0 * 0.998 ** np.arange(260))


@pytest.fixture
def flat_bars() -> pd.DataFrame:
    """60 bars with every price at 100."""
    return _bars(np.full(60, 100.0), spread=0.0)


@pytest.fixture
def short_bars() -> pd.DataFrame:
    """Only 5 bars."""
    return _bars(np.array([100.0, 101.0, 102.0, 101.0, 103.0]))


@pytest.fixture
def oscillating_bars() -> pd.DataFrame:
    """120 bars swinging between 90 and 110 with a 20-bar period."""
    close = 100.0 + 10.0 * np.sin(2 * np.pi * np.arange(120) / 20)
    bars = _bars(close)
    bars["high"] = close + 1.0
    bars["low"] = close - 1.0
    return bars


@pytest.fixture
def random_walk_bars() -> pd.DataFrame:
    """250 bars of a seeded random walk with varying volume."""
    rng = np.random.default_rng(7)
    close = 50.0 * np.exp(np.cumsum(rng.normal(0.0005, 0.015, 250)))
    volume = rng.uniform(5e5, 2e6, 250)
    return _bars(close, volume=volume, spread=0.012)


@pytest.fixture
def store(tmp_path):
    """Result store in a temporary directory."""
    result_store = ResultStore(str(tmp_path / "results"))
    yield result_store
    result_store.close()


@pytest.fixture
def as_of_after():
    """Reference time ``days`` after the last bar of a frame."""
    return _as_of_after
