"""Tests for OHLCV standardization."""

import numpy as np
import pandas as pd

from signal_mcp.utils.ohlcv import OHLCV_COLUMNS, bars_to_frame, standardize_ohlcv


class TestStandardizeOhlcv:
    """Tests for standardize_ohlcv function."""

    def test_standardize_basic(self, sample_ohlcv_df: pd.DataFrame) -> None:
        """Test basic standardization."""
        result = standardize_ohlcv(sample_ohlcv_df)

        assert list(result.columns) == OHLCV_COLUMNS
        assert len(result) == 10
        assert result["close"].iloc[0] == 100.5

    def test_dates_stay_timestamps(self, sample_ohlcv_df: pd.DataFrame) -> None:
        """Test dates are kept as timestamps for age checks."""
        result = standardize_ohlcv(sample_ohlcv_df)
        assert result["date"].iloc[0] == pd.Timestamp("2024-01-01")

    def test_standardize_removes_adj_close(self, sample_ohlcv_df_with_adj_close: pd.DataFrame) -> None:
        """Test that Adj Close column is removed."""
        result = standardize_ohlcv(sample_ohlcv_df_with_adj_close)

        assert "adj close" not in result.columns
        assert list(result.columns) == OHLCV_COLUMNS

    def test_standardize_handles_multi_index(self) -> None:
        """Test handling of the column MultiIndex yf.download returns."""
        columns = pd.MultiIndex.from_tuples(
            [(field, "AAPL") for field in ["Open", "High", "Low", "Close", "Volume"]]
        )
        df = pd.DataFrame(
            [[100, 101, 99, 100.5, 1000000]],
            index=pd.DatetimeIndex(["2024-01-01"], name="Date"),
            columns=columns,
        )

        result = standardize_ohlcv(df)
        assert list(result.columns) == OHLCV_COLUMNS
        assert result["close"].iloc[0] == 100.5

    def test_standardize_fills_missing_columns(self, sample_ohlcv_df: pd.DataFrame) -> None:
        """Test that missing columns are filled with NA."""
        result = standardize_ohlcv(sample_ohlcv_df.drop(columns=["Volume"]))

        assert list(result.columns) == OHLCV_COLUMNS
        assert result["volume"].isna().all()


class TestBarsToFrame:
    """Tests for caller-supplied bars."""

    def test_from_dicts(self) -> None:
        """Test a list of mappings becomes a date-ordered frame."""
        bars = [
            {"date": "2024-01-03", "open": 11, "high": 12, "low": 10, "close": 11.5, "volume": 500},
            {"date": "2024-01-02", "open": 10, "high": 11, "low": 9, "close": 10.5, "volume": 400},
        ]
        frame = bars_to_frame(bars)

        assert list(frame.columns) == OHLCV_COLUMNS
        assert frame["close"].tolist() == [10.5, 11.5]
        assert list(frame.index) == [0, 1]
        assert str(frame["date"].dt.tz) == "UTC"

    def test_from_yfinance_frame(self, sample_ohlcv_df: pd.DataFrame) -> None:
        """Test a capitalized frame with a date index is accepted."""
        frame = bars_to_frame(sample_ohlcv_df)

        assert len(frame) == 10
        assert frame["date"].iloc[-1] == pd.Timestamp("2024-01-10", tz="UTC")

    def test_drops_bars_without_close(self) -> None:
        """Test bars with a missing or non-numeric close are dropped."""
        bars = [
            {"date": "2024-01-02", "close": 10.0},
            {"date": "2024-01-03", "close": None},
            {"date": "2024-01-04", "close": "n/a"},
            {"date": "2024-01-05", "close": 12.0},
        ]
        assert bars_to_frame(bars)["close"].tolist() == [10.0, 12.0]

    def test_fills_missing_fields(self) -> None:
        """Test high/low/open fall back to the close and volume to 0."""
        frame = bars_to_frame([{"date": "2024-01-02", "close": 10.0}])

        row = frame.iloc[0]
        assert row["high"] == row["low"] == row["open"] == 10.0
        assert row["volume"] == 0.0

    def test_missing_dates_keep_order(self) -> None:
        """Test bars without dates keep their given order."""
        frame = bars_to_frame([{"close": c} for c in (3.0, 1.0, 2.0)])

        assert frame["close"].tolist() == [3.0, 1.0, 2.0]
        assert frame["date"].isna().all()

    def test_numeric_dtype(self) -> None:
        """Test integer inputs are stored as floats."""
        frame = bars_to_frame([{"date": "2024-01-02", "close": 10, "volume": 7}])
        assert frame["close"].dtype == np.float64
