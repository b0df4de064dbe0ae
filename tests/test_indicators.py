"""Tests for technical indicators."""

import numpy as np
import pandas as pd
import pytest

from signal_mcp.utils.indicators import (
    calculate_atr,
    calculate_bollinger_bands,
    calculate_ema,
    calculate_macd,
    calculate_max_drawdown,
    calculate_regression_slope,
    calculate_returns,
    calculate_rsi,
    calculate_sma,
    calculate_stochastic,
    calculate_williams_r,
)


class TestSMA:
    """Tests for SMA calculation."""

    def test_sma_basic(self, sample_price_series: pd.Series) -> None:
        """Test basic SMA calculation."""
        sma = calculate_sma(sample_price_series, 5)

        # SMA should have NaN for first (period-1) values
        assert sma.iloc[:4].isna().all()

        # SMA of first 5 values: (100 + 101 + 102 + 101.5 + 103) / 5 = 101.5
        assert abs(sma.iloc[4] - 101.5) < 0.01

    def test_sma_insufficient_data(self) -> None:
        """Test SMA with insufficient data."""
        prices = pd.Series([100, 101, 102])
        sma = calculate_sma(prices, 5)

        assert sma.isna().all()


class TestEMA:
    """Tests for EMA calculation."""

    def test_ema_basic(self, sample_price_series: pd.Series) -> None:
        """Test basic EMA calculation."""
        ema = calculate_ema(sample_price_series, 5)

        assert not pd.isna(ema.iloc[4])
        assert pd.isna(ema.iloc[3])


class TestRSI:
    """Tests for RSI calculation."""

    def test_rsi_range(self, sample_price_series: pd.Series) -> None:
        """Test RSI stays in 0-100 range."""
        rsi = calculate_rsi(sample_price_series, 14)

        valid_rsi = rsi.dropna()
        assert (valid_rsi >= 0).all()
        assert (valid_rsi <= 100).all()

    def test_rsi_uptrend(self) -> None:
        """Test RSI in strong uptrend."""
        prices = pd.Series([100 + i for i in range(30)])
        rsi = calculate_rsi(prices, 14)

        assert rsi.iloc[-1] > 70

    def test_rsi_downtrend(self) -> None:
        """Test RSI in strong downtrend."""
        prices = pd.Series([100 - i for i in range(30)])
        rsi = calculate_rsi(prices, 14)

        assert rsi.iloc[-1] < 30

    def test_rsi_no_losses_is_100(self) -> None:
        """Test RSI is 100, not inf, when there are no losses."""
        prices = pd.Series([100 + i for i in range(30)])
        assert calculate_rsi(prices, 14).iloc[-1] == 100

    def test_rsi_flat_is_50(self) -> None:
        """Test RSI of a flat series is neutral."""
        prices = pd.Series([100.0] * 30)
        assert calculate_rsi(prices, 14).iloc[-1] == 50


class TestMACD:
    """Tests for MACD calculation."""

    def test_macd_components(self, sample_price_series: pd.Series) -> None:
        """Test MACD returns all components."""
        macd = calculate_macd(sample_price_series, 12, 26, 9)

        assert "macd_line" in macd
        assert "signal_line" in macd
        assert "histogram" in macd

        # Histogram should equal MACD - Signal
        valid_idx = ~(macd["histogram"].isna())
        diff = macd["macd_line"][valid_idx] - macd["signal_line"][valid_idx]
        assert (abs(macd["histogram"][valid_idx] - diff) < 0.0001).all()


class TestBollingerBands:
    """Tests for Bollinger Bands."""

    def test_bands_ordered(self, sample_price_series: pd.Series) -> None:
        """Test upper >= middle >= lower."""
        bands = calculate_bollinger_bands(sample_price_series, period=20)
        valid = bands["middle"].notna()

        assert (bands["upper"][valid] >= bands["middle"][valid]).all()
        assert (bands["middle"][valid] >= bands["lower"][valid]).all()

    def test_flat_series_collapses_bands(self) -> None:
        """Test zero-variance prices give zero-width bands."""
        bands = calculate_bollinger_bands(pd.Series([50.0] * 25), period=20)

        assert bands["upper"].iloc[-1] == bands["lower"].iloc[-1] == 50.0


class TestStochastic:
    """Tests for the Stochastic Oscillator."""

    def test_close_at_high_is_100(self) -> None:
        """Test %K is 100 when the close is the period high."""
        close = pd.Series([float(i) for i in range(1, 21)])
        stoch = calculate_stochastic(close, close, close, k_period=14, d_period=3)

        assert stoch["k"].iloc[-1] == pytest.approx(100.0)
        assert stoch["d"].iloc[-1] == pytest.approx(100.0)

    def test_flat_range_is_mid(self) -> None:
        """Test a zero-width range reads 50."""
        flat = pd.Series([10.0] * 20)
        stoch = calculate_stochastic(flat, flat, flat)

        assert stoch["k"].iloc[-1] == 50.0
        assert pd.isna(stoch["k"].iloc[0])


class TestWilliamsR:
    """Tests for Williams %R."""

    def test_range(self, sample_ohlcv_df: pd.DataFrame) -> None:
        """Test Williams %R stays in -100..0."""
        wr = calculate_williams_r(
            sample_ohlcv_df["High"], sample_ohlcv_df["Low"], sample_ohlcv_df["Close"], period=5
        ).dropna()

        assert (wr <= 0).all()
        assert (wr >= -100).all()

    def test_flat_range(self) -> None:
        """Test a zero-width range reads -50."""
        flat = pd.Series([10.0] * 20)
        assert calculate_williams_r(flat, flat, flat).iloc[-1] == -50.0


class TestATR:
    """Tests for ATR calculation."""

    def test_atr_basic(self, sample_ohlcv_df: pd.DataFrame) -> None:
        """Test basic ATR calculation."""
        atr = calculate_atr(
            sample_ohlcv_df["High"], sample_ohlcv_df["Low"], sample_ohlcv_df["Close"], 5
        )

        valid_atr = atr.dropna()
        assert (valid_atr > 0).all()

    def test_atr_increases_with_volatility(self) -> None:
        """Test ATR increases with higher volatility."""
        close = pd.Series([100.0] * 10)
        atr_low = calculate_atr(close + 1, close - 1, close, 5)
        atr_high = calculate_atr(close + 10, close - 10, close, 5)

        assert atr_high.iloc[-1] > atr_low.iloc[-1]


class TestReturns:
    """Tests for returns calculation."""

    def test_returns_basic(self, sample_price_series: pd.Series) -> None:
        """Test basic returns calculation."""
        ret = calculate_returns(sample_price_series, 5)

        assert ret is not None
        expected = (sample_price_series.iloc[-1] - sample_price_series.iloc[-6]) / sample_price_series.iloc[-6]
        assert abs(ret - expected) < 0.0001

    def test_returns_insufficient_data(self) -> None:
        """Test returns with insufficient data."""
        assert calculate_returns(pd.Series([100, 101, 102]), 5) is None

    def test_returns_zero_base(self) -> None:
        """Test a zero starting price gives None."""
        assert calculate_returns(pd.Series([0.0, 1.0, 2.0]), 2) is None


class TestDrawdown:
    """Tests for drawdown calculations."""

    def test_max_drawdown_basic(self) -> None:
        """Test max drawdown calculation."""
        prices = pd.Series([100, 110, 120, 100, 90, 95])
        dd = calculate_max_drawdown(prices)

        # Max drawdown from 120 to 90 = -25%
        assert dd is not None
        assert abs(dd - (-0.25)) < 0.01

    def test_max_drawdown_too_short(self) -> None:
        """Test a single price has no drawdown."""
        assert calculate_max_drawdown(pd.Series([100.0])) is None


class TestRegressionSlope:
    """Tests for least-squares slope."""

    def test_linear(self) -> None:
        """Test slope of a straight line."""
        assert calculate_regression_slope(np.array([1.0, 3.0, 5.0, 7.0])) == pytest.approx(2.0)

    def test_ignores_nan(self) -> None:
        """Test NaN values are dropped before fitting."""
        values = pd.Series([np.nan, 10.0, 9.0, 8.0])
        assert calculate_regression_slope(values) == pytest.approx(-1.0)

    def test_too_few_points(self) -> None:
        """Test fewer than two points gives None."""
        assert calculate_regression_slope([5.0]) is None
