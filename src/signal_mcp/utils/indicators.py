"""Technical indicator calculations."""

import numpy as np
import pandas as pd


def calculate_sma(prices: pd.Series, period: int) -> pd.Series:
    """
    Calculate Simple Moving Average.

    Args:
        prices: Price series (typically close prices)
        period: Number of periods for the average

    Returns:
        SMA series
    """
    return prices.rolling(window=period, min_periods=period).mean()


def calculate_ema(prices: pd.Series, period: int) -> pd.Series:
    """
    Calculate Exponential Moving Average.

    Args:
        prices: Price series (typically close prices)
        period: Number of periods for the average

    Returns:
        EMA series
    """
    return prices.ewm(span=period, adjust=False, min_periods=period).mean()


def calculate_rsi(prices: pd.Series, period: int = 14) -> pd.Series:
    """
    Calculate Relative Strength Index.

    Uses Wilder's smoothing method (exponential moving average).

    Args:
        prices: Price series (typically close prices)
        period: RSI period (default: 14)

    Returns:
        RSI series (0-100 scale)
    """
    delta = prices.diff()

    gain = delta.where(delta > 0, 0.0)
    loss = (-delta).where(delta < 0, 0.0)

    # Wilder's smoothing: alpha = 1/period
    avg_gain = gain.ewm(alpha=1 / period, min_periods=period, adjust=False).mean()
    avg_loss = loss.ewm(alpha=1 / period, min_periods=period, adjust=False).mean()

    rs = avg_gain / avg_loss
    rsi = 100 - (100 / (1 + rs))

    # avg_loss == 0 gives inf; a flat window gives 0/0
    rsi = rsi.replace([np.inf, -np.inf], 100)
    rsi = rsi.where(~((avg_gain == 0) & (avg_loss == 0)), 50.0)

    return rsi


def calculate_macd(
    prices: pd.Series,
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> dict[str, pd.Series]:
    """
    Calculate MACD (Moving Average Convergence Divergence).

    Args:
        prices: Price series (typically close prices)
        fast: Fast EMA period (default: 12)
        slow: Slow EMA period (default: 26)
        signal: Signal line period (default: 9)

    Returns:
        Dict with 'macd_line', 'signal_line', 'histogram' series
    """
    ema_fast = calculate_ema(prices, fast)
    ema_slow = calculate_ema(prices, slow)

    macd_line = ema_fast - ema_slow
    signal_line = calculate_ema(macd_line, signal)
    histogram = macd_line - signal_line

    return {
        "macd_line": macd_line,
        "signal_line": signal_line,
        "histogram": histogram,
    }


def calculate_bollinger_bands(
    prices: pd.Series,
    period: int = 20,
    num_std: float = 2.0,
) -> dict[str, pd.Series]:
    """
    Calculate Bollinger Bands.

    Args:
        prices: Price series (typically close prices)
        period: Rolling window (default: 20)
        num_std: Band width in standard deviations (default: 2)

    Returns:
        Dict with 'upper', 'middle', 'lower' series
    """
    middle = calculate_sma(prices, period)
    std = prices.rolling(window=period, min_periods=period).std(ddof=0)
    return {
        "upper": middle + num_std * std,
        "middle": middle,
        "lower": middle - num_std * std,
    }


def calculate_stochastic(
    high: pd.Series,
    low: pd.Series,
    close: pd.Series,
    k_period: int = 14,
    d_period: int = 3,
) -> dict[str, pd.Series]:
    """
    Calculate the Stochastic Oscillator.

    Args:
        high: High price series
        low: Low price series
        close: Close price series
        k_period: %K lookback (default: 14)
        d_period: %D smoothing (default: 3)

    Returns:
        Dict with 'k' and 'd' series (0-100 scale)
    """
    lowest = low.rolling(window=k_period, min_periods=k_period).min()
    highest = high.rolling(window=k_period, min_periods=k_period).max()
    span = (highest - lowest).replace(0, np.nan)

    k = 100 * (close - lowest) / span
    # Flat range: treat as mid-range
    k = k.where(span.notna() | lowest.isna(), 50.0)
    d = calculate_sma(k, d_period)
    return {"k": k, "d": d}


def calculate_williams_r(
    high: pd.Series,
    low: pd.Series,
    close: pd.Series,
    period: int = 14,
) -> pd.Series:
    """
    Calculate Williams %R.

    Args:
        high: High price series
        low: Low price series
        close: Close price series
        period: Lookback (default: 14)

    Returns:
        Williams %R series (-100 to 0 scale)
    """
    highest = high.rolling(window=period, min_periods=period).max()
    lowest = low.rolling(window=period, min_periods=period).min()
    span = (highest - lowest).replace(0, np.nan)

    wr = -100 * (highest - close) / span
    return wr.where(span.notna() | highest.isna(), -50.0)


def calculate_atr(
    high: pd.Series,
    low: pd.Series,
    close: pd.Series,
    period: int = 14,
) -> pd.Series:
    """
    Calculate Average True Range.

    Args:
        high: High price series
        low: Low price series
        close: Close price series
        period: ATR period (default: 14)

    Returns:
        ATR series
    """
    prev_close = close.shift(1)

    tr1 = high - low
    tr2 = (high - prev_close).abs()
    tr3 = (low - prev_close).abs()

    true_range = pd.concat([tr1, tr2, tr3], axis=1).max(axis=1)

    # Wilder's smoothing for ATR
    atr = true_range.ewm(alpha=1 / period, min_periods=period, adjust=False).mean()

    return atr


def calculate_returns(prices: pd.Series, periods: int) -> float | None:
    """
    Calculate return over a specific number of periods.

    Args:
        prices: Price series
        periods: Number of periods to look back

    Returns:
        Return as decimal (0.15 = 15%), or None if insufficient data
    """
    if len(prices) < periods + 1:
        return None

    current = prices.iloc[-1]
    past = prices.iloc[-periods - 1]

    if pd.isna(current) or pd.isna(past) or past == 0:
        return None

    return float((current - past) / past)


def calculate_max_drawdown(prices: pd.Series) -> float | None:
    """
    Calculate maximum drawdown.

    Args:
        prices: Price series

    Returns:
        Max drawdown as negative decimal (-0.20 = 20% drawdown), or None
    """
    if len(prices) < 2:
        return None

    cummax = prices.cummax()
    drawdown = (prices - cummax) / cummax

    min_dd = drawdown.min()
    if pd.isna(min_dd):
        return None

    return float(min_dd)


def calculate_regression_slope(values: pd.Series | np.ndarray) -> float | None:
    """
    Least-squares slope of values against their position.

    Args:
        values: Ordered observations (NaN are dropped)

    Returns:
        Slope in value units per observation, or None with fewer than 2 points
    """
    y = np.asarray(values, dtype=float)
    y = y[~np.isnan(y)]
    if len(y) < 2:
        return None

    x = np.arange(len(y), dtype=float)
    x_centered = x - x.mean()
    denom = float((x_centered**2).sum())
    if denom == 0:
        return None
    return float((x_centered * (y - y.mean())).sum() / denom)
