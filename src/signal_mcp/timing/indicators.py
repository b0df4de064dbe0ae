"""Indicator readings and sub-scores feeding the timing composite."""

import math

import pandas as pd

from signal_mcp.utils.indicators import (
    calculate_atr,
    calculate_bollinger_bands,
    calculate_macd,
    calculate_rsi,
    calculate_sma,
    calculate_stochastic,
    calculate_williams_r,
)

# Moving-average period -> vote weight
MA_VOTES = {20: 0.5, 50: 0.3, 200: 0.2}


def _last(series: pd.Series) -> float | None:
    """Last value of a series, or None if it is missing or non-finite."""
    if series is None or len(series) == 0:
        return None
    value = series.iloc[-1]
    if pd.isna(value):
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def macd_histogram_pct(close: pd.Series) -> float | None:
    """MACD histogram as a percentage of the last close."""
    histogram = _last(calculate_macd(close)["histogram"])
    price = _last(close)
    if histogram is None or not price:
        return None
    return histogram / price * 100


def bollinger_position(close: pd.Series, period: int = 20) -> float | None:
    """
    Position of the close inside the Bollinger bands.

    0 at the middle band, +0.5 at the upper band, -0.5 at the lower band.
    A zero-width band (flat prices) reads as 0.
    """
    bands = calculate_bollinger_bands(close, period=period)
    upper, middle, lower = _last(bands["upper"]), _last(bands["middle"]), _last(bands["lower"])
    price = _last(close)
    if upper is None or middle is None or lower is None or price is None:
        return None
    width = upper - lower
    if width <= 0:
        return 0.0
    return (price - middle) / width


def stochastic_reading(frame: pd.DataFrame) -> float | None:
    """Mean of %K and %D."""
    stoch = calculate_stochastic(frame["high"], frame["low"], frame["close"])
    k, d = _last(stoch["k"]), _last(stoch["d"])
    if k is None or d is None:
        return None
    return (k + d) / 2


def stochastic_k(frame: pd.DataFrame) -> float | None:
    """Latest %K reading."""
    return _last(calculate_stochastic(frame["high"], frame["low"], frame["close"])["k"])


def moving_average_score(close: pd.Series) -> float | None:
    """
    Vote of the close against the 20/50/200-bar averages.

    Each available average adds its weight when the close is above it and
    subtracts it when below. Averages without enough history are skipped.
    """
    price = _last(close)
    if price is None:
        return None

    score = 0.0
    voted = False
    for period, weight in MA_VOTES.items():
        sma = _last(calculate_sma(close, period))
        if sma is None:
            continue
        voted = True
        if price > sma:
            score += weight
        elif price < sma:
            score -= weight
    return score if voted else None


def atr_score(frame: pd.DataFrame, period: int = 14, window: int = 20) -> float | None:
    """
    Score the current ATR against its recent mean.

    Ratio above 2 is -1, below 0.5 is +0.5, otherwise -(ratio - 1).
    """
    atr = calculate_atr(frame["high"], frame["low"], frame["close"], period=period).dropna()
    if len(atr) == 0:
        return None
    current = float(atr.iloc[-1])
    mean = float(atr.tail(window).mean())
    if mean <= 0:
        return None

    ratio = current / mean
    if ratio > 2.0:
        return -1.0
    if ratio < 0.5:
        return 0.5
    return -(ratio - 1.0)


def volume_score(frame: pd.DataFrame, recent: int = 5, prior: int = 15) -> float | None:
    """
    Score whether volume confirms the recent price move.

    Compares the mean of the last ``recent`` volumes with the mean of the
    ``prior`` bars before them; direction is the close change over the
    recent window.
    """
    if len(frame) < recent + prior:
        return None

    volume = frame["volume"]
    close = frame["close"]
    recent_avg = float(volume.iloc[-recent:].mean())
    prior_avg = float(volume.iloc[-(recent + prior) : -recent].mean())
    if prior_avg <= 0:
        return None
    ratio = recent_avg / prior_avg

    start = float(close.iloc[-recent - 1])
    change = (float(close.iloc[-1]) - start) / start if start else 0.0

    if change > 0:
        if ratio > 1.5:
            return 1.0
        if ratio < 0.7:
            return -0.5
        return (ratio - 1.0) * 2
    if change < 0:
        if ratio > 1.5:
            return -1.0
        if ratio < 0.7:
            return 0.5
        return -(ratio - 1.0) * 2
    if ratio > 1.2:
        return 0.2
    if ratio < 0.8:
        return -0.2
    return 0.0


def indicator_readings(frame: pd.DataFrame) -> dict[str, float | None]:
    """
    Raw indicator values for every timing indicator component.

    Oscillators (rsi, bollinger, stochastic, williams_r) and macd are raw
    readings normalized later; the remaining entries are already sub-scores.

    Args:
        frame: Standardized OHLCV frame ordered by date

    Returns:
        Dict keyed by component name (None where history is too short)
    """
    close = frame["close"]
    return {
        "rsi": _last(calculate_rsi(close)),
        "macd": macd_histogram_pct(close),
        "bollinger": bollinger_position(close),
        "moving_averages": moving_average_score(close),
        "stochastic": stochastic_reading(frame),
        "williams_r": _last(calculate_williams_r(frame["high"], frame["low"], close)),
        "atr": atr_score(frame),
        "volume": volume_score(frame),
    }
