"""Risk assessment: volatility, drawdown, stop loss and risk/reward."""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

import pandas as pd

from signal_mcp.engine.quality import DataQualityFlagger
from signal_mcp.timing.support_resistance import SupportResistance
from signal_mcp.utils.indicators import calculate_atr, calculate_max_drawdown

logger = logging.getLogger(__name__)


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    VERY_HIGH = "VeryHigh"


def risk_level_for(volatility_score: float) -> RiskLevel:
    """Bucket a 0-100 volatility score."""
    if volatility_score >= 75:
        return RiskLevel.VERY_HIGH
    if volatility_score >= 50:
        return RiskLevel.HIGH
    if volatility_score >= 25:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def risk_reward_ratio(price: float, stop_loss: float, resistance: float | None) -> float | None:
    """
    Reward to the nearest resistance per unit of risk to the stop.

    Returns:
        Ratio, or None when there is no resistance or no downside to the stop
    """
    if resistance is None:
        return None
    risk = price - stop_loss
    if risk <= 0:
        return None
    ratio = (resistance - price) / risk
    return ratio if math.isfinite(ratio) else None


@dataclass(frozen=True)
class RiskAssessment:
    volatility_score: float | None
    risk_level: RiskLevel | None
    max_drawdown_risk: float | None
    stop_loss: float
    risk_reward_ratio: float | None

    def to_extension(self) -> dict[str, Any]:
        return {
            "volatility_score": self.volatility_score,
            "risk_level": self.risk_level.value if self.risk_level else None,
            "max_drawdown_risk": self.max_drawdown_risk,
            "stop_loss": self.stop_loss,
            "risk_reward_ratio": self.risk_reward_ratio,
        }


class RiskAssessor:
    """
    Assess position risk from price history and the nearest levels.

    The stop sits ``atr_multiple`` ATRs below the price (or a fixed
    percentage when ATR is undefined) and never below the nearest support.
    """

    def __init__(
        self,
        atr_period: int = 14,
        atr_multiple: float = 2.0,
        fallback_stop_pct: float = 0.08,
        volatility_window: int = 20,
    ):
        self.atr_period = atr_period
        self.atr_multiple = atr_multiple
        self.fallback_stop_pct = fallback_stop_pct
        self.volatility_window = volatility_window

    def volatility_score(self, close: pd.Series) -> float | None:
        """
        Blend of absolute and relative volatility on 0-100.

        Absolute: 20 x the std-dev of the last window's daily % returns.
        Relative: 50 x that std-dev over the median rolling std-dev.
        """
        returns = close.pct_change().dropna() * 100
        if len(returns) < 2:
            return None

        window = self.volatility_window
        sigma = float(returns.tail(window).std())
        if not math.isfinite(sigma):
            return None

        rolling = returns.rolling(window=window, min_periods=window).std().dropna()
        baseline = float(rolling.median()) if len(rolling) else sigma

        absolute = min(100.0, 20.0 * sigma)
        if baseline > 0:
            relative = min(100.0, 50.0 * sigma / baseline)
        else:
            relative = 0.0 if sigma == 0 else 100.0
        return (absolute + relative) / 2

    def stop_loss(self, frame: pd.DataFrame, levels: SupportResistance | None = None) -> float:
        price = float(frame["close"].iloc[-1])
        atr = calculate_atr(frame["high"], frame["low"], frame["close"], period=self.atr_period)
        last_atr = atr.iloc[-1] if len(atr) else float("nan")

        if pd.isna(last_atr):
            stop = price * (1 - self.fallback_stop_pct)
        else:
            stop = price - self.atr_multiple * float(last_atr)

        if levels is not None and levels.support is not None:
            stop = max(stop, levels.support.price)
        return stop

    def assess(
        self,
        frame: pd.DataFrame,
        levels: SupportResistance | None = None,
        flagger: DataQualityFlagger | None = None,
    ) -> RiskAssessment:
        """
        Assess risk for the last bar.

        Args:
            frame: Standardized OHLCV frame ordered by date
            levels: Nearest support/resistance
            flagger: Collector for an undefined risk/reward notice

        Returns:
            RiskAssessment
        """
        close = frame["close"]
        price = float(close.iloc[-1])

        vol_score = self.volatility_score(close)
        drawdown = calculate_max_drawdown(close)
        stop = self.stop_loss(frame, levels)

        resistance = levels.resistance.price if levels is not None and levels.resistance else None
        rr = risk_reward_ratio(price, stop, resistance)
        if rr is None and flagger is not None:
            if price - stop <= 0:
                flagger.add("risk/reward undefined (stop loss at or above price)")
            else:
                flagger.add("risk/reward undefined (no resistance level above price)")

        logger.debug(f"Risk: volatility={vol_score} stop={stop:.4f} rr={rr}")
        return RiskAssessment(
            volatility_score=vol_score,
            risk_level=risk_level_for(vol_score) if vol_score is not None else None,
            max_drawdown_risk=abs(drawdown) * 100 if drawdown is not None else None,
            stop_loss=stop,
            risk_reward_ratio=rr,
        )
