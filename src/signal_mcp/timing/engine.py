"""Timing module: technical indicators plus trend, levels, volume and risk."""

import logging
import operator
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import pandas as pd

from signal_mcp.engine.components import RawMetric
from signal_mcp.engine.confidence import ConfidenceEstimator
from signal_mcp.engine.config import MetricSpec, ModuleConfig
from signal_mcp.engine.generic import CompositeEngine
from signal_mcp.engine.normalizer import Normalizer
from signal_mcp.engine.quality import DataQualityFlagger, age_in_days
from signal_mcp.engine.result import AnalysisResult
from signal_mcp.engine.signals import SignalThresholds
from signal_mcp.errors import InsufficientDataError
from signal_mcp.timing.indicators import indicator_readings, stochastic_k
from signal_mcp.timing.risk import RiskAssessor
from signal_mcp.timing.support_resistance import SupportResistanceEngine
from signal_mcp.timing.trend import TrendAnalyzer
from signal_mcp.timing.volume import VolumeAnalyzer
from signal_mcp.utils.ohlcv import bars_to_frame
from signal_mcp.utils.validators import check_rule

logger = logging.getLogger(__name__)

INDICATOR_WEIGHT = 0.0875
TREND_WEIGHT = 0.3

# Fewer bars than this get a short-history notice
HISTORY_NOTICE_BARS = 20


@dataclass(frozen=True)
class TimingConfig:
    """
    Tunables for the timing module.

    Attributes:
        min_bars: Fewest valid bars accepted
        staleness_days: Age of the last bar after which prices count as stale
        history_target: Bar count treated as a full history for confidence
        short_bars: Short trend horizon
        medium_bars: Medium trend horizon
        long_bars: Long trend horizon
        sr_lookback: Bars searched for support/resistance swings
        atr_multiple: Stop distance in ATRs
    """

    min_bars: int = 30
    staleness_days: float = 5.0
    history_target: int = 200
    short_bars: int = 10
    medium_bars: int = 50
    long_bars: int = 200
    sr_lookback: int = 120
    atr_multiple: float = 2.0


def _oscillator(low: float, high: float) -> Normalizer:
    # Overbought is bearish: lower readings score higher
    return Normalizer(low, high, higher_is_better=False, flag_clamped=False)


def timing_module_config(config: TimingConfig | None = None) -> ModuleConfig:
    """Component declarations for the timing composite."""
    config = config or TimingConfig()
    precomputed = Normalizer.identity(flag_clamped=False)
    return ModuleConfig(
        name="timing",
        components=(
            MetricSpec("rsi", INDICATOR_WEIGHT, _oscillator(30.0, 70.0)),
            MetricSpec("macd", INDICATOR_WEIGHT, Normalizer(-1.0, 1.0, flag_clamped=False)),
            MetricSpec("bollinger", INDICATOR_WEIGHT, _oscillator(-0.5, 0.5)),
            MetricSpec("moving_averages", INDICATOR_WEIGHT, precomputed),
            MetricSpec("stochastic", INDICATOR_WEIGHT, _oscillator(20.0, 80.0)),
            MetricSpec("williams_r", INDICATOR_WEIGHT, _oscillator(-80.0, -20.0)),
            MetricSpec("atr", INDICATOR_WEIGHT, precomputed),
            MetricSpec("volume", INDICATOR_WEIGHT, precomputed),
            MetricSpec("trend", TREND_WEIGHT, precomputed),
        ),
        thresholds=SignalThresholds.symmetric(0.6, 0.2),
        confidence=ConfidenceEstimator(
            mode="weighted",
            availability_weight=0.4,
            freshness_weight=0.3,
            history_weight=0.3,
            history_target=config.history_target,
        ),
        staleness_days=config.staleness_days,
    )


def _last_bar_time(frame: pd.DataFrame) -> datetime | None:
    last = frame["date"].iloc[-1]
    if pd.isna(last):
        return None
    return pd.Timestamp(last).to_pydatetime()


def condition_flags(bars: int, rsi: float | None, stoch_k: float | None) -> list[str]:
    """Overbought/oversold and short-history notices for a timing run."""
    flags = []
    if bars < HISTORY_NOTICE_BARS:
        flags.append("Insufficient historical data")

    if check_rule(rsi, 70.0, operator.ge):
        flags.append("RSI indicates overbought conditions")
    elif check_rule(rsi, 30.0, operator.le):
        flags.append("RSI indicates oversold conditions")

    if check_rule(stoch_k, 80.0, operator.ge):
        flags.append("Stochastic indicates overbought conditions")
    elif check_rule(stoch_k, 20.0, operator.le):
        flags.append("Stochastic indicates oversold conditions")
    return flags


class TimingEngine:
    """
    Score entry/exit timing for one symbol from its daily bars.

    Eight indicator sub-scores and a trend sub-score go through the generic
    composite pipeline; trend, support/resistance, volume and risk details
    are attached as extensions.
    """

    def __init__(self, config: TimingConfig | None = None):
        self.config = config or TimingConfig()
        self.composite = CompositeEngine(timing_module_config(self.config))
        self.trend = TrendAnalyzer(
            short_bars=self.config.short_bars,
            medium_bars=self.config.medium_bars,
            long_bars=self.config.long_bars,
        )
        self.levels = SupportResistanceEngine(lookback=self.config.sr_lookback)
        self.volume = VolumeAnalyzer()
        self.risk = RiskAssessor(atr_multiple=self.config.atr_multiple)

    def analyze(
        self,
        symbol: str,
        bars: pd.DataFrame | Iterable[Mapping[str, Any]],
        as_of: datetime | None = None,
        source: str | None = None,
    ) -> AnalysisResult:
        """
        Run the timing analysis.

        Args:
            symbol: Ticker
            bars: OHLCV bars (DataFrame or iterable of mappings)
            as_of: Reference time; defaults to now (UTC)
            source: Data source recorded on every component

        Returns:
            AnalysisResult for module "timing"

        Raises:
            InsufficientDataError: If fewer than ``min_bars`` valid bars
        """
        frame = bars_to_frame(bars)
        available = len(frame)
        required = self.config.min_bars
        if available < required:
            raise InsufficientDataError(
                f"{symbol}: timing analysis needs at least {required} bars, got {available}",
                required=required,
                available=available,
            )

        as_of = as_of if as_of is not None else datetime.now(timezone.utc)
        flagger = DataQualityFlagger()

        last_bar_at = _last_bar_time(frame)
        freshness = 1.0
        if last_bar_at is not None:
            flagger.check_staleness("price", last_bar_at, as_of, self.config.staleness_days)
            freshness = 0.5 ** (age_in_days(last_bar_at, as_of) / self.config.staleness_days)

        readings = indicator_readings(frame)
        flagger.extend(condition_flags(available, readings["rsi"], stochastic_k(frame)))
        trend = self.trend.analyze(frame["close"], flagger)
        readings["trend"] = self.trend.trend_score(trend)

        levels = self.levels.analyze(frame)
        volume = self.volume.analyze(frame)
        risk = self.risk.assess(frame, levels, flagger)

        inputs = {name: RawMetric(value=value, source=source) for name, value in readings.items()}
        result = self.composite.analyze(
            symbol,
            inputs,
            as_of=as_of,
            observations=available,
            extensions={
                "trend_analysis": trend.to_extension(),
                "support_resistance": levels.to_extension(),
                "volume_analysis": volume.to_extension(),
                "risk_assessment": risk.to_extension(),
            },
            flagger=flagger,
            freshness=freshness,
        )
        logger.debug(f"Timing {result.symbol}: {result.signal.value} ({result.composite_score:.4f})")
        return result
