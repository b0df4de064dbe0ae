"""Timing analysis."""

from signal_mcp.timing.engine import TimingConfig, TimingEngine, timing_module_config
from signal_mcp.timing.risk import RiskAssessment, RiskAssessor, RiskLevel, risk_reward_ratio
from signal_mcp.timing.support_resistance import (
    PriceLevel,
    SupportResistance,
    SupportResistanceEngine,
)
from signal_mcp.timing.trend import HorizonTrend, TrendAnalyzer, TrendDirection, TrendSummary
from signal_mcp.timing.volume import VolumeAnalysis, VolumeAnalyzer, VolumePriceRelationship, VolumeTrend

__all__ = [
    "TimingConfig",
    "TimingEngine",
    "timing_module_config",
    "RiskAssessment",
    "RiskAssessor",
    "RiskLevel",
    "risk_reward_ratio",
    "PriceLevel",
    "SupportResistance",
    "SupportResistanceEngine",
    "HorizonTrend",
    "TrendAnalyzer",
    "TrendDirection",
    "TrendSummary",
    "VolumeAnalysis",
    "VolumeAnalyzer",
    "VolumePriceRelationship",
    "VolumeTrend",
]
