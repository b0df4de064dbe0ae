"""Composite signal scoring engine (pure, synchronous, no I/O)."""

from signal_mcp.engine.components import Component, ComponentSet, RawMetric
from signal_mcp.engine.confidence import ConfidenceEstimator
from signal_mcp.engine.config import CategorySpec, MetricSpec, ModuleConfig
from signal_mcp.engine.generic import CompositeEngine
from signal_mcp.engine.normalizer import NormalizedValue, Normalizer
from signal_mcp.engine.quality import DataQualityFlagger
from signal_mcp.engine.result import AnalysisResult
from signal_mcp.engine.scale import ScaleKind
from signal_mcp.engine.scoring import CompositeScorer
from signal_mcp.engine.signals import SignalClassifier, SignalThresholds, TradingSignal

__all__ = [
    "AnalysisResult",
    "CategorySpec",
    "Component",
    "ComponentSet",
    "CompositeEngine",
    "CompositeScorer",
    "ConfidenceEstimator",
    "DataQualityFlagger",
    "MetricSpec",
    "ModuleConfig",
    "NormalizedValue",
    "Normalizer",
    "RawMetric",
    "ScaleKind",
    "SignalClassifier",
    "SignalThresholds",
    "TradingSignal",
]
