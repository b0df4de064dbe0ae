"""Fundamentals module: five weighted categories of financial ratios."""

import operator

from signal_mcp.engine.config import CategorySpec, MetricSpec, ModuleConfig
from signal_mcp.engine.confidence import ConfidenceEstimator
from signal_mcp.engine.generic import CompositeEngine
from signal_mcp.engine.normalizer import Normalizer
from signal_mcp.engine.signals import SignalThresholds
from signal_mcp.utils.validators import check_rule

CATEGORY_WEIGHTS = {
    "profitability": 0.30,
    "growth": 0.25,
    "valuation": 0.20,
    "financial_strength": 0.15,
    "efficiency": 0.10,
}

# category -> [(metric, low, high, higher_is_better)]
METRIC_RANGES: dict[str, list[tuple[str, float, float, bool]]] = {
    "profitability": [
        ("roe", -0.10, 0.30, True),
        ("roa", -0.05, 0.15, True),
        ("net_margin", -0.10, 0.25, True),
        ("operating_margin", -0.10, 0.30, True),
    ],
    "growth": [
        ("revenue_growth", -0.10, 0.30, True),
        ("earnings_growth", -0.20, 0.40, True),
    ],
    "valuation": [
        ("pe_ratio", 5.0, 40.0, False),
        ("peg_ratio", 0.5, 3.0, False),
        ("ps_ratio", 1.0, 15.0, False),
        ("pb_ratio", 1.0, 10.0, False),
        ("ev_ebitda", 5.0, 30.0, False),
    ],
    "financial_strength": [
        ("debt_to_equity", 0.0, 2.5, False),
        ("current_ratio", 0.8, 3.0, True),
        ("quick_ratio", 0.5, 2.0, True),
        ("interest_coverage", 1.0, 15.0, True),
    ],
    "efficiency": [
        ("asset_turnover", 0.2, 1.5, True),
        ("inventory_turnover", 2.0, 12.0, True),
        ("days_sales_outstanding", 20.0, 90.0, False),
    ],
}


def _category(name: str) -> CategorySpec:
    metrics = METRIC_RANGES[name]
    weight = 1.0 / len(metrics)
    return CategorySpec(
        name=name,
        weight=CATEGORY_WEIGHTS[name],
        metrics=tuple(
            MetricSpec(metric, weight, Normalizer(low, high, higher_is_better=better))
            for metric, low, high, better in metrics
        ),
    )


FUNDAMENTALS_CONFIG = ModuleConfig(
    name="fundamentals",
    categories=tuple(_category(name) for name in CATEGORY_WEIGHTS),
    thresholds=SignalThresholds.symmetric(0.6, 0.2),
    confidence=ConfidenceEstimator(mode="product"),
    staleness_days=120.0,
)


class FundamentalsEngine(CompositeEngine):
    """Score a company's financial quality."""

    def __init__(self, config: ModuleConfig = FUNDAMENTALS_CONFIG):
        super().__init__(config)

    def module_flags(self, scores: dict[str, float | None]) -> list[str]:
        flags = []
        available = sum(1 for s in scores.values() if s is not None)
        if available < 3:
            flags.append("Limited data available")

        if check_rule(scores.get("valuation"), -0.5, operator.lt):
            flags.append("High valuation risk")
        if check_rule(scores.get("financial_strength"), -0.5, operator.lt):
            flags.append("Financial distress risk")
        if check_rule(scores.get("profitability"), -0.3, operator.lt):
            flags.append("Low profitability")
        return flags
