"""Analysis results and their flat storage record format."""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from signal_mcp.engine.components import Component
from signal_mcp.engine.scale import ScaleKind
from signal_mcp.engine.signals import TradingSignal
from signal_mcp.utils.normalize import canonical_dumps, round_fixed, sanitize_nan_inf

CONFIDENCE_PLACES = 2
WEIGHT_PLACES = 4
RAW_PLACES = 4
FRESHNESS_PLACES = 2

# Extension section -> field -> (column, decimal places or None for text)
EXTENSION_COLUMNS: dict[str, dict[str, tuple[str, int | None]]] = {
    "trend_analysis": {
        "short_term": ("short_term_trend", None),
        "medium_term": ("medium_term_trend", None),
        "long_term": ("long_term_trend", None),
        "strength": ("trend_strength", 2),
        "consistency": ("trend_consistency", 2),
    },
    "support_resistance": {
        "support_level": ("support_level", 2),
        "resistance_level": ("resistance_level", 2),
        "support_distance": ("support_distance", 2),
        "resistance_distance": ("resistance_distance", 2),
        "support_strength": ("support_strength", 2),
        "resistance_strength": ("resistance_strength", 2),
    },
    "volume_analysis": {
        "current_volume": ("current_volume", 0),
        "avg_volume": ("avg_volume", 0),
        "volume_ratio": ("volume_ratio", 4),
        "volume_trend": ("volume_trend", None),
        "vp_relationship": ("vp_relationship", None),
    },
    "risk_assessment": {
        "volatility_score": ("volatility_score", 2),
        "risk_level": ("risk_level", None),
        "max_drawdown_risk": ("max_drawdown_risk", 2),
        "stop_loss": ("stop_loss", 2),
        "risk_reward_ratio": ("risk_reward_ratio", 4),
    },
    "regime": {
        "market_regime": ("market_regime", None),
        "short_term_trend": ("market_short_term_trend", None),
        "medium_term_trend": ("market_medium_term_trend", None),
        "market_volatility": ("market_volatility", 2),
        "risk_score": ("market_risk_score", 2),
        "risk_level": ("market_risk_level", None),
        "regime_confidence": ("regime_confidence", 2),
        "stock_analysis_multiplier": ("stock_analysis_multiplier", 2),
    },
    "relative_performance": {
        "return_15d": ("return_15d", 2),
        "market_return_15d": ("market_return_15d", 2),
        "relative_to_market": ("relative_to_market", 2),
        "sector_return_15d": ("sector_return_15d", 2),
        "relative_to_sector": ("relative_to_sector", 2),
    },
}


def _round_column(value: Any, places: int | None) -> Any:
    if places is None:
        return value
    return round_fixed(value, places)


@dataclass(frozen=True)
class AnalysisResult:
    """
    Outcome of one analysis invocation.

    Built once by a module engine and never mutated afterwards. Module
    specific detail (trend, support/resistance, volume, risk, regime) lives
    in ``extensions`` keyed by section name.
    """

    symbol: str
    module: str
    scale: ScaleKind
    composite_score: float
    signal: TradingSignal
    confidence: float
    components: tuple[Component, ...]
    flags: tuple[str, ...]
    timestamp: datetime
    extensions: dict[str, Any] = field(default_factory=dict)

    @property
    def position_size(self) -> float:
        return self.signal.position_size

    def component(self, name: str) -> Component | None:
        for c in self.components:
            if c.name == name:
                return c
        return None

    def available_weight(self) -> float:
        return sum(c.weight for c in self.components if c.available)

    def to_dict(self) -> dict[str, Any]:
        """Nested, JSON-ready representation for tool responses."""
        return sanitize_nan_inf(
            {
                "symbol": self.symbol,
                "module": self.module,
                "scale": self.scale.value,
                "composite_score": self.composite_score,
                "signal": self.signal.value,
                "position_size": self.position_size,
                "confidence": self.confidence,
                "components": [c.to_dict() for c in self.components],
                "flags": list(self.flags),
                "timestamp": self.timestamp.isoformat(),
                **self.extensions,
            }
        )

    def to_record(self) -> dict[str, Any]:
        """
        Flatten into a storage record with fixed decimal scales.

        Signed scores keep 4 places, unsigned scores 2, confidence 2,
        prices and percentages 2, ratios 4 and volumes 0. Registered
        extension fields become columns; anything else is kept in
        ``extensions_json``.

        Returns:
            Flat record dict
        """
        score_places = self.scale.decimals
        record: dict[str, Any] = {
            "symbol": self.symbol,
            "module": self.module,
            "scale": self.scale.value,
            "composite_score": round_fixed(self.composite_score, score_places),
            "signal": self.signal.value,
            "position_size": self.position_size,
            "confidence": round_fixed(self.confidence, CONFIDENCE_PLACES),
            "flags": list(self.flags),
            "timestamp": self.timestamp.isoformat(),
            "component_names": [c.name for c in self.components],
        }

        for c in self.components:
            record[f"{c.name}_score"] = round_fixed(c.score, score_places)
            record[f"{c.name}_weight"] = round_fixed(c.weight, WEIGHT_PLACES)
            record[f"{c.name}_available"] = c.available
            record[f"{c.name}_raw"] = round_fixed(c.raw_value, RAW_PLACES)
            record[f"{c.name}_freshness"] = round_fixed(c.freshness, FRESHNESS_PLACES)
            record[f"{c.name}_clamped"] = c.clamped
            record[f"{c.name}_source"] = c.source
            record[f"{c.name}_url"] = c.url
            record[f"{c.name}_observed_at"] = c.observed_at.isoformat() if c.observed_at else None

        leftovers: dict[str, Any] = {}
        for section, payload in self.extensions.items():
            columns = EXTENSION_COLUMNS.get(section)
            if columns is None or not isinstance(payload, dict):
                leftovers[section] = payload
                continue
            extra = {}
            for key, value in payload.items():
                if key in columns:
                    column, places = columns[key]
                    record[column] = _round_column(value, places)
                else:
                    extra[key] = value
            record[f"has_{section}"] = True
            if extra:
                leftovers[section] = extra

        record["extensions_json"] = canonical_dumps(sanitize_nan_inf(leftovers)) if leftovers else None
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "AnalysisResult":
        """
        Rebuild a result from a storage record.

        Provenance columns appended by the persistence layer are ignored.

        Args:
            record: Flat record produced by ``to_record``

        Returns:
            AnalysisResult equal to the original at record precision
        """
        scale = ScaleKind(record["scale"])
        components = []
        for name in record.get("component_names", []):
            observed_at = record.get(f"{name}_observed_at")
            components.append(
                Component(
                    name=name,
                    weight=record[f"{name}_weight"],
                    score=record.get(f"{name}_score"),
                    available=bool(record.get(f"{name}_available")),
                    raw_value=record.get(f"{name}_raw"),
                    source=record.get(f"{name}_source"),
                    url=record.get(f"{name}_url"),
                    observed_at=datetime.fromisoformat(observed_at) if observed_at else None,
                    freshness=record.get(f"{name}_freshness") or 0.0,
                    clamped=bool(record.get(f"{name}_clamped")),
                )
            )

        extensions: dict[str, Any] = {}
        for section, columns in EXTENSION_COLUMNS.items():
            if not record.get(f"has_{section}"):
                continue
            extensions[section] = {key: record.get(column) for key, (column, _) in columns.items()}

        if record.get("extensions_json"):
            for section, payload in json.loads(record["extensions_json"]).items():
                if section in extensions and isinstance(payload, dict):
                    extensions[section].update(payload)
                else:
                    extensions[section] = payload

        return cls(
            symbol=record["symbol"],
            module=record["module"],
            scale=scale,
            composite_score=record["composite_score"],
            signal=TradingSignal(record["signal"]),
            confidence=record["confidence"],
            components=tuple(components),
            flags=tuple(record.get("flags") or ()),
            timestamp=datetime.fromisoformat(record["timestamp"]),
            extensions=extensions,
        )
