"""Normalization utilities for fixed-precision, diff-stable storage records.

Stored results are compared across runs, so every record goes through the
same contract before it leaves the engine:
1. Numeric fields are rounded to a fixed number of decimal places per column
2. NaN/inf are replaced with null; -0.0 becomes 0.0
3. Canonical JSON uses sorted keys and refuses NaN
"""

from __future__ import annotations

import hashlib
import json
import math
from typing import Any

# Record format version - bump when column layout or rounding changes
RECORD_VERSION = "1.0.0"


def canonical_dumps(obj: Any) -> str:
    """Produce canonical JSON string with sorted keys and minimal separators.

    Uses allow_nan=False to fail fast if NaN/inf values slip through
    sanitization.
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def _is_nan_or_inf(x: Any) -> bool:
    """Check if value is NaN or inf, handling numpy types safely."""
    if isinstance(x, bool):
        return False
    try:
        return math.isnan(x) or math.isinf(x)
    except (TypeError, ValueError):
        return False


def _is_negative_zero(x: Any) -> bool:
    """Check if value is -0.0."""
    if isinstance(x, bool):
        return False
    try:
        return x == 0.0 and math.copysign(1.0, x) < 0
    except (TypeError, ValueError):
        return False


def sanitize_nan_inf(obj: Any) -> Any:
    """Recursively replace NaN, inf, -inf with None and -0.0 with 0.0.

    Tuples are returned as lists so the result is JSON-ready.
    """
    if isinstance(obj, dict):
        return {k: sanitize_nan_inf(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [sanitize_nan_inf(item) for item in obj]
    elif _is_nan_or_inf(obj):
        return None
    elif _is_negative_zero(obj):
        return 0.0
    return obj


def round_fixed(value: Any, places: int) -> float | int | None:
    """
    Round a numeric value to a fixed number of decimal places.

    Args:
        value: Numeric value (None, NaN and inf become None)
        places: Decimal places; 0 returns an int

    Returns:
        Rounded value, or None when the value is missing or non-finite
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        x = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(x):
        return None
    if places == 0:
        return int(round(x))
    rounded = round(x, places)
    return 0.0 if rounded == 0 else rounded


def record_fingerprint(record: dict[str, Any]) -> str:
    """SHA-256 of the canonical record JSON (first 16 hex chars).

    The record version is part of the hashed content so a format bump
    changes every fingerprint.
    """
    payload = {"record_version": RECORD_VERSION, **sanitize_nan_inf(record)}
    return hashlib.sha256(canonical_dumps(payload).encode("utf-8")).hexdigest()[:16]
