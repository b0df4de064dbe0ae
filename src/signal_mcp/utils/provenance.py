"""Data provenance and metadata utilities."""

from datetime import datetime
from typing import Any

from signal_mcp import SCHEMA_VERSION, SERVER_VERSION

PROVENANCE_COLUMNS = (
    "primary_api_source",
    "fallback_api_source",
    "api_endpoints_used",
    "price_data_points",
    "analysis_period_days",
    "current_price",
    "data_as_of",
)

ERROR_TYPES = {"insufficient_data", "configuration_error", "data_unavailable", "internal_error"}


def build_meta(tool: str, duration_ms: float | None = None) -> dict[str, Any]:
    """
    Build standard metadata block for responses.

    Args:
        tool: Name of the tool producing this response
        duration_ms: Execution time in milliseconds (optional)

    Returns:
        Metadata dict with version info
    """
    meta: dict[str, Any] = {
        "server_version": SERVER_VERSION,
        "schema_version": SCHEMA_VERSION,
        "tool": tool,
    }
    if duration_ms is not None:
        meta["duration_ms"] = round(duration_ms, 1)
    return meta


def build_provenance(
    primary_source: str,
    as_of: datetime | str | None = None,
    fallback_source: str | None = None,
    endpoints: list[str] | None = None,
    **kwargs: Any,
) -> dict[str, Any]:
    """
    Build the provenance block for one analysis.

    Args:
        primary_source: Main data source (e.g. "yfinance")
        as_of: Timestamp of the newest input
        fallback_source: Secondary source used when the primary had gaps
        endpoints: API endpoints that were called
        **kwargs: Extra fields (price_data_points, current_price, ...)

    Returns:
        Provenance dict
    """
    prov: dict[str, Any] = {
        "primary_api_source": primary_source,
        "fallback_api_source": fallback_source,
        "api_endpoints_used": list(endpoints or []),
    }
    if isinstance(as_of, datetime):
        prov["data_as_of"] = as_of.isoformat()
    else:
        prov["data_as_of"] = as_of

    prov.update(kwargs)

    if "warnings" not in prov:
        prov["warnings"] = []

    return prov


def append_provenance(record: dict[str, Any], provenance: dict[str, Any] | None) -> dict[str, Any]:
    """
    Add the provenance columns to a flat storage record.

    Columns absent from ``provenance`` are written as None so every stored
    record has the same layout. The input record is not modified.

    Args:
        record: Record from ``AnalysisResult.to_record()``
        provenance: Provenance dict from ``build_provenance``

    Returns:
        New record with provenance columns
    """
    provenance = provenance or {}
    out = dict(record)
    for column in PROVENANCE_COLUMNS:
        value = provenance.get(column)
        if column == "api_endpoints_used":
            value = ",".join(value) if isinstance(value, (list, tuple)) else value
        out[column] = value
    return out


def build_error_response(
    error_type: str,
    message: str,
    symbol: str | None = None,
    retry_after_seconds: int | None = None,
) -> dict[str, Any]:
    """
    Build standardized error response.

    Args:
        error_type: One of insufficient_data, configuration_error,
            data_unavailable, internal_error
        message: Human-readable error message
        symbol: Symbol that caused the error (if applicable)
        retry_after_seconds: Seconds to wait before retry (for rate limiting)

    Returns:
        Error response dict
    """
    if error_type not in ERROR_TYPES:
        error_type = "internal_error"

    response: dict[str, Any] = {
        "error": True,
        "error_type": error_type,
        "message": message,
        "meta": build_meta("error"),
    }

    if symbol is not None:
        response["symbol"] = symbol

    if retry_after_seconds is not None:
        response["retry_after_seconds"] = retry_after_seconds

    return response
