"""Stored result lookup and market status."""

from time import perf_counter
from typing import Any

from signal_mcp.data.market_data import get_market_state
from signal_mcp.data.store import ResultStore
from signal_mcp.tools.common import get_store
from signal_mcp.utils.provenance import build_error_response, build_meta


async def get_stored_result(
    record_id: str | None = None,
    module: str | None = None,
    symbol: str | None = None,
    store: ResultStore | None = None,
) -> dict[str, Any]:
    """
    Fetch a stored analysis record.

    Looks up by ``record_id``, or the newest record for ``module`` and
    ``symbol`` when no id is given.

    Args:
        record_id: Id returned by an analysis tool
        module: Module name for a latest-record lookup
        symbol: Symbol for a latest-record lookup
        store: Result store override

    Returns:
        Dict with the flat record, or an error response
    """
    start_time = perf_counter()
    store = store if store is not None else get_store()

    if record_id:
        record = store.get(record_id.strip())
        missing = f"No stored result with id '{record_id}'"
    elif module and symbol:
        record = store.latest(module, symbol)
        missing = f"No stored {module} result for {symbol.upper()}"
    else:
        return build_error_response(
            "configuration_error", "Provide record_id, or both module and symbol"
        )

    if record is None:
        return build_error_response("data_unavailable", missing, symbol)

    return {
        "meta": build_meta("get_stored_result", (perf_counter() - start_time) * 1000),
        "record": record,
    }


async def market_status() -> dict[str, Any]:
    """Current US market session from the New York clock."""
    start_time = perf_counter()
    return {
        "meta": build_meta("get_market_status", (perf_counter() - start_time) * 1000),
        "market": get_market_state(),
    }
