"""Durable storage of analysis records."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

import diskcache

from signal_mcp.engine.result import AnalysisResult
from signal_mcp.utils.normalize import RECORD_VERSION, record_fingerprint
from signal_mcp.utils.provenance import append_provenance

logger = logging.getLogger(__name__)


def _latest_key(module: str, symbol: str) -> str:
    return f"latest://{module.lower()}/{symbol.upper().strip()}"


def _record_key(record_id: str) -> str:
    return f"result://{record_id}"


class ResultStore:
    """
    Keep flat analysis records with their provenance.

    Each saved record gets a uuid4 id; the newest record per module and
    symbol is also indexed. Records never expire.
    """

    def __init__(self, directory: str):
        self.directory = directory
        self.cache: diskcache.Cache = diskcache.Cache(directory)

    def save(self, result: AnalysisResult, provenance: dict[str, Any] | None = None) -> str:
        """
        Store a result.

        Args:
            result: Analysis result
            provenance: Provenance block (see ``build_provenance``)

        Returns:
            Record id
        """
        record_id = uuid.uuid4().hex
        record = append_provenance(result.to_record(), provenance)
        record["record_id"] = record_id
        record["record_version"] = RECORD_VERSION
        record["stored_at"] = datetime.now(timezone.utc).isoformat()
        record["fingerprint"] = record_fingerprint(result.to_record())

        self.cache.set(_record_key(record_id), record)
        self.cache.set(_latest_key(result.module, result.symbol), record_id)
        logger.info(f"Stored {result.module} result for {result.symbol} as {record_id}")
        return record_id

    def get(self, record_id: str) -> dict[str, Any] | None:
        """Record by id, or None if unknown."""
        return self.cache.get(_record_key(record_id))

    def latest(self, module: str, symbol: str) -> dict[str, Any] | None:
        """Most recently saved record for a module and symbol."""
        record_id = self.cache.get(_latest_key(module, symbol))
        if record_id is None:
            return None
        return self.get(record_id)

    def load_result(self, record_id: str) -> AnalysisResult | None:
        """Rebuild the AnalysisResult behind a stored record."""
        record = self.get(record_id)
        if record is None:
            return None
        return AnalysisResult.from_record(record)

    def __contains__(self, record_id: str) -> bool:
        return _record_key(record_id) in self.cache

    def close(self) -> None:
        self.cache.close()
