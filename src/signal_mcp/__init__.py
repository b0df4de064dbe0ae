"""Composite Signal Scoring MCP Server."""

import os


def get_server_version() -> str:
    """Get version with fallback for dev mode."""
    if version := os.environ.get("SERVER_VERSION"):
        return version
    try:
        from importlib.metadata import version as pkg_version

        return pkg_version("signal-mcp")
    except Exception:
        return "dev"


SERVER_VERSION = get_server_version()
# Bump when the storage record or tool output changes materially
# v1: Initial schema (composite, signal, confidence, components, flags, timing extensions)
# v2: Added position_size, regime extension, provenance columns
SCHEMA_VERSION = "2"
