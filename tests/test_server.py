"""Tests for server startup and shutdown wiring."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from signal_mcp.server import lifespan, mcp


class TestLifespan:
    """Tests for the server lifespan."""

    def test_cleanup_on_exit(self) -> None:
        """Test the fetch pool is stopped and the store closed after the server exits."""
        store = MagicMock()
        with (
            patch("signal_mcp.server.shutdown_executor", AsyncMock()) as shutdown,
            patch("signal_mcp.server.get_store", return_value=store),
        ):

            async def serve() -> None:
                async with lifespan(mcp):
                    shutdown.assert_not_awaited()

            asyncio.run(serve())

        shutdown.assert_awaited_once()
        store.close.assert_called_once()

    def test_cleanup_after_error(self) -> None:
        """Test cleanup still runs when the server stops on an exception."""
        store = MagicMock()
        with (
            patch("signal_mcp.server.shutdown_executor", AsyncMock()) as shutdown,
            patch("signal_mcp.server.get_store", return_value=store),
        ):

            async def crash() -> None:
                async with lifespan(mcp):
                    raise RuntimeError("transport closed")

            with pytest.raises(RuntimeError, match="transport closed"):
                asyncio.run(crash())

        shutdown.assert_awaited_once()
        store.close.assert_called_once()
