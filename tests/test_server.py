"""Tests for the server lifespan hook."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import animspec_mcp.server as server
from animspec_mcp.cleanup import cleanup_queue


async def test_lifespan_drains_cleanup_and_closes_clients():
    done = []

    async def pending_delete():
        await asyncio.sleep(0)
        done.append("files/abc")

    with (
        patch.object(server.GeminiClient, "close_all", new=AsyncMock(return_value=1)) as gemini_close,
        patch.object(server.KimiClient, "close_all", new=AsyncMock(return_value=0)) as kimi_close,
        patch.object(server.tracing, "setup") as setup,
        patch.object(server.tracing, "shutdown") as shutdown,
    ):
        async with server._lifespan(server.app) as state:
            assert state == {}
            setup.assert_called_once()
            cleanup_queue().schedule("remote file files/abc", pending_delete)

    assert done == ["files/abc"]
    gemini_close.assert_awaited_once()
    kimi_close.assert_awaited_once()
    shutdown.assert_called_once()


def test_server_name():
    assert server.app.name == "animspec"
