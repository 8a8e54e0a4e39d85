"""Shared test fixtures for animspec-mcp."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any

import pytest

import animspec_mcp.cleanup as cleanup_mod
import animspec_mcp.config as cfg_mod
from animspec_mcp.config import AnalysisSettings
from animspec_mcp.models.events import StreamFragment
from animspec_mcp.models.video import RemoteVideo
from animspec_mcp.providers import VisionProvider


def unwrap_tool(tool: Any) -> Any:
    """Extract the raw coroutine from a FastMCP FunctionTool, if wrapped.

    FastMCP 2.x wraps @server.tool functions in FunctionTool (not callable).
    FastMCP 3.x preserves the original function. This helper works with both.
    """
    return getattr(tool, "fn", tool)


@pytest.fixture(autouse=True, scope="session")
def _unwrap_fastmcp_tools():
    """Patch tool modules so FunctionTool objects become directly callable."""
    import importlib
    import pkgutil

    import animspec_mcp.tools as tools_pkg

    modules = [
        importlib.import_module(info.name)
        for info in pkgutil.walk_packages(tools_pkg.__path__, tools_pkg.__name__ + ".")
    ]
    for mod in modules:
        for name in list(vars(mod)):
            obj = getattr(mod, name, None)
            if obj is not None and hasattr(obj, "fn") and not callable(obj):
                setattr(mod, name, obj.fn)


@pytest.fixture(autouse=True)
def _set_dummy_api_keys(monkeypatch):
    """Ensure tests never hit a real provider."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-key-not-real")
    monkeypatch.setenv("MOONSHOT_API_KEY", "test-moonshot-key")


@pytest.fixture(autouse=True)
def _disable_tracing(monkeypatch):
    """Disable MLflow tracing in all tests to avoid real tracking-server calls."""
    monkeypatch.setenv("ANIMSPEC_TRACING_ENABLED", "false")
    monkeypatch.delenv("MLFLOW_TRACKING_URI", raising=False)


@pytest.fixture(autouse=True)
def _clean_singletons():
    """Fresh config and cleanup queue for every test."""
    cfg_mod._config = None
    cleanup_mod._queue = None
    yield
    cfg_mod._config = None
    cleanup_mod._queue = None


class FakeProvider(VisionProvider):
    """Scripted VisionProvider.

    Each ``stream`` call consumes the next script. A script item may be a
    StreamFragment, a plain string (an output fragment), a float (seconds to
    sleep), or an exception instance (raised at that point).
    """

    name = "gemini"
    supports_remote = True

    def __init__(self, *scripts: list, supports_remote: bool = True, upload_error: Exception | None = None):
        self.scripts = list(scripts)
        self.supports_remote = supports_remote
        self.upload_error = upload_error
        self.calls: list[SimpleNamespace] = []
        self.uploads: list[tuple[bytes, str]] = []
        self.deleted: list[str] = []
        self.closed_streams = 0

    async def stream(self, video, prompt, settings, images=()):
        self.calls.append(SimpleNamespace(video=video, prompt=prompt, settings=settings, images=list(images)))
        script = self.scripts.pop(0) if self.scripts else []
        try:
            for item in script:
                if isinstance(item, BaseException):
                    raise item
                if isinstance(item, float):
                    await asyncio.sleep(item)
                    continue
                if isinstance(item, str):
                    item = StreamFragment(kind="output", text=item)
                yield item
        finally:
            self.closed_streams += 1

    async def upload(self, data, mime_type, *, poll_interval=2.0, poll_timeout=60.0):
        self.uploads.append((data, mime_type))
        if self.upload_error is not None:
            raise self.upload_error
        return RemoteVideo(uri="https://files.example/abc", mime_type=mime_type, name="files/abc")

    async def delete_remote(self, video):
        self.deleted.append(video.name)


def thinking(text: str) -> StreamFragment:
    return StreamFragment(kind="thinking", text=text)


@pytest.fixture
def make_provider():
    """Build a FakeProvider from scripts; see FakeProvider for the script shape."""
    return FakeProvider


@pytest.fixture
def thought():
    """Shortcut for a thinking fragment."""
    return thinking


@pytest.fixture
def settings() -> AnalysisSettings:
    """Default tables with a small inline limit and short bounds."""
    return AnalysisSettings(
        inline_limit_bytes=1024,
        file_poll_interval=0.01,
        file_poll_timeout=0.5,
        request_timeout=5.0,
    )


async def settle() -> None:
    """Let fire-and-forget cleanup tasks run."""
    await cleanup_mod.cleanup_queue().drain(timeout=1.0)


@pytest.fixture
def drain_cleanup():
    return settle
