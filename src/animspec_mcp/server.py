"""Main FastMCP server — mounts the analysis tools and the HTTP routes."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastmcp import FastMCP

from . import tracing
from .cleanup import cleanup_queue
from .providers.gemini import GeminiClient
from .providers.kimi import KimiClient
from .tools.analysis import analysis_server
from .tools.http import register_routes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(server: FastMCP):
    """Startup/shutdown hook — tracing, pending cleanup, shared provider clients."""
    tracing.setup()
    yield {}
    drained = await cleanup_queue().drain()
    closed = await GeminiClient.close_all() + await KimiClient.close_all()
    tracing.shutdown()
    logger.info("Lifespan shutdown: %d cleanup task(s) finished, closed %d client(s)", drained, closed)


app = FastMCP(
    "animspec",
    instructions=(
        "Turns short UI-animation recordings into implementable specs: motion "
        "timing, easing, design tokens, or ready-to-run component code. Call "
        "list_formats and list_models, then analyze_video."
    ),
    lifespan=_lifespan,
)

app.mount(analysis_server)
register_routes(app)


def main() -> None:
    """Entry-point for ``animspec-mcp`` console script."""
    app.run()


if __name__ == "__main__":
    main()
