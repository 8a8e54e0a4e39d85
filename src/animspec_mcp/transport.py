"""Choosing how the video reaches the model, and waiting for remote files."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Literal

from .errors import AnalysisTimeoutError, ProviderRejectionError

logger = logging.getLogger(__name__)

Transport = Literal["inline", "remote"]

FILE_READY = "ACTIVE"
FILE_FAILED = "FAILED"


def select_transport(size: int, threshold: int) -> Transport:
    """Inline up to and including ``threshold`` bytes, remote above it."""
    return "inline" if size <= threshold else "remote"


async def wait_until_ready(
    fetch_state: Callable[[], Awaitable[str]],
    label: str,
    *,
    interval: float = 2.0,
    timeout: float = 60.0,
) -> None:
    """Poll a remote file's processing state until it is ready.

    Args:
        fetch_state: Zero-arg coroutine factory returning the current state name.
        label: Resource name, for messages.
        interval: Seconds between polls.
        timeout: Max seconds to wait.

    Raises:
        ProviderRejectionError: If the provider reports the file as failed.
        AnalysisTimeoutError: If the file is not ready within ``timeout``.
    """
    loop = asyncio.get_running_loop()
    start = loop.time()
    deadline = start + timeout
    while True:
        state = await fetch_state()
        if state == FILE_READY:
            elapsed = loop.time() - start
            if elapsed > interval:
                logger.info("File %s active after %.1fs", label, elapsed)
            return
        if state == FILE_FAILED:
            raise ProviderRejectionError(f"File processing failed: {label}")
        if loop.time() >= deadline:
            raise AnalysisTimeoutError(
                f"File {label} not ready after {timeout:g}s (state: {state})"
            )
        await asyncio.sleep(interval)
