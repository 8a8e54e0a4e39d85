"""Best-effort background cleanup of provider files and relay blobs.

Work scheduled here runs off the response path: failures are logged at
warning level and never reach the caller.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class CleanupQueue:
    """Tracks fire-and-forget cleanup tasks so shutdown can wait for them."""

    def __init__(self) -> None:
        self._pending: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def schedule(self, label: str, factory: Callable[[], Awaitable[object]]) -> asyncio.Task:
        """Run ``factory()`` in the background.

        Args:
            label: What is being cleaned up, for the log line.
            factory: Zero-arg callable returning the cleanup awaitable.

        Returns:
            The background Task (also tracked until it finishes).
        """
        task = asyncio.create_task(self._run(label, factory))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _run(self, label: str, factory: Callable[[], Awaitable[object]]) -> None:
        try:
            await factory()
            logger.debug("Cleanup done: %s", label)
        except Exception as exc:
            logger.warning("Cleanup failed (%s): %s", label, exc)

    async def drain(self, timeout: float = 10.0) -> int:
        """Wait up to ``timeout`` seconds for outstanding cleanup. Returns how many were awaited."""
        tasks = list(self._pending)
        if not tasks:
            return 0
        done, pending = await asyncio.wait(tasks, timeout=timeout)
        if pending:
            logger.warning("%d cleanup task(s) still running after %.1fs", len(pending), timeout)
        return len(done)


_queue: CleanupQueue | None = None


def cleanup_queue() -> CleanupQueue:
    """Process-wide default queue, created on first access."""
    global _queue
    if _queue is None:
        _queue = CleanupQueue()
    return _queue
