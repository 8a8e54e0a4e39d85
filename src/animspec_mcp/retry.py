"""Exponential backoff for throttled provider calls.

Only rate limits are retried here. Transport failures get their one tier
upgrade inside the analyzer and are final once they reach this layer.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from .config import get_config
from .errors import AnimSpecError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRANSIENT_PATTERNS: tuple[str, ...] = (
    "429",
    "quota",
    "resource_exhausted",
    "rate limit",
)


def is_retryable(exc: Exception) -> bool:
    """Classified errors decide for themselves; raw SDK errors match by message."""
    if isinstance(exc, AnimSpecError):
        return exc.retryable
    msg = str(exc).lower()
    return any(p in msg for p in _TRANSIENT_PATTERNS)


async def with_retry(coro_factory: Callable[[], Awaitable[T]]) -> T:
    """Execute an async callable with exponential backoff on retryable errors.

    Args:
        coro_factory: Zero-arg callable that returns a fresh awaitable each attempt.

    Returns:
        The result of the first successful call.

    Raises:
        The last exception if all attempts are exhausted or non-retryable.
    """
    cfg = get_config()
    max_attempts = cfg.retry_max_attempts
    base_delay = cfg.retry_base_delay
    max_delay = cfg.retry_max_delay

    for attempt in range(max_attempts):
        try:
            return await coro_factory()
        except Exception as exc:
            if not is_retryable(exc) or attempt == max_attempts - 1:
                raise
            delay = min(base_delay * (2 ** attempt) + random.random(), max_delay)
            logger.warning(
                "Retry %d/%d after %.1fs: %s", attempt + 1, max_attempts, delay, exc,
            )
            await asyncio.sleep(delay)
    raise RuntimeError("with_retry called with retry_max_attempts < 1")
