"""Relay storage for uploads too large for a single request body.

The bucket itself belongs to the deployment; this module only reads a
relayed video by key and schedules deletion of the key afterwards.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from .cleanup import CleanupQueue, cleanup_queue
from .errors import InvalidInputError

logger = logging.getLogger(__name__)


@runtime_checkable
class BlobStore(Protocol):
    """Write bytes, read bytes by key, delete by key."""

    async def put(self, key: str, data: bytes, content_type: str) -> None: ...

    async def get(self, key: str) -> bytes: ...

    async def delete(self, key: str) -> None: ...


class MemoryBlobStore:
    """Dict-backed BlobStore for local runs and tests."""

    def __init__(self) -> None:
        self._blobs: dict[str, tuple[bytes, str]] = {}

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        self._blobs[key] = (data, content_type)

    async def get(self, key: str) -> bytes:
        try:
            return self._blobs[key][0]
        except KeyError:
            raise KeyError(f"No blob stored under {key!r}") from None

    async def delete(self, key: str) -> None:
        self._blobs.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._blobs


async def fetch_relayed_video(
    store: BlobStore,
    key: str,
    cleanup: CleanupQueue | None = None,
) -> bytes:
    """Read a relayed upload and schedule best-effort deletion of its key.

    Raises:
        InvalidInputError: If the key is empty, missing, or holds no bytes.
    """
    if not key:
        raise InvalidInputError("Missing required field: storage key")
    try:
        data = await store.get(key)
    except KeyError as exc:
        raise InvalidInputError(f"Relayed video not found: {key}") from exc
    (cleanup or cleanup_queue()).schedule(f"relay blob {key}", lambda: store.delete(key))
    if not data:
        raise InvalidInputError(f"Relayed video is empty: {key}")
    logger.info("Fetched relayed video %s (%d bytes)", key, len(data))
    return data
