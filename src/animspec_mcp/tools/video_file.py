"""Local video file helpers — MIME detection, size guard, VideoInput building."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from ..config import get_config
from ..errors import InvalidInputError
from ..models.analysis import AnalysisImage, VideoMetadata, describe_keyframe_grid
from ..service import VideoInput

logger = logging.getLogger(__name__)

SUPPORTED_VIDEO_EXTENSIONS: dict[str, str] = {
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mov": "video/quicktime",
}

SUPPORTED_IMAGE_EXTENSIONS: dict[str, str] = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
}


def _mime_type(path: Path, table: dict[str, str], kind: str) -> str:
    ext = path.suffix.lower()
    mime = table.get(ext)
    if not mime:
        allowed = ", ".join(sorted(table))
        raise InvalidInputError(f"Unsupported {kind} extension '{ext}'. Supported: {allowed}")
    return mime


def _video_mime_type(path: Path) -> str:
    """Return MIME type for a video file, or raise InvalidInputError if unsupported."""
    return _mime_type(path, SUPPORTED_VIDEO_EXTENSIONS, "video")


def _resolve_file(file_path: str) -> Path:
    p = Path(file_path).expanduser().resolve()
    if not p.exists():
        raise FileNotFoundError(f"File not found: {file_path}")
    if not p.is_file():
        raise InvalidInputError(f"Not a file: {file_path}")
    return p


def _validate_video_path(file_path: str) -> tuple[Path, str]:
    """Validate path exists, has a supported extension and fits the upload cap.

    Returns:
        (resolved path, MIME type).

    Raises:
        FileNotFoundError: The path does not exist.
        InvalidInputError: Not a file, unsupported extension, empty, or too large.
    """
    p = _resolve_file(file_path)
    mime = _video_mime_type(p)
    size = p.stat().st_size
    if size == 0:
        raise InvalidInputError(f"Video file is empty: {file_path}")
    limit = get_config().max_upload_bytes
    if size > limit:
        raise InvalidInputError(
            f"Video is {size / (1024 * 1024):.1f} MB; the limit is {limit / (1024 * 1024):g} MB"
        )
    return p, mime


async def _load_frame_grid(file_path: str) -> AnalysisImage:
    p = _resolve_file(file_path)
    mime = _mime_type(p, SUPPORTED_IMAGE_EXTENSIONS, "image")
    data = await asyncio.to_thread(p.read_bytes)
    return AnalysisImage(data=data, mime_type=mime, description=describe_keyframe_grid())


async def load_video_input(file_path: str, frame_grid_path: str | None = None) -> VideoInput:
    """Read a local clip (and optional keyframe grid) into a VideoInput.

    File reads run in a worker thread so the event loop stays free.
    """
    p, mime = _validate_video_path(file_path)
    data = await asyncio.to_thread(p.read_bytes)
    images = [await _load_frame_grid(frame_grid_path)] if frame_grid_path else []
    logger.info("Loaded %s (%d bytes, %s)", p.name, len(data), mime)
    return VideoInput(
        data=data,
        mime_type=mime,
        metadata=VideoMetadata(size=len(data), mime_type=mime, name=p.name),
        images=images,
    )
