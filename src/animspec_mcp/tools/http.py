"""HTTP routes served next to the MCP endpoint.

``POST /v1/analyze/stream`` answers with Server-Sent Events; ``POST /v1/analyze``
returns the parsed result as one JSON document. Both validate the whole request
before any provider call, so bad input is always a plain HTTP 400 and never an
error frame inside a stream.

``POST /v1/uploads`` relays a clip too large for a JSON body into the blob
store and answers with the key to analyze it by.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import uuid

from fastmcp import FastMCP
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel
from starlette.requests import Request
from starlette.responses import JSONResponse, Response, StreamingResponse

from ..config import get_config
from ..errors import AnimSpecError, ErrorCategory, InvalidInputError
from ..models.analysis import AnalysisConfig, AnalysisImage, VideoMetadata, describe_keyframe_grid
from ..providers import get_provider
from ..service import (
    VideoInput,
    analyze_agentic,
    analyze_once,
    analyze_once_streaming,
    run_agentic_pipeline,
)
from ..sse import pipeline_frames, single_pass_frames
from ..storage import BlobStore, MemoryBlobStore, fetch_relayed_video

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

_STATUS: dict[ErrorCategory, int] = {
    ErrorCategory.INVALID_INPUT: 400,
    ErrorCategory.RATE_LIMITED: 429,
    ErrorCategory.TRANSPORT: 502,
    ErrorCategory.PROVIDER_REJECTED: 502,
    ErrorCategory.TIMEOUT: 504,
}

_relay_store: BlobStore = MemoryBlobStore()


def set_relay_store(store: BlobStore) -> None:
    """Swap the store that ``storageKey`` requests read from."""
    global _relay_store
    _relay_store = store


class FrameGrid(BaseModel):
    """Keyframe grid image the client extracted from the clip."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    base64: str
    mime_type: str = "image/jpeg"
    frame_count: int | None = None
    columns: int | None = None
    width: int | None = None
    height: int | None = None


class AnalyzeRequest(BaseModel):
    """JSON body accepted by both routes.

    The video comes from exactly one of ``videoBase64``, ``fileUri`` (already
    in the provider's file store) or ``storageKey`` (relayed through blob
    storage).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    video_base64: str | None = None
    mime_type: str | None = None
    file_uri: str | None = None
    file_mime_type: str | None = None
    storage_key: str | None = None
    format: str | None = None
    quality: str | None = None
    trigger: str | None = None
    metadata: VideoMetadata | None = None
    frame_grid: FrameGrid | None = None
    agentic: bool = False


def _decode_base64(value: str, field: str) -> bytes:
    if value.startswith("data:") and "," in value:
        value = value.split(",", 1)[1]
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidInputError(f"{field} is not valid base64") from None


def _frame_grid_image(grid: FrameGrid) -> AnalysisImage:
    return AnalysisImage(
        data=_decode_base64(grid.base64, "frameGrid.base64"),
        mime_type=grid.mime_type,
        description=describe_keyframe_grid(grid.frame_count, grid.columns, grid.width, grid.height),
    )


async def _video_input(req: AnalyzeRequest) -> VideoInput:
    """Resolve the request's single video source into a VideoInput."""
    sources = sum(bool(x) for x in (req.video_base64, req.file_uri, req.storage_key))
    if sources == 0:
        raise InvalidInputError("Missing video data")
    if sources > 1:
        raise InvalidInputError("Provide exactly one of videoBase64, fileUri or storageKey")

    mime_type = req.mime_type or req.file_mime_type or "video/mp4"
    metadata = req.metadata
    if metadata is not None and not metadata.mime_type:
        metadata = metadata.model_copy(update={"mime_type": mime_type})
    images = [_frame_grid_image(req.frame_grid)] if req.frame_grid else []

    if req.file_uri:
        return VideoInput(remote_uri=req.file_uri, mime_type=mime_type, metadata=metadata, images=images)
    if req.storage_key:
        data = await fetch_relayed_video(_relay_store, req.storage_key)
    else:
        data = _decode_base64(req.video_base64, "videoBase64")
    return VideoInput(data=data, mime_type=mime_type, metadata=metadata, images=images)


async def _parse_request(request: Request) -> tuple[AnalyzeRequest, AnalysisConfig, VideoInput]:
    """Read and validate the body. Every failure is an InvalidInputError."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InvalidInputError("Request body must be JSON") from None
    if not isinstance(body, dict):
        raise InvalidInputError("Request body must be a JSON object")
    try:
        req = AnalyzeRequest.model_validate(body)
    except ValidationError as exc:
        first = exc.errors()[0]
        where = ".".join(str(part) for part in first["loc"])
        raise InvalidInputError(f"Invalid field {where}: {first['msg']}") from None
    config = AnalysisConfig.parse(req.format, req.quality, req.trigger)
    return req, config, await _video_input(req)


def _error_response(exc: Exception) -> JSONResponse:
    if isinstance(exc, AnimSpecError):
        status = _STATUS.get(exc.category, 500)
        return JSONResponse({"error": exc.message, "category": exc.category.value}, status_code=status)
    logger.exception("Unexpected failure in analysis route")
    return JSONResponse({"error": "Analysis failed", "category": ErrorCategory.UNKNOWN.value}, status_code=500)


async def analyze_stream(request: Request) -> Response:
    """POST /v1/analyze/stream — SSE frames for the single-call or agentic path."""
    try:
        req, config, video = await _parse_request(request)
        if req.agentic:
            frames = pipeline_frames(run_agentic_pipeline(video, config, provider_factory=get_provider))
        else:
            frames = single_pass_frames(analyze_once_streaming(video, config, provider_factory=get_provider))
    except Exception as exc:
        return _error_response(exc)
    logger.info("Streaming %s analysis (%s)", config.format.value, "agentic" if req.agentic else config.quality.value)
    return StreamingResponse(frames, media_type="text/event-stream", headers=SSE_HEADERS)


async def analyze(request: Request) -> Response:
    """POST /v1/analyze — the whole AnalysisResult as JSON."""
    try:
        req, config, video = await _parse_request(request)
        run = analyze_agentic if req.agentic else analyze_once
        result = await run(video, config, provider_factory=get_provider)
    except Exception as exc:
        return _error_response(exc)
    return JSONResponse(result.model_dump(mode="json", by_alias=True))


async def upload_video(request: Request) -> Response:
    """POST /v1/uploads: stash a raw video body in the relay store.

    Answers 201 with ``{"storageKey": ...}``; pass that key as ``storageKey``
    to either analysis route. The blob is deleted once an analysis reads it.
    """
    mime_type = request.headers.get("content-type", "").split(";", 1)[0].strip()
    try:
        if not mime_type.startswith("video/"):
            raise InvalidInputError("Upload Content-Type must be a video/* type")
        data = await request.body()
        if not data:
            raise InvalidInputError("Upload body is empty")
        limit = get_config().max_upload_bytes
        if len(data) > limit:
            raise InvalidInputError(f"Upload is {len(data)} bytes; the limit is {limit // (1024 * 1024)} MB")
        key = f"uploads/{uuid.uuid4().hex}"
        await _relay_store.put(key, data, mime_type)
    except Exception as exc:
        return _error_response(exc)
    logger.info("Relayed upload %s (%d bytes, %s)", key, len(data), mime_type)
    return JSONResponse({"storageKey": key, "mimeType": mime_type, "size": len(data)}, status_code=201)


ROUTES = (
    ("/v1/analyze/stream", analyze_stream),
    ("/v1/analyze", analyze),
    ("/v1/uploads", upload_video),
)


def register_routes(server: FastMCP) -> None:
    """Attach the HTTP routes to a FastMCP server as custom routes."""
    for path, handler in ROUTES:
        server.custom_route(path, methods=["POST"])(handler)
