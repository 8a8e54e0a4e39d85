"""Server-Sent Events framing for the streaming surfaces.

Every frame is ``data: <json>\\n\\n``. Single-call streams use the
``progress``/``chunk``/``complete``/``error`` types; pipeline streams send
each PipelineEvent as-is and finish with ``complete`` or ``error``.
"""

from __future__ import annotations

import codecs
import json
import logging
from collections.abc import AsyncIterator

from .errors import AnimSpecError
from .models.events import PipelineEvent
from .parsing import extract_verification_report
from .pipeline import CODEGEN_PASS, VERIFICATION_PASS

logger = logging.getLogger(__name__)

PROGRESS_MESSAGE = "AI analysis in progress..."


def encode_frame(payload: dict) -> str:
    """Serialize one payload as a complete SSE frame."""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


class SSEParser:
    """Incremental decoder for ``data:`` frames.

    Input may be split at any byte or character offset; complete frames are
    returned as soon as their blank-line delimiter arrives, and a trailing
    frame without one is only released by :meth:`flush`.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")()

    def feed(self, chunk: str | bytes) -> list[str]:
        """Buffer ``chunk`` and return the data payloads of any completed frames."""
        if not chunk:
            return []
        text = self._decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        self._buffer = (self._buffer + text).replace("\r", "")
        *frames, self._buffer = self._buffer.split("\n\n")
        return [data for data in map(self._dispatch, frames) if data is not None]

    def flush(self) -> list[str]:
        """Release a trailing frame that never received its delimiter."""
        remaining = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        if not remaining.strip():
            return []
        data = self._dispatch(remaining.replace("\r", ""))
        return [data] if data is not None else []

    @staticmethod
    def _dispatch(frame: str) -> str | None:
        lines = []
        for line in frame.split("\n"):
            if not line.startswith("data:"):
                continue
            value = line[5:]
            lines.append(value[1:] if value.startswith(" ") else value)
        return "\n".join(lines) if lines else None


def _error_message(exc: BaseException) -> str:
    if isinstance(exc, AnimSpecError):
        return exc.message
    return "Analysis failed"


async def single_pass_frames(deltas: AsyncIterator[str]) -> AsyncIterator[str]:
    """Frame a single-call text stream: progress, chunks, then complete or error.

    Chunks already sent stay sent; a failure appends one terminal error frame.
    """
    yield encode_frame({"type": "progress", "step": "analyzing", "message": PROGRESS_MESSAGE})
    pieces: list[str] = []
    try:
        async for delta in deltas:
            pieces.append(delta)
            yield encode_frame({"type": "chunk", "data": delta})
    except Exception as exc:
        logger.warning("Streaming analysis failed: %s", exc)
        yield encode_frame({"type": "error", "message": _error_message(exc)})
        return
    yield encode_frame({"type": "complete", "data": "".join(pieces)})


async def pipeline_frames(events: AsyncIterator[PipelineEvent]) -> AsyncIterator[str]:
    """Frame a pipeline event stream, closing with the deliverable and its report."""
    outputs: dict[int, str] = {}
    last: PipelineEvent | None = None
    try:
        async for event in events:
            last = event
            payload = event.to_wire()
            if event.type == "error":
                payload["message"] = event.data or "Analysis failed"
                yield encode_frame(payload)
                return
            if event.type == "pass_complete" and event.data is not None:
                outputs[event.pass_number] = event.data
            yield encode_frame(payload)
    except Exception as exc:
        logger.warning("Pipeline stream failed after %s: %s", last.type if last else "start", exc)
        yield encode_frame({"type": "error", "message": _error_message(exc)})
        return

    deliverable = outputs.get(CODEGEN_PASS)
    if deliverable is None:
        yield encode_frame({"type": "error", "message": "Pipeline finished without a deliverable"})
        return
    verification = outputs.get(VERIFICATION_PASS)
    report = extract_verification_report(verification) if verification else None
    yield encode_frame({
        "type": "complete",
        "data": deliverable,
        "verification": report.model_dump(by_alias=True) if report else None,
    })
