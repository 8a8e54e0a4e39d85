"""Gemini adapter -- google-genai async client with thought-part decoding."""

from __future__ import annotations

import io
import logging
import os
from collections.abc import AsyncIterator, Sequence
from typing import Any

from google import genai
from google.genai import types

from ..cleanup import cleanup_queue
from ..config import GenerationSettings, get_config
from ..errors import AnimSpecError, InvalidInputError, ProviderRejectionError, classify_provider_error
from ..models.analysis import AnalysisImage
from ..models.events import StreamFragment
from ..models.video import InlineVideo, RemoteVideo, VideoPart
from ..retry import with_retry
from ..transport import wait_until_ready
from .base import VisionProvider

logger = logging.getLogger(__name__)

_BLOCKING_FINISH_REASONS = {"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII", "RECITATION"}


class GeminiClient:
    """Process-wide Gemini client pool (one client per API key)."""

    _clients: dict[str, genai.Client] = {}

    @classmethod
    def get(cls, api_key: str | None = None) -> genai.Client:
        """Return (or create) the shared client for *api_key*."""
        key = api_key or get_config().gemini_api_key or os.getenv("GEMINI_API_KEY", "")
        if not key:
            raise InvalidInputError("No Gemini API key — set GEMINI_API_KEY")
        if key not in cls._clients:
            cls._clients[key] = genai.Client(api_key=key)
            logger.info("Created Gemini client (key …%s)", key[-4:])
        return cls._clients[key]

    @classmethod
    async def close_all(cls) -> int:
        """Close every pooled client's async transport. Returns how many were closed."""
        count = 0
        for key, client in list(cls._clients.items()):
            try:
                await client.aio.close()
                client.close()
            except Exception as exc:
                logger.debug("Gemini client …%s close failed: %s", key[-4:], exc)
            count += 1
        cls._clients.clear()
        logger.info("Closed %d Gemini client(s)", count)
        return count


def _enum_name(value: Any) -> str:
    if value is None:
        return ""
    return str(getattr(value, "name", None) or getattr(value, "value", value)).upper()


def check_blocked(response: Any) -> None:
    """Raise ProviderRejectionError if the prompt or a candidate was blocked."""
    feedback = getattr(response, "prompt_feedback", None)
    block_reason = getattr(feedback, "block_reason", None)
    if block_reason:
        raise ProviderRejectionError(f"Gemini blocked the request: {_enum_name(block_reason)}")
    for candidate in getattr(response, "candidates", None) or []:
        reason = _enum_name(getattr(candidate, "finish_reason", None))
        if reason in _BLOCKING_FINISH_REASONS:
            raise ProviderRejectionError(f"Gemini stopped generation: {reason}")


def decode_chunk(response: Any) -> list[StreamFragment]:
    """Tag each text part of a response chunk as thinking or output."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates or candidates[0].content is None:
        return []
    fragments: list[StreamFragment] = []
    for part in candidates[0].content.parts or []:
        if not part.text:
            continue
        kind = "thinking" if getattr(part, "thought", False) else "output"
        fragments.append(StreamFragment(kind=kind, text=part.text))
    return fragments


def video_part(video: VideoPart) -> types.Part:
    if isinstance(video, InlineVideo):
        return types.Part.from_bytes(data=video.data, mime_type=video.mime_type)
    return types.Part(file_data=types.FileData(file_uri=video.uri, mime_type=video.mime_type))


def build_contents(
    video: VideoPart, prompt: str, images: Sequence[AnalysisImage] = ()
) -> types.Content:
    """Parts in order: video, reference images, prompt text."""
    parts = [video_part(video)]
    parts.extend(types.Part.from_bytes(data=img.data, mime_type=img.mime_type) for img in images)
    parts.append(types.Part(text=prompt))
    return types.Content(role="user", parts=parts)


def build_config(settings: GenerationSettings) -> types.GenerateContentConfig:
    config = types.GenerateContentConfig(
        max_output_tokens=settings.max_output_tokens,
        temperature=settings.temperature,
    )
    if settings.top_p is not None:
        config.top_p = settings.top_p
    if settings.thinking_level:
        config.thinking_config = types.ThinkingConfig(
            thinking_level=settings.thinking_level, include_thoughts=True,
        )
    return config


class GeminiProvider(VisionProvider):
    """Inline bytes or Files API references, thought parts flagged by the SDK."""

    name = "gemini"
    supports_remote = True

    def __init__(self, api_key: str | None = None) -> None:
        self._api_key = api_key

    async def stream(
        self,
        video: VideoPart,
        prompt: str,
        settings: GenerationSettings,
        images: Sequence[AnalysisImage] = (),
    ) -> AsyncIterator[StreamFragment]:
        client = GeminiClient.get(self._api_key)
        try:
            response = await client.aio.models.generate_content_stream(
                model=settings.model,
                contents=build_contents(video, prompt, images),
                config=build_config(settings),
            )
            async for chunk in response:
                check_blocked(chunk)
                for fragment in decode_chunk(chunk):
                    yield fragment
        except AnimSpecError:
            raise
        except Exception as exc:
            raise classify_provider_error(exc) from exc

    async def generate(
        self,
        video: VideoPart,
        prompt: str,
        settings: GenerationSettings,
        images: Sequence[AnalysisImage] = (),
    ) -> str:
        client = GeminiClient.get(self._api_key)
        try:
            response = await client.aio.models.generate_content(
                model=settings.model,
                contents=build_contents(video, prompt, images),
                config=build_config(settings),
            )
        except Exception as exc:
            raise classify_provider_error(exc) from exc

        check_blocked(response)
        text = "".join(f.text for f in decode_chunk(response) if f.kind == "output")
        if not text.strip():
            raise ProviderRejectionError("Empty response from Gemini")
        return text

    async def upload(
        self,
        data: bytes,
        mime_type: str,
        *,
        poll_interval: float = 2.0,
        poll_timeout: float = 60.0,
    ) -> RemoteVideo:
        client = GeminiClient.get(self._api_key)
        try:
            uploaded = await client.aio.files.upload(
                file=io.BytesIO(data),
                config=types.UploadFileConfig(mime_type=mime_type),
            )
        except Exception as exc:
            raise classify_provider_error(exc) from exc
        logger.info(
            "Uploaded %d bytes → %s (state=%s)", len(data), uploaded.uri, _enum_name(uploaded.state)
        )
        video = RemoteVideo(uri=uploaded.uri, mime_type=mime_type, name=uploaded.name)

        async def _state() -> str:
            try:
                info = await with_retry(lambda: client.aio.files.get(name=uploaded.name))
            except Exception as exc:
                raise classify_provider_error(exc) from exc
            return _enum_name(info.state)

        try:
            await wait_until_ready(
                _state, uploaded.name, interval=poll_interval, timeout=poll_timeout,
            )
        except AnimSpecError:
            cleanup_queue().schedule(
                f"delete {uploaded.name}", lambda: self.delete_remote(video),
            )
            raise
        return video

    async def delete_remote(self, video: RemoteVideo) -> None:
        if not video.name:
            return
        client = GeminiClient.get(self._api_key)
        await client.aio.files.delete(name=video.name)
        logger.info("Deleted remote file %s", video.name)
