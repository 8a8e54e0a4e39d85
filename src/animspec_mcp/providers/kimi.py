"""Kimi adapter -- Moonshot's OpenAI-compatible chat completions API."""

from __future__ import annotations

import base64
import logging
import os
from collections.abc import AsyncIterator, Sequence
from typing import Any

from openai import AsyncOpenAI

from ..config import GenerationSettings, get_config
from ..errors import AnimSpecError, InvalidInputError, ProviderRejectionError, classify_provider_error
from ..models.analysis import AnalysisImage
from ..models.events import StreamFragment
from ..models.video import InlineVideo, VideoPart
from .base import VisionProvider

logger = logging.getLogger(__name__)


class KimiClient:
    """Process-wide AsyncOpenAI pool keyed by (api key, base url)."""

    _clients: dict[tuple[str, str], AsyncOpenAI] = {}

    @classmethod
    def get(cls, api_key: str | None = None) -> AsyncOpenAI:
        cfg = get_config()
        key = api_key or cfg.moonshot_api_key or os.getenv("MOONSHOT_API_KEY", "")
        if not key:
            raise InvalidInputError("No Moonshot API key — set MOONSHOT_API_KEY")
        pool_key = (key, cfg.moonshot_base_url)
        if pool_key not in cls._clients:
            cls._clients[pool_key] = AsyncOpenAI(api_key=key, base_url=cfg.moonshot_base_url)
            logger.info("Created Kimi client (key …%s, %s)", key[-4:], cfg.moonshot_base_url)
        return cls._clients[pool_key]

    @classmethod
    async def close_all(cls) -> int:
        closed = 0
        for client in list(cls._clients.values()):
            try:
                await client.close()
                closed += 1
            except Exception as exc:
                logger.debug("Kimi client close failed: %s", exc)
        cls._clients.clear()
        return closed


def _data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def build_content(
    video: VideoPart, prompt: str, images: Sequence[AnalysisImage] = ()
) -> list[dict]:
    """Parts in order: prompt text, video data URI, reference images.

    Raises:
        InvalidInputError: For remote videos, which this API cannot reference.
    """
    if not isinstance(video, InlineVideo):
        raise InvalidInputError("Kimi accepts inline video only; remote file references are not supported")
    extension = video.mime_type.split("/")[-1] or "mp4"
    content: list[dict] = [
        {"type": "text", "text": prompt},
        {"type": "video_url", "video_url": {"url": _data_uri(video.data, f"video/{extension}")}},
    ]
    content.extend(
        {"type": "image_url", "image_url": {"url": _data_uri(img.data, img.mime_type)}}
        for img in images
    )
    return content


def decode_delta(chunk: Any) -> list[StreamFragment]:
    """Reasoning fields become thinking fragments; ``content`` becomes output."""
    choices = getattr(chunk, "choices", None) or []
    if not choices or choices[0].delta is None:
        return []
    delta = choices[0].delta
    fragments: list[StreamFragment] = []
    reasoning = getattr(delta, "reasoning_content", None) or getattr(delta, "reasoning", None)
    if reasoning:
        fragments.append(StreamFragment(kind="thinking", text=reasoning))
    if delta.content:
        fragments.append(StreamFragment(kind="output", text=delta.content))
    return fragments


def _request(settings: GenerationSettings, content: list[dict]) -> dict:
    request: dict = {
        "model": settings.model,
        "messages": [{"role": "user", "content": content}],
        "max_tokens": settings.max_output_tokens,
        "temperature": settings.temperature,
    }
    if settings.top_p is not None:
        request["top_p"] = settings.top_p
    return request


class KimiProvider(VisionProvider):
    """Inline-only; thinking arrives in ``reasoning_content`` deltas."""

    name = "kimi"
    supports_remote = False

    def __init__(self, api_key: str | None = None) -> None:
        self._api_key = api_key

    async def stream(
        self,
        video: VideoPart,
        prompt: str,
        settings: GenerationSettings,
        images: Sequence[AnalysisImage] = (),
    ) -> AsyncIterator[StreamFragment]:
        request = _request(settings, build_content(video, prompt, images))
        client = KimiClient.get(self._api_key)
        try:
            response = await client.chat.completions.create(**request, stream=True)
            async for chunk in response:
                for fragment in decode_delta(chunk):
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
        request = _request(settings, build_content(video, prompt, images))
        client = KimiClient.get(self._api_key)
        try:
            response = await client.chat.completions.create(**request)
        except Exception as exc:
            raise classify_provider_error(exc) from exc

        message = response.choices[0].message if response.choices else None
        text = (message.content if message else None) or ""
        if not text.strip():
            raise ProviderRejectionError("Empty response from Kimi")
        return text
