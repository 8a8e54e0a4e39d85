"""Provider-agnostic vision model interface.

Adapters translate their SDK's response shapes into StreamFragment values at
this boundary, so the analyzer and pipeline never inspect provider objects.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from typing import ClassVar

from ..config import GenerationSettings
from ..errors import InvalidInputError, ProviderRejectionError
from ..models.analysis import AnalysisImage
from ..models.events import StreamFragment
from ..models.video import RemoteVideo, VideoPart
from ..types import ProviderName


class VisionProvider(ABC):
    """One vision-model family: how to send a video and read the answer back."""

    name: ClassVar[ProviderName]
    supports_remote: ClassVar[bool] = False

    @abstractmethod
    def stream(
        self,
        video: VideoPart,
        prompt: str,
        settings: GenerationSettings,
        images: Sequence[AnalysisImage] = (),
    ) -> AsyncIterator[StreamFragment]:
        """Yield decoded fragments in provider order.

        Raises:
            AnimSpecError: Any SDK failure, already classified.
        """

    async def generate(
        self,
        video: VideoPart,
        prompt: str,
        settings: GenerationSettings,
        images: Sequence[AnalysisImage] = (),
    ) -> str:
        """Blocking call returning only answer text.

        Raises:
            ProviderRejectionError: If the answer is empty.
        """
        pieces = [
            fragment.text
            async for fragment in self.stream(video, prompt, settings, images)
            if fragment.kind == "output"
        ]
        text = "".join(pieces)
        if not text.strip():
            raise ProviderRejectionError(f"Empty response from {self.name}")
        return text

    async def upload(
        self,
        data: bytes,
        mime_type: str,
        *,
        poll_interval: float = 2.0,
        poll_timeout: float = 60.0,
    ) -> RemoteVideo:
        """Push bytes to the provider's file store and wait until usable."""
        raise InvalidInputError(
            f"{self.name} accepts inline video only; the file is too large to send inline"
        )

    async def delete_remote(self, video: RemoteVideo) -> None:
        """Remove a file created by :meth:`upload`."""
        return None
