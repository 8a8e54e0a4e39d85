"""Single-call analysis: one prompt, one model call, blocking or streamed."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Sequence

from .config import AnalysisSettings
from .errors import ProviderRejectionError, TransportError
from .models.analysis import AnalysisImage
from .models.video import VideoPart
from .providers import VisionProvider, get_provider
from .types import ProviderName, QualityLevel

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[ProviderName], VisionProvider]


class SingleCallAnalyzer:
    """Runs the fast path with model parameters looked up from the quality table."""

    def __init__(
        self,
        settings: AnalysisSettings,
        provider_factory: ProviderFactory = get_provider,
    ) -> None:
        self.settings = settings
        self._provider_factory = provider_factory

    def _provider(self, quality: QualityLevel) -> VisionProvider:
        return self._provider_factory(self.settings.profile(quality).provider)

    async def analyze(
        self,
        video: VideoPart,
        prompt: str,
        quality: QualityLevel,
        images: Sequence[AnalysisImage] = (),
    ) -> str:
        """Return the full answer text.

        A transport failure on a tier that declares a fallback is retried
        exactly once at the fallback tier; every other failure propagates.

        Raises:
            TransportError: Provider unreachable (after the one fallback, if any).
            ProviderRejectionError: Empty answer or safety refusal.
        """
        profile = self.settings.profile(quality)
        try:
            return await self._provider(quality).generate(
                video, prompt, self.settings.single_call_generation(quality), images,
            )
        except TransportError as exc:
            if profile.fallback is None:
                raise
            logger.warning(
                "%s tier failed (%s), retrying once on %s",
                quality.value, exc, profile.fallback.value,
            )
            return await self._provider(profile.fallback).generate(
                video, prompt, self.settings.single_call_generation(profile.fallback), images,
            )

    async def stream(
        self,
        video: VideoPart,
        prompt: str,
        quality: QualityLevel,
        images: Sequence[AnalysisImage] = (),
    ) -> AsyncIterator[str]:
        """Yield answer text increments; reasoning fragments are dropped.

        Raises:
            ProviderRejectionError: If the stream ends without any answer text.
        """
        provider = self._provider(quality)
        generation = self.settings.single_call_generation(quality)
        produced = False
        async for fragment in provider.stream(video, prompt, generation, images):
            if fragment.kind != "output":
                logger.debug("Dropped %d chars of reasoning", len(fragment.text))
                continue
            if fragment.text.strip():
                produced = True
            yield fragment.text
        if not produced:
            raise ProviderRejectionError(f"Empty response from {provider.name}")
