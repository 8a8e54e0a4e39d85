"""Four-pass agentic analysis.

Passes run strictly in order: decompose, deep motion analysis, code
generation, self-verification. Each pass re-sends the video with the
accumulated text of earlier passes, streams its own model call, and only
starts once the previous pass's full text is in hand. The first failure ends
the run with a single ``error`` event.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import aclosing

from .config import AnalysisSettings, PassSpec
from .errors import AnimSpecError, ProviderRejectionError
from .models.analysis import AnalysisConfig, AnalysisImage, VideoMetadata
from .models.events import PipelineEvent
from .models.video import VideoPart
from .prompts.agentic import (
    build_codegen_prompt,
    build_decomposition_prompt,
    build_motion_prompt,
    build_verification_prompt,
)
from .providers import VisionProvider, get_provider
from .types import PipelineEventType, ProviderName

logger = logging.getLogger(__name__)

DECOMPOSITION_PASS = 1
MOTION_PASS = 2
CODEGEN_PASS = 3
VERIFICATION_PASS = 4


class AgenticPipeline:
    """Drives the pass table in ``settings.passes`` for one request at a time."""

    def __init__(
        self,
        settings: AnalysisSettings,
        provider_factory: Callable[[ProviderName], VisionProvider] = get_provider,
    ) -> None:
        self.settings = settings
        self._provider_factory = provider_factory
        self.last_error: AnimSpecError | None = None

    def _prompt(
        self,
        number: int,
        outputs: dict[int, str],
        config: AnalysisConfig,
        metadata: VideoMetadata | None,
    ) -> str:
        limits = self.settings.context_limits
        if number == DECOMPOSITION_PASS:
            return build_decomposition_prompt(metadata)
        if number == MOTION_PASS:
            return build_motion_prompt(outputs[DECOMPOSITION_PASS], metadata, limits)
        if number == CODEGEN_PASS:
            return build_codegen_prompt(
                outputs[DECOMPOSITION_PASS], outputs[MOTION_PASS], config.format,
                limits, config.trigger,
            )
        if number == VERIFICATION_PASS:
            return build_verification_prompt(
                outputs[CODEGEN_PASS], outputs[DECOMPOSITION_PASS], limits,
            )
        raise KeyError(f"No prompt for pass {number}")

    def _event(
        self, type: PipelineEventType, spec: PassSpec, data: str | None = None
    ) -> PipelineEvent:
        return PipelineEvent(
            type=type,
            pass_number=spec.number,
            pass_name=spec.name,
            total_passes=len(self.settings.passes),
            data=data,
        )

    async def run(
        self,
        video: VideoPart,
        config: AnalysisConfig,
        metadata: VideoMetadata | None = None,
        images: Sequence[AnalysisImage] = (),
    ) -> AsyncIterator[PipelineEvent]:
        """Yield pass_start, thinking/chunk, pass_complete for each pass, in order.

        ``pass_complete`` carries the pass's full answer text. Closing the
        iterator early closes the in-flight provider stream.
        """
        provider = self._provider_factory(self.settings.profile(config.quality).provider)
        outputs: dict[int, str] = {}
        self.last_error = None

        for spec in self.settings.passes:
            yield self._event("pass_start", spec)
            generation = self.settings.pass_generation(spec.number, config.quality)
            prompt = self._prompt(spec.number, outputs, config, metadata)
            logger.info(
                "Pass %d/%d (%s) on %s", spec.number, len(self.settings.passes),
                spec.name, generation.model,
            )

            pieces: list[str] = []
            try:
                async with aclosing(provider.stream(video, prompt, generation, images)) as fragments:
                    async for fragment in fragments:
                        if fragment.kind == "thinking":
                            yield self._event("thinking", spec, fragment.text)
                        else:
                            pieces.append(fragment.text)
                            yield self._event("chunk", spec, fragment.text)
            except AnimSpecError as exc:
                logger.warning("Pass %d (%s) failed: %s", spec.number, spec.name, exc)
                self.last_error = exc
                yield self._event("error", spec, exc.message)
                return

            text = "".join(pieces)
            if not text.strip():
                self.last_error = ProviderRejectionError(
                    f"Empty response in pass {spec.number} ({spec.name})"
                )
                logger.warning("Pass %d (%s) returned no output", spec.number, spec.name)
                yield self._event("error", spec, self.last_error.message)
                return
            outputs[spec.number] = text
            yield self._event("pass_complete", spec, text)
