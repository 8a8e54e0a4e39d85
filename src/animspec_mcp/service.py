"""Public analysis surface used by the MCP tools and HTTP routes.

Every entry point validates its inputs before any provider call, chooses the
video transport once, enforces the overall request timeout, and schedules
cleanup of any file it uploaded. Streaming entry points are plain functions
that validate eagerly and return an async iterator, so invalid input raises
at the call site rather than inside the stream.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import aclosing, asynccontextmanager
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .analyzer import SingleCallAnalyzer
from .cleanup import CleanupQueue, cleanup_queue
from .config import AnalysisSettings, default_settings
from .errors import AnalysisTimeoutError, AnimSpecError, InvalidInputError
from .models.analysis import AnalysisConfig, AnalysisImage, AnalysisResult, VideoMetadata
from .models.events import PipelineEvent
from .models.video import InlineVideo, RemoteVideo, VideoPart
from .parsing import parse_agentic_output, parse_analysis_output
from .pipeline import CODEGEN_PASS, VERIFICATION_PASS, AgenticPipeline
from .prompts.analysis import build_analysis_prompt, build_prompt_text
from .providers import VisionProvider, get_provider
from .transport import select_transport
from .types import OutputFormat, ProviderName, parse_format

logger = logging.getLogger(__name__)

T = TypeVar("T")
ProviderFactory = Callable[[ProviderName], VisionProvider]


class VideoInput(BaseModel):
    """The clip to analyze: raw bytes, or a URI the caller already uploaded."""

    model_config = ConfigDict(frozen=True)

    data: bytes | None = None
    remote_uri: str | None = None
    mime_type: str = "video/mp4"
    metadata: VideoMetadata | None = None
    images: list[AnalysisImage] = Field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.data) if self.data else 0


def _preflight(
    video: VideoInput,
    config: AnalysisConfig,
    settings: AnalysisSettings,
    provider_factory: ProviderFactory,
) -> VisionProvider:
    """Reject anything that cannot succeed, before a single provider call.

    Raises:
        InvalidInputError: Missing video, or a transport the tier's provider cannot use.
    """
    profile = settings.profile(config.quality)
    if not video.data and not video.remote_uri:
        raise InvalidInputError("Missing video data")
    provider = provider_factory(profile.provider)
    if provider.supports_remote:
        return provider
    if video.remote_uri:
        raise InvalidInputError(
            f"{config.quality.value} quality needs inline video data; remote file references are not supported"
        )
    if select_transport(video.size, settings.inline_limit_bytes) == "remote":
        limit_mb = settings.inline_limit_bytes / (1024 * 1024)
        raise InvalidInputError(
            f"{config.quality.value} quality accepts inline video only; files over {limit_mb:g} MB are not supported"
        )
    return provider


def _prompt_text(video: VideoInput, config: AnalysisConfig, settings: AnalysisSettings) -> str:
    prompt = build_analysis_prompt(config.format, config.trigger, video.metadata, config.quality, settings)
    return build_prompt_text(prompt, video.images)


@asynccontextmanager
async def _prepared_video(
    video: VideoInput,
    provider: VisionProvider,
    settings: AnalysisSettings,
    cleanup: CleanupQueue,
) -> AsyncIterator[VideoPart]:
    """Resolve the transport once; delete any file uploaded here when done."""
    if video.remote_uri:
        yield RemoteVideo(uri=video.remote_uri, mime_type=video.mime_type)
    elif select_transport(video.size, settings.inline_limit_bytes) == "inline":
        yield InlineVideo(data=video.data, mime_type=video.mime_type)
    else:
        logger.info("Video is %d bytes, uploading to the %s file store", video.size, provider.name)
        remote = await provider.upload(
            video.data,
            video.mime_type,
            poll_interval=settings.file_poll_interval,
            poll_timeout=settings.file_poll_timeout,
        )
        try:
            yield remote
        finally:
            cleanup.schedule(f"remote file {remote.name}", lambda: provider.delete_remote(remote))


async def _with_deadline(items: AsyncIterator[T], timeout: float) -> AsyncIterator[T]:
    """Re-yield ``items`` until exhausted or until ``timeout`` seconds have passed.

    The source is consumed by a separate task feeding a queue, so the source
    stream is never resumed from more than one task. Closing this iterator
    cancels that task.

    Raises:
        AnalysisTimeoutError: When the deadline passes before the source ends.
    """
    queue: asyncio.Queue = asyncio.Queue()
    done = object()

    async def _pump() -> None:
        try:
            async with aclosing(items) as source:
                async for item in source:
                    await queue.put((item, None))
        except Exception as exc:
            await queue.put((done, exc))
            return
        await queue.put((done, None))

    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    task = asyncio.create_task(_pump())
    try:
        while True:
            remaining = max(deadline - loop.time(), 0.0)
            try:
                item, error = await asyncio.wait_for(queue.get(), remaining)
            except asyncio.TimeoutError:
                raise AnalysisTimeoutError(f"Analysis exceeded {timeout:g}s") from None
            if item is done:
                if error is not None:
                    raise error
                return
            yield item
    finally:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)


def _resolve(
    settings: AnalysisSettings | None, cleanup: CleanupQueue | None
) -> tuple[AnalysisSettings, CleanupQueue]:
    return settings or default_settings(), cleanup or cleanup_queue()


# ── Single call ──────────────────────────────────────────────────────────────


async def analyze_once(
    video: VideoInput,
    config: AnalysisConfig,
    *,
    settings: AnalysisSettings | None = None,
    provider_factory: ProviderFactory = get_provider,
    cleanup: CleanupQueue | None = None,
) -> AnalysisResult:
    """One blocking model call, parsed into an AnalysisResult.

    Raises:
        InvalidInputError: Before any provider call, on bad input.
        TransportError / RateLimitError / ProviderRejectionError: From the provider.
        AnalysisTimeoutError: File readiness or the overall request timed out.
    """
    settings, cleanup = _resolve(settings, cleanup)
    provider = _preflight(video, config, settings, provider_factory)
    prompt = _prompt_text(video, config, settings)
    analyzer = SingleCallAnalyzer(settings, provider_factory)

    async def _run() -> str:
        async with _prepared_video(video, provider, settings, cleanup) as part:
            return await analyzer.analyze(part, prompt, config.quality, video.images)

    try:
        text = await asyncio.wait_for(_run(), settings.request_timeout)
    except AnimSpecError:
        raise
    except asyncio.TimeoutError:
        raise AnalysisTimeoutError(f"Analysis exceeded {settings.request_timeout:g}s") from None
    return parse_analysis_output(text, config.format)


def analyze_once_streaming(
    video: VideoInput,
    config: AnalysisConfig,
    *,
    settings: AnalysisSettings | None = None,
    provider_factory: ProviderFactory = get_provider,
    cleanup: CleanupQueue | None = None,
) -> AsyncIterator[str]:
    """Validate now, then stream answer text increments from one model call."""
    settings, cleanup = _resolve(settings, cleanup)
    provider = _preflight(video, config, settings, provider_factory)
    prompt = _prompt_text(video, config, settings)
    analyzer = SingleCallAnalyzer(settings, provider_factory)

    async def _deltas() -> AsyncIterator[str]:
        async with _prepared_video(video, provider, settings, cleanup) as part:
            async with aclosing(analyzer.stream(part, prompt, config.quality, video.images)) as deltas:
                async for delta in deltas:
                    yield delta

    return _with_deadline(_deltas(), settings.request_timeout)


# ── Agentic pipeline ─────────────────────────────────────────────────────────


class _PipelineRun:
    """One pipeline execution; remembers the error that ended it, if any."""

    def __init__(
        self,
        video: VideoInput,
        config: AnalysisConfig,
        settings: AnalysisSettings,
        provider_factory: ProviderFactory,
        cleanup: CleanupQueue,
    ) -> None:
        self.video = video
        self.config = config
        self.settings = settings
        self.cleanup = cleanup
        self.provider = _preflight(video, config, settings, provider_factory)
        self.pipeline = AgenticPipeline(settings, lambda _name: self.provider)
        self.error: AnimSpecError | None = None

    async def _events(self) -> AsyncIterator[PipelineEvent]:
        async with _prepared_video(self.video, self.provider, self.settings, self.cleanup) as part:
            run = self.pipeline.run(part, self.config, self.video.metadata, self.video.images)
            async with aclosing(run) as events:
                async for event in events:
                    yield event

    async def events(self) -> AsyncIterator[PipelineEvent]:
        passes = self.settings.passes
        last: PipelineEvent | None = None
        try:
            async with aclosing(_with_deadline(self._events(), self.settings.request_timeout)) as events:
                async for event in events:
                    last = event
                    if event.type == "error":
                        self.error = self.pipeline.last_error
                    yield event
        except AnimSpecError as exc:
            logger.warning("Pipeline aborted: %s", exc)
            self.error = exc
            yield PipelineEvent(
                type="error",
                pass_number=last.pass_number if last else passes[0].number,
                pass_name=last.pass_name if last else passes[0].name,
                total_passes=len(passes),
                data=exc.message,
            )


def run_agentic_pipeline(
    video: VideoInput,
    config: AnalysisConfig,
    *,
    settings: AnalysisSettings | None = None,
    provider_factory: ProviderFactory = get_provider,
    cleanup: CleanupQueue | None = None,
) -> AsyncIterator[PipelineEvent]:
    """Validate now, then stream the four-pass pipeline's events.

    Any failure after validation, including the overall timeout, arrives as a
    single terminal ``error`` event.
    """
    settings, cleanup = _resolve(settings, cleanup)
    return _PipelineRun(video, config, settings, provider_factory, cleanup).events()


async def analyze_agentic(
    video: VideoInput,
    config: AnalysisConfig,
    *,
    settings: AnalysisSettings | None = None,
    provider_factory: ProviderFactory = get_provider,
    cleanup: CleanupQueue | None = None,
) -> AnalysisResult:
    """Run the pipeline to completion and return the deliverable with its report.

    Raises:
        AnimSpecError: The error that ended the pipeline, if it did not finish.
    """
    settings, cleanup = _resolve(settings, cleanup)
    run = _PipelineRun(video, config, settings, provider_factory, cleanup)
    outputs: dict[int, str] = {}
    async with aclosing(run.events()) as events:
        async for event in events:
            if event.type == "pass_complete" and event.data is not None:
                outputs[event.pass_number] = event.data
            elif event.type == "error":
                raise run.error or AnimSpecError(event.data or "Pipeline failed")

    return parse_agentic_output(
        outputs[CODEGEN_PASS], outputs.get(VERIFICATION_PASS, ""), config.format,
    )


def parse_output(raw_text: str, format: str | OutputFormat) -> AnalysisResult:
    """Parse text collected elsewhere (e.g. from a finished stream)."""
    return parse_analysis_output(raw_text, parse_format(format))
