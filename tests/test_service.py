"""Tests for the public analysis surface: validation, transport, timeouts, cleanup."""

from __future__ import annotations

import pytest

from animspec_mcp.errors import AnalysisTimeoutError, InvalidInputError, ProviderRejectionError, RateLimitError
from animspec_mcp.models.analysis import AnalysisConfig, AnalysisImage
from animspec_mcp.models.video import InlineVideo, RemoteVideo
from animspec_mcp.service import (
    VideoInput,
    analyze_agentic,
    analyze_once,
    analyze_once_streaming,
    parse_output,
    run_agentic_pipeline,
)
from animspec_mcp.types import OutputFormat

SMALL = VideoInput(data=b"x" * 100)
LARGE = VideoInput(data=b"x" * 2048)
CONFIG = AnalysisConfig.parse("tailwind_animate", "balanced")
KIMI = AnalysisConfig.parse("clone_component", "kimi")


def _factory(provider):
    return lambda name: provider


class TestPreflight:
    async def test_missing_video(self, settings, make_provider):
        provider = make_provider()
        with pytest.raises(InvalidInputError, match="Missing video data"):
            await analyze_once(VideoInput(), CONFIG, settings=settings, provider_factory=_factory(provider))
        assert provider.calls == []

    def test_streaming_validates_at_call_site(self, settings, make_provider):
        provider = make_provider()
        with pytest.raises(InvalidInputError):
            analyze_once_streaming(VideoInput(), CONFIG, settings=settings, provider_factory=_factory(provider))

    def test_pipeline_validates_at_call_site(self, settings, make_provider):
        provider = make_provider(supports_remote=False)
        with pytest.raises(InvalidInputError, match="remote file references"):
            run_agentic_pipeline(
                VideoInput(remote_uri="https://files/x"), KIMI,
                settings=settings, provider_factory=_factory(provider),
            )

    async def test_inline_only_provider_rejects_large_video(self, settings, make_provider):
        provider = make_provider(supports_remote=False)
        with pytest.raises(InvalidInputError, match="inline video only"):
            await analyze_once(LARGE, KIMI, settings=settings, provider_factory=_factory(provider))
        assert provider.uploads == []


class TestTransport:
    async def test_small_video_goes_inline(self, settings, make_provider):
        provider = make_provider(["**Animation Overview:**\nPulse.\n\n```js\nmodule.exports = {}\n```"])
        result = await analyze_once(SMALL, CONFIG, settings=settings, provider_factory=_factory(provider))

        assert isinstance(provider.calls[0].video, InlineVideo)
        assert result.overview == "Pulse."
        assert result.code == "module.exports = {}"
        assert provider.uploads == []

    async def test_threshold_size_goes_inline(self, settings, make_provider):
        provider = make_provider(["ok"])
        await analyze_once(
            VideoInput(data=b"x" * settings.inline_limit_bytes), CONFIG,
            settings=settings, provider_factory=_factory(provider),
        )
        assert isinstance(provider.calls[0].video, InlineVideo)

    async def test_large_video_uploaded_then_deleted(self, settings, make_provider, drain_cleanup):
        provider = make_provider(["ok"])
        await analyze_once(LARGE, CONFIG, settings=settings, provider_factory=_factory(provider))
        await drain_cleanup()

        assert len(provider.uploads) == 1
        assert isinstance(provider.calls[0].video, RemoteVideo)
        assert provider.deleted == ["files/abc"]

    async def test_uploaded_file_deleted_on_failure(self, settings, make_provider, drain_cleanup):
        provider = make_provider([ProviderRejectionError("blocked")])
        with pytest.raises(ProviderRejectionError):
            await analyze_once(LARGE, CONFIG, settings=settings, provider_factory=_factory(provider))
        await drain_cleanup()
        assert provider.deleted == ["files/abc"]

    async def test_caller_uri_is_never_deleted(self, settings, make_provider, drain_cleanup):
        provider = make_provider(["ok"])
        await analyze_once(
            VideoInput(remote_uri="https://files/mine", mime_type="video/webm"), CONFIG,
            settings=settings, provider_factory=_factory(provider),
        )
        await drain_cleanup()
        assert provider.calls[0].video.uri == "https://files/mine"
        assert provider.deleted == []

    async def test_images_and_metadata_reach_provider(self, settings, make_provider):
        provider = make_provider(["ok"])
        video = VideoInput(data=b"x", images=[AnalysisImage(data=b"img", description="Keyframe grid")])
        await analyze_once(video, CONFIG, settings=settings, provider_factory=_factory(provider))

        assert provider.calls[0].images[0].data == b"img"
        assert "Keyframe grid" in provider.calls[0].prompt


class TestTimeouts:
    async def test_blocking_call_times_out(self, settings, make_provider):
        quick = settings.model_copy(update={"request_timeout": 0.05})
        provider = make_provider([1.0, "late"])
        with pytest.raises(AnalysisTimeoutError, match="Analysis exceeded 0.05s"):
            await analyze_once(SMALL, CONFIG, settings=quick, provider_factory=_factory(provider))

    async def test_stream_times_out_after_partial_output(self, settings, make_provider):
        quick = settings.model_copy(update={"request_timeout": 0.1})
        provider = make_provider(["first", 1.0, "late"])
        deltas = []
        with pytest.raises(AnalysisTimeoutError):
            async for delta in analyze_once_streaming(SMALL, CONFIG, settings=quick, provider_factory=_factory(provider)):
                deltas.append(delta)
        assert deltas == ["first"]
        assert provider.closed_streams == 1

    async def test_pipeline_timeout_is_error_event(self, settings, make_provider):
        quick = settings.model_copy(update={"request_timeout": 0.1})
        provider = make_provider(["d"], [1.0, "m"])
        events = [
            e async for e in run_agentic_pipeline(SMALL, CONFIG, settings=quick, provider_factory=_factory(provider))
        ]
        assert events[-1].type == "error"
        assert events[-1].pass_number == 2
        assert "Analysis exceeded" in events[-1].data


class TestStreaming:
    async def test_yields_answer_text(self, settings, make_provider, thought):
        provider = make_provider([thought("x"), "a", "b"])
        deltas = [
            d async for d in analyze_once_streaming(SMALL, CONFIG, settings=settings, provider_factory=_factory(provider))
        ]
        assert deltas == ["a", "b"]


class TestAgentic:
    async def test_returns_deliverable_with_report(self, settings, make_provider):
        provider = make_provider(
            ["{}"], ["motion"], ["**Animation Overview:**\nSlide.\n\n```js\nx\n```"], ['{"overallScore": 77}'],
        )
        result = await analyze_agentic(SMALL, CONFIG, settings=settings, provider_factory=_factory(provider))

        assert result.overview == "Slide."
        assert result.code == "x"
        assert result.verification.overall_score == 77

    async def test_raises_the_error_that_ended_the_run(self, settings, make_provider):
        provider = make_provider(["{}"], [RateLimitError("429")])
        with pytest.raises(RateLimitError):
            await analyze_agentic(SMALL, CONFIG, settings=settings, provider_factory=_factory(provider))

    async def test_pipeline_upload_cleaned_up(self, settings, make_provider, drain_cleanup):
        provider = make_provider(["d"], ["m"], ["c"], ["v"])
        events = [
            e async for e in run_agentic_pipeline(LARGE, CONFIG, settings=settings, provider_factory=_factory(provider))
        ]
        await drain_cleanup()
        assert events[-1].type == "pass_complete"
        assert all(isinstance(c.video, RemoteVideo) for c in provider.calls)
        assert provider.deleted == ["files/abc"]

    async def test_upload_failure_is_error_event(self, settings, make_provider):
        provider = make_provider(upload_error=AnalysisTimeoutError("File files/abc not ready after 0.5s"))
        events = [
            e async for e in run_agentic_pipeline(LARGE, CONFIG, settings=settings, provider_factory=_factory(provider))
        ]
        assert [e.type for e in events] == ["error"]
        assert events[0].pass_number == 1
        assert events[0].data == "File files/abc not ready after 0.5s"


def test_parse_output_accepts_strings():
    result = parse_output("# Title\n\nBody", "qa_clone_checklist")
    assert result.format is OutputFormat.QA_CLONE_CHECKLIST
    assert result.overview == "# Title"


def test_parse_output_rejects_unknown_format():
    with pytest.raises(InvalidInputError):
        parse_output("text", "gif")
