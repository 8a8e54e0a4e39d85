"""Animation analysis tools — 3 tools on a FastMCP sub-server."""

from __future__ import annotations

import logging
from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..config import default_settings
from ..errors import make_tool_error
from ..formats import FORMAT_SPECS
from ..models.analysis import AnalysisConfig
from ..providers import get_provider
from ..retry import with_retry
from ..service import analyze_agentic, analyze_once
from ..tracing import tag_analysis, trace
from ..types import FormatParam, QualityParam, TriggerParam, VideoFilePath
from .video_file import load_video_input

logger = logging.getLogger(__name__)
analysis_server = FastMCP("analysis")


@analysis_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=True,
    )
)
@trace(name="analyze_video", span_type="TOOL")
async def analyze_video(
    file_path: VideoFilePath,
    format: FormatParam,
    quality: QualityParam = "balanced",
    trigger: TriggerParam = None,
    agentic: Annotated[bool, Field(
        description="Run the four-pass pipeline (decompose, motion, code, self-verify) "
        "instead of a single call. Slower, adds a verification report."
    )] = False,
    frame_grid_path: Annotated[str | None, Field(
        description="Optional keyframe grid image (png, jpg, webp) attached as a reference",
    )] = None,
) -> dict:
    """Turn a short UI-animation recording into an implementable spec or code.

    Args:
        file_path: Path to a local mp4, webm or mov clip (max 100 MB).
        format: One of the 15 output formats (see list_formats).
        quality: fast, balanced, precise or kimi (see list_models).
        trigger: What starts the animation; omitted means the model infers it.
        agentic: Use the multi-pass pipeline with self-verification.
        frame_grid_path: Optional keyframe grid image sent next to the video.

    Returns:
        Dict with overview, code, format, notes, rawAnalysis and, for the
        agentic path, a verification report. On failure a ToolError dict.
    """
    try:
        config = AnalysisConfig.parse(format, quality, trigger)
        tag_analysis(config.format.value, config.quality.value, agentic)
        video = await load_video_input(file_path, frame_grid_path)
        run = analyze_agentic if agentic else analyze_once
        result = await with_retry(lambda: run(video, config, provider_factory=get_provider))
        logger.info(
            "Analyzed %s as %s (%s%s)",
            file_path, config.format.value, config.quality.value, ", agentic" if agentic else "",
        )
        return result.model_dump(mode="json", by_alias=True)
    except Exception as exc:
        return make_tool_error(exc)


@analysis_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=False))
async def list_formats() -> dict:
    """List every output format with what it produces and what it suits best."""
    return {
        "formats": [
            {
                "id": fmt.value,
                "label": spec.label,
                "description": spec.description,
                "bestFor": spec.best_for,
                "language": spec.language,
                "extension": spec.extension,
            }
            for fmt, spec in FORMAT_SPECS.items()
        ]
    }


@analysis_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=False))
async def list_models() -> dict:
    """List the quality tiers and the models each one calls."""
    settings = default_settings()
    return {
        "qualities": [
            {
                "quality": quality.value,
                "label": profile.label,
                "provider": profile.provider,
                "model": profile.model,
                "lightModel": profile.light_model,
                "fallback": profile.fallback.value if profile.fallback else None,
            }
            for quality, profile in settings.quality_profiles.items()
        ],
        "default": "balanced",
    }
