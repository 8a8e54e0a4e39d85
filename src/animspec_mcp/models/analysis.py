"""Analysis request and result models.

Field names are snake_case in Python and camelCase on the wire
(``model_dump(by_alias=True)``), matching what HTTP clients send and expect.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..types import (
    OutputFormat,
    QualityLevel,
    Severity,
    TriggerContext,
    parse_format,
    parse_quality,
    parse_trigger,
)

_WIRE = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VideoMetadata(BaseModel):
    """What the client knows about the clip. Zero means unknown."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    duration: float = Field(default=0.0, ge=0)
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)
    size: int = Field(default=0, ge=0)
    mime_type: str = ""
    name: str = ""


class AnalysisImage(BaseModel):
    """A supplementary still (usually a keyframe grid) attached next to the video."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str = "image/jpeg"
    description: str = ""


def describe_keyframe_grid(
    frame_count: int | None = None,
    columns: int | None = None,
    width: int | None = None,
    height: int | None = None,
) -> str:
    """Human-readable description spliced into the prompt for a keyframe grid image."""

    def _v(value: int | None) -> str:
        return str(value) if value is not None else "unknown"

    return (
        f"Keyframe grid ({_v(frame_count)} frames, {_v(columns)} columns, "
        f"{_v(width)}x{_v(height)})"
    )


class AnalysisConfig(BaseModel):
    """Format, tier and trigger for one request, validated at the boundary."""

    model_config = ConfigDict(frozen=True)

    format: OutputFormat
    quality: QualityLevel = QualityLevel.BALANCED
    trigger: TriggerContext | None = None

    @classmethod
    def parse(
        cls,
        format: str | OutputFormat | None,
        quality: str | QualityLevel | None = None,
        trigger: str | TriggerContext | None = None,
    ) -> AnalysisConfig:
        """Build from raw caller values, raising InvalidInputError on unknown ones."""
        return cls(
            format=parse_format(format),
            quality=parse_quality(quality),
            trigger=parse_trigger(trigger),
        )


class Discrepancy(BaseModel):
    """One mismatch the verification pass found between video and deliverable."""

    model_config = _WIRE

    element: str = ""
    issue: str = ""
    severity: Severity = "minor"
    suggested_fix: str = ""


class VerificationReport(BaseModel):
    """Pass-4 self-review: fidelity score plus concrete fixes."""

    model_config = _WIRE

    overall_score: int = Field(ge=0, le=100)
    discrepancies: list[Discrepancy] = Field(default_factory=list)
    corrections: list[str] = Field(default_factory=list)
    summary: str | None = None


class AnalysisResult(BaseModel):
    """Structured result derived from raw model text."""

    model_config = _WIRE

    overview: str
    code: str
    format: OutputFormat
    notes: str | None = None
    raw_analysis: str | None = None
    verification: VerificationReport | None = None
