"""Closed vocabularies, boundary parsers, and tool parameter aliases."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal

from pydantic import Field

from .errors import InvalidInputError


class OutputFormat(str, Enum):
    """Deliverable shapes the analysis can be asked for."""

    CLONE_UI_ANIMATION = "clone_ui_animation"
    CLONE_COMPONENT = "clone_component"
    CLONE_LANDING_PAGE = "clone_landing_page"
    COPY_DESIGN_STYLE = "copy_design_style"
    EXTRACT_DESIGN_TOKENS = "extract_design_tokens"
    REMOTION_DEMO_TEMPLATE = "remotion_demo_template"
    QA_CLONE_CHECKLIST = "qa_clone_checklist"
    ACCESSIBILITY_AUDIT = "accessibility_audit"
    INTERACTION_STATE_MACHINE = "interaction_state_machine"
    PERFORMANCE_BUDGET = "performance_budget"
    LOTTIE_RIVE_EXPORT = "lottie_rive_export"
    STORYBOARD_BREAKDOWN = "storyboard_breakdown"
    TAILWIND_ANIMATE = "tailwind_animate"
    REACT_NATIVE_REANIMATED = "react_native_reanimated"
    FIGMA_MOTION_SPEC = "figma_motion_spec"


class QualityLevel(str, Enum):
    """Named configuration bundles trading cost against fidelity."""

    FAST = "fast"
    BALANCED = "balanced"
    PRECISE = "precise"
    KIMI = "kimi"


class TriggerContext(str, Enum):
    """What sets the animation off, when the caller knows it."""

    HOVER = "hover"
    CLICK = "click"
    SCROLL = "scroll"
    LOAD = "load"
    LOOP = "loop"
    FOCUS = "focus"


ProviderName = Literal["gemini", "kimi"]
Severity = Literal["minor", "major", "critical"]
FragmentKind = Literal["thinking", "output"]
PipelineEventType = Literal["pass_start", "pass_complete", "thinking", "chunk", "error"]

_UNSPECIFIED_TRIGGERS = {"", "unspecified", "none", "null"}


def _allowed(enum_cls: type[Enum]) -> str:
    return ", ".join(m.value for m in enum_cls)


def parse_format(value: str | OutputFormat | None) -> OutputFormat:
    """Resolve a caller-supplied format, rejecting anything outside the closed set."""
    if isinstance(value, OutputFormat):
        return value
    if not value:
        raise InvalidInputError("Missing required field: format")
    try:
        return OutputFormat(value.strip())
    except ValueError:
        raise InvalidInputError(
            f"Invalid format: {value}. Valid: {_allowed(OutputFormat)}"
        ) from None


def parse_quality(value: str | QualityLevel | None) -> QualityLevel:
    """Resolve a quality tier; absent means balanced."""
    if isinstance(value, QualityLevel):
        return value
    if not value:
        return QualityLevel.BALANCED
    try:
        return QualityLevel(value.strip().lower())
    except ValueError:
        raise InvalidInputError(
            f"Invalid quality: {value}. Valid: {_allowed(QualityLevel)}"
        ) from None


def parse_trigger(value: str | TriggerContext | None) -> TriggerContext | None:
    """Resolve a trigger; empty, None and "unspecified" all mean "infer it"."""
    if value is None or isinstance(value, TriggerContext):
        return value
    normalized = value.strip().lower()
    if normalized in _UNSPECIFIED_TRIGGERS:
        return None
    try:
        return TriggerContext(normalized)
    except ValueError:
        raise InvalidInputError(
            f"Invalid trigger: {value}. Valid: {_allowed(TriggerContext)}"
        ) from None


# ── Annotated aliases ────────────────────────────────────────────────────────

VideoFilePath = Annotated[str, Field(
    min_length=1,
    description="Path to a local video file (mp4, webm, mov — max 100 MB)",
)]
FormatParam = Annotated[str, Field(
    description="Output format, e.g. clone_ui_animation. Use list_formats for all 15 options.",
)]
QualityParam = Annotated[str, Field(
    description="Quality tier: fast, balanced, precise (Gemini) or kimi (Kimi K2.5)",
)]
TriggerParam = Annotated[str | None, Field(
    description="Animation trigger: hover, click, scroll, load, loop, focus. Omit to let the model infer it.",
)]
