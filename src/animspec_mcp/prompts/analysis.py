"""Analysis prompt templates and the prompt builder.

Blocks are composed by build_analysis_prompt() in a fixed order:

1. METHODOLOGY -- what to extract and in which units.
2. TRIGGER_INFERENCE, or TRIGGER_STATEMENT when the caller named the trigger.
   Variables: {trigger}.
3. METADATA_BLOCK -- only when metadata is supplied.
   Variables: {duration}, {resolution}, {size}, {mime_type}, {name}.
4. ACCURACY_PROTOCOL.
5. The format template from prompts/formats.py.
6. GEMINI_GUIDANCE or KIMI_GUIDANCE -- only when a quality tier is given.

build_prompt_text() then appends USER_PROMPT and, when reference images are
attached, IMAGE_NOTES (variables: {descriptions}).
"""

from __future__ import annotations

from collections.abc import Sequence

from ..config import AnalysisSettings
from ..models.analysis import AnalysisImage, VideoMetadata
from ..types import OutputFormat, ProviderName, QualityLevel, TriggerContext, parse_format
from .formats import FORMAT_TEMPLATES

METHODOLOGY = """\
You are an animation analyst and UI/interaction designer. You study short \
screen recordings of user-interface motion and turn them into precise, \
implementable specifications. Capture every visible detail, including the \
subtle ones.

## ANALYSIS PROCESS

1. ELEMENTS -- every animated object, however small: appearance, size, \
initial state, final state. Include icons, decorative shapes and backgrounds.

2. VISUAL PROPERTIES (exact values only):
   - Colors as hex (#3B82F6) or rgba(); never named colors like "blue"
   - Gradients: type, angle, stops with positions
   - Typography: size, weight (400, 600...), letter spacing, line height, reveal effects
   - Borders: width, style, color, radius (and radius morphs, e.g. 4px -> 24px)
   - Shadows: offset-x, offset-y, blur, spread, color; note layered and inset shadows
   - Backgrounds: solid, gradient or image; backdrop blur; moving patterns

3. MOTION TYPES per element:
   - Translation with pixel distances
   - Rotation in degrees with axis and transform-origin
   - Scale from/to (1 -> 1.05)
   - Opacity from/to (0 -> 1)
   - Skew, perspective, clip-path and path morphs
   - Filters: blur, brightness, contrast, saturate, hue-rotate

4. SUBTLE MOTION -- do not miss: 2px hover lifts, 0.98 press depth, 1.02 \
scale bumps, breathing pulses, shimmer sweeps, ripples, skeleton pulses, \
focus-ring growth, error shakes, checkmark draw-on, number rolls.

5. TIMING:
   - Total duration, per-property timing, delays between elements
   - Stagger patterns and overlapping versus sequential properties
   - Durations in ms or s

6. SEQUENCE -- sequential or parallel phases, keyframes, looping (infinite, \
ping-pong, count) and what triggers what.

## EASING

Report easing as a named curve (ease-in, ease-out, ease-in-out, linear) or, \
preferably, explicit coefficients: cubic-bezier(0.4, 0, 0.2, 1). Motion that \
overshoots or oscillates is a spring: spring(stiffness: 300, damping: 24, \
mass: 1). Frame-by-frame motion is steps(N, jump-end).

## RULES

- Exact values: px, %, deg, ms, 0-1 opacity, numeric font weights
- Colors are always hex or rgba()
- Every animated property gets an easing
- State stagger timing when several elements move
- State whether and how the animation loops
- If a value is estimated, label it as an estimate"""

TRIGGER_INFERENCE = """\
## TRIGGER DETECTION

Infer the trigger from what is visible:

| Visual pattern | Inferred trigger |
|----------------|------------------|
| Cursor over element, element changes | hover or click |
| Page scrolls | scroll / scrollIntoView |
| Element appears after a delay | load / mount |
| Staggered children | stagger on parent |
| Focus indicator on a field | focus |
| Press feedback on a button | active / click |
| Modal or sheet opens | open state change |

If the trigger cannot be determined, write:
**Trigger:** unknown (recommend: provide trigger context)"""

TRIGGER_STATEMENT = """\
**Trigger (provided by the user):** the animation runs on "{trigger}". \
Account for it in the analysis and the output."""

METADATA_BLOCK = """\
## VIDEO METADATA (use for timing and scale)
- Duration: {duration}
- Resolution: {resolution}
- File size: {size}
- MIME type: {mime_type}
- File name: {name}"""

ACCURACY_PROTOCOL = """\
## CLONING ACCURACY PROTOCOL

1. Use one coordinate system (X right, Y down) and state the origin you assume.
2. Convert percentages of the timeline into seconds using the video duration.
3. Prefer pixels; anchor any percentage to the stated resolution.
4. Total duration must match the video duration, or the loop period if it loops.
5. Do not invent elements that are not visible.
6. Label every estimated value as an estimate."""

GEMINI_GUIDANCE = """\
## MODEL GUIDANCE (Gemini)
Your temporal and spatial understanding is strong; use it:
- Give motion timing in ms with per-phase breakdowns and stagger delays.
- Give easing as cubic-bezier() or spring(stiffness, damping, mass), never just "ease-in-out".
- Give exact pixel offsets, gaps, padding and breakpoints for layout.
- Give transform-origin and exact translate/scale/rotate values.
- For complex motion, describe the trajectory frame by frame."""

KIMI_GUIDANCE = """\
## MODEL GUIDANCE (Kimi K2.5)
Your strength is holistic visual reproduction and code generation:
- Produce complete, runnable code that visually matches the video.
- Aim for exact colors, shadows, typography and layout.
- Give best-estimate motion timings and mark them, e.g. "~300ms (estimated)".
- Favour the overall feel over frame-by-frame temporal decomposition.
- React components are a single self-contained file that works as-is."""

USER_PROMPT = """\
{description}

Be precise with values and timings. If you estimate, label it as an estimate."""

DEFAULT_USER_DESCRIPTION = "Analyze this video and produce the requested clone pack"

IMAGE_NOTES = """\
Additional reference images are attached:
{descriptions}
Use them to confirm micro-motions, spatial relationships, and timing details."""


def _format_size(size: int) -> str:
    return f"{size / (1024 * 1024):.2f} MB"


def render_metadata(metadata: VideoMetadata) -> str:
    """Render the metadata block; zero and empty values read as "unknown"."""
    return METADATA_BLOCK.format(
        duration=f"{metadata.duration:.3f}s" if metadata.duration else "unknown",
        resolution=(
            f"{metadata.width}x{metadata.height} px" if metadata.width and metadata.height else "unknown"
        ),
        size=_format_size(metadata.size) if metadata.size else "unknown",
        mime_type=metadata.mime_type or "unknown",
        name=metadata.name or "unknown",
    )


def model_guidance(provider: ProviderName) -> str:
    """Provider-specific closing guidance for the tier's model family."""
    if provider == "kimi":
        return KIMI_GUIDANCE
    return GEMINI_GUIDANCE


def build_analysis_prompt(
    format: OutputFormat | str,
    trigger: TriggerContext | None = None,
    metadata: VideoMetadata | None = None,
    quality: QualityLevel | None = None,
    settings: AnalysisSettings | None = None,
) -> str:
    """Compose the full instruction prompt. Pure and deterministic.

    The closing guidance follows the provider that ``settings`` maps
    ``quality`` to; without settings the built-in tables are used.

    Raises:
        InvalidInputError: If ``format`` is not a known output format.
    """
    format = parse_format(format)
    blocks = [METHODOLOGY]
    if trigger is not None:
        blocks.append(TRIGGER_STATEMENT.format(trigger=trigger.value))
    else:
        blocks.append(TRIGGER_INFERENCE)
    if metadata is not None:
        blocks.append(render_metadata(metadata))
    blocks.append(ACCURACY_PROTOCOL)
    blocks.append(FORMAT_TEMPLATES[format])
    if quality is not None:
        settings = settings or AnalysisSettings()
        blocks.append(model_guidance(settings.profile(quality).provider))
    return "\n\n".join(blocks)


def build_user_prompt(description: str = DEFAULT_USER_DESCRIPTION) -> str:
    return USER_PROMPT.format(description=description)


def build_prompt_text(
    analysis_prompt: str,
    images: Sequence[AnalysisImage] = (),
    description: str = DEFAULT_USER_DESCRIPTION,
) -> str:
    """Join the analysis prompt, the user prompt and any reference-image notes."""
    text = f"{analysis_prompt}\n\n{build_user_prompt(description)}"
    if not images:
        return text
    descriptions = "\n".join(
        image.description or f"Reference image {index}"
        for index, image in enumerate(images, start=1)
    )
    return f"{text}\n\n{IMAGE_NOTES.format(descriptions=descriptions)}"
