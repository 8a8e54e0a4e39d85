"""Agentic pipeline prompt templates -- four sequential passes over the same video.

1. SCENE_DECOMPOSITION -- scenes, element inventory, causal chains as strict JSON.
   Variables: {duration}, {resolution}.
2. MOTION_ANALYSIS -- per-element property specs.
   Variables: {decomposition}, {duration}, {resolution}.
3. CODE_GENERATION -- final deliverable in the requested format.
   Variables: {decomposition}, {motion_analysis}, {format_template}.
4. SELF_VERIFICATION -- fidelity score and discrepancies as strict JSON.
   Variables: {generated}, {decomposition}.

Prior-pass text is truncated by the caller to the ContextLimits caps before
being substituted.
"""

from __future__ import annotations

from ..config import ContextLimits
from ..models.analysis import VideoMetadata
from ..types import OutputFormat, TriggerContext, parse_format
from .analysis import TRIGGER_STATEMENT
from .formats import FORMAT_TEMPLATES

SCENE_DECOMPOSITION = """\
You are an animation decomposition agent specialising in spatial-temporal \
video understanding.

## TASK
Watch the video and split it into distinct animation scenes. Identify EVERY \
animated element, including micro-interactions, background shifts and \
decorative motion.

For each scene give:
1. Start and end timestamps (video duration: {duration}s)
2. Every animated element visible in the scene
3. A description focused on cause and effect, e.g. "button press expands the \
container, which cascades into a child stagger"

## OUTPUT FORMAT (strict JSON -- output ONLY this JSON block)
```json
{{
  "scenes": [
    {{
      "id": "scene_1",
      "name": "Hero entrance",
      "startTime": 0.0,
      "endTime": 1.2,
      "elements": ["headline", "subtitle", "cta_button"],
      "description": "Page load triggers a staggered fade-up of the hero content.",
      "causalChain": "page_load -> headline_fade_up -> subtitle_fade_up(+120ms) -> cta_scale_in(+200ms)"
    }}
  ],
  "elementInventory": [
    {{
      "name": "headline",
      "type": "text",
      "cssSelector": ".hero-headline, h1",
      "initialState": {{"opacity": "0", "transform": "translateY(20px)"}},
      "finalState": {{"opacity": "1", "transform": "translateY(0)"}},
      "sceneIds": ["scene_1"]
    }}
  ],
  "totalDuration": {duration},
  "resolution": "{resolution}",
  "animationComplexity": "moderate"
}}
```

## RULES
- List every element that moves, fades, scales or changes
- Timestamps precise to 0.1s
- Elements in several scenes list every scene id
- Include backgrounds, shadows and blur changes
- Use -> arrows in causalChain for temporal dependencies
- Output ONLY the JSON block, no prose"""

MOTION_ANALYSIS = """\
You are a motion analysis agent. You understand not only what moves but how \
and why each motion connects to the next.

## CONTEXT FROM PASS 1 (Scene Decomposition)
{decomposition}

## TASK
Re-watch the video and, for every scene and element above, extract precise \
motion specifications:
1. Timing curves as cubic-bezier coefficients, not names
2. Exact pixel, degree and opacity values
3. Transform origins
4. Stagger patterns and overlap timing
5. Cause-and-effect links between element animations

## OUTPUT FORMAT
For each scene:

### Scene: [name] ([startTime]s - [endTime]s)

**Causal Chain:** [temporal dependency chain]

**[Element name]** (`[cssSelector]`)
```
Property: transform (translateY)
From: 20px
To: 0px
Duration: 400ms
Delay: 0ms (relative to scene start)
Easing: cubic-bezier(0.16, 1, 0.3, 1)
Transform-origin: center center
```

**Stagger Pattern** (if any): base delay, direction, first-child delay

**Spatial Relationships:** e.g. "[A] starts when [B] reaches 80% of its translateY"

## RULES
- Exact values only (px, deg, ms, cubic-bezier); never "smooth" or "fast"
- Label estimated values with (est.)
- Colors in hex or rgba
- Give overshoot percentages for spring or bounce motion
- Video duration: {duration}s | Resolution: {resolution}
- One spec block per property change"""

CODE_GENERATION = """\
You are an animation code generation agent. Two earlier passes produced a \
detailed motion analysis; your job is the final implementation.

## CONTEXT FROM PREVIOUS ANALYSIS

### Pass 1 -- Scene Decomposition:
{decomposition}

### Pass 2 -- Deep Motion Analysis:
{motion_analysis}

## TASK
Generate the final deliverable using the EXACT values above. Do NOT \
re-estimate anything Pass 2 already pinned down: reuse its cubic-bezier \
curves, pixel values, durations and delays as given.

Follow this output format:

{format_template}

## RULES
- Use the exact values from the deep analysis; do not re-estimate or round
- Include every element from every scene
- Keep the temporal relationships: staggers, overlaps, causal order
- Easing as cubic-bezier values, not named easings
- The output is complete and self-contained; code runs as-is"""

SELF_VERIFICATION = """\
You are a QA verification agent. Re-watch the original video and compare it \
against the generated implementation.

## GENERATED IMPLEMENTATION (from Pass 3)
```
{generated}
```

## ORIGINAL SCENE DECOMPOSITION (from Pass 1)
{decomposition}

## TASK
Compare frame by frame and look for:
1. Missing animations -- elements that move in the video but not in the code
2. Timing mismatches -- durations, delays or staggers
3. Wrong easing -- different curve feel, overshoot present or absent
4. Incorrect values -- offsets, opacity, colors, sizes
5. Missing micro-interactions -- hover effects, shadows, blur transitions
6. Spatial errors -- direction, transform-origin, axis

## OUTPUT FORMAT (strict JSON -- output ONLY this JSON block)
```json
{{
  "overallScore": 85,
  "discrepancies": [
    {{
      "element": "cta_button",
      "issue": "Video shows a 1.02 scale on hover; the code has none",
      "severity": "minor",
      "suggestedFix": "Add transform: scale(1.02) with 200ms ease-out on hover"
    }}
  ],
  "corrections": [
    "Change headline translateY from 20px to 24px"
  ],
  "summary": "Main flow matches; two micro-interactions missing."
}}
```

## SCORING GUIDE
- 90-100: near-perfect, cosmetic differences only
- 75-89: good, minor timing or value adjustments
- 50-74: decent, some animations missing or clearly off
- below 50: major discrepancies, core animations missing

## RULES
- Severity: minor (polish), major (visible difference), critical (broken or missing core animation)
- Every fix gives exact values
- Output ONLY the JSON block, no prose"""


def _duration(metadata: VideoMetadata | None) -> str:
    return f"{metadata.duration:g}" if metadata and metadata.duration else "0"


def _resolution(metadata: VideoMetadata | None) -> str:
    if metadata is None or not (metadata.width and metadata.height):
        return "unknown"
    return f"{metadata.width}x{metadata.height}"


def build_decomposition_prompt(metadata: VideoMetadata | None = None) -> str:
    return SCENE_DECOMPOSITION.format(
        duration=_duration(metadata), resolution=_resolution(metadata),
    )


def build_motion_prompt(
    decomposition: str,
    metadata: VideoMetadata | None = None,
    limits: ContextLimits | None = None,
) -> str:
    limits = limits or ContextLimits()
    return MOTION_ANALYSIS.format(
        decomposition=decomposition[: limits.decomposition_for_motion],
        duration=_duration(metadata),
        resolution=_resolution(metadata),
    )


def build_codegen_prompt(
    decomposition: str,
    motion_analysis: str,
    format: OutputFormat | str,
    limits: ContextLimits | None = None,
    trigger: TriggerContext | None = None,
) -> str:
    """Pass 3 prompt; reuses the single-call format template verbatim.

    Raises:
        InvalidInputError: If ``format`` is not a known output format.
    """
    format = parse_format(format)
    limits = limits or ContextLimits()
    prompt = CODE_GENERATION.format(
        decomposition=decomposition[: limits.decomposition_for_codegen],
        motion_analysis=motion_analysis[: limits.motion_for_codegen],
        format_template=FORMAT_TEMPLATES[format],
    )
    if trigger is not None:
        prompt += "\n\n" + TRIGGER_STATEMENT.format(trigger=trigger.value)
    return prompt


def build_verification_prompt(
    generated: str,
    decomposition: str,
    limits: ContextLimits | None = None,
) -> str:
    limits = limits or ContextLimits()
    return SELF_VERIFICATION.format(
        generated=generated[: limits.code_for_verification],
        decomposition=decomposition[: limits.decomposition_for_verification],
    )
