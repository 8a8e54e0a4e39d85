"""Output format catalog — labels, highlighting language, file extension, parse strategy.

Every OutputFormat must have an entry; a gap is a programming error and fails
at import time rather than at request time.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from .types import OutputFormat


class FormatSpec(BaseModel):
    """Static facts about one output format."""

    model_config = ConfigDict(frozen=True)

    label: str
    description: str
    best_for: str
    language: str
    extension: str
    full_document: bool


FORMAT_SPECS: dict[OutputFormat, FormatSpec] = {
    OutputFormat.CLONE_UI_ANIMATION: FormatSpec(
        label="Clone UI Animation",
        description="Agent instructions to recreate exact motion, timing, easing",
        best_for="Micro-interactions, transitions, complex sequences",
        language="markdown", extension="md", full_document=True,
    ),
    OutputFormat.CLONE_COMPONENT: FormatSpec(
        label="Clone UI Component",
        description="Agent instructions to build a matching React + Tailwind component",
        best_for="Buttons, cards, modals, navbars, menus, widgets",
        language="tsx", extension="tsx", full_document=False,
    ),
    OutputFormat.CLONE_LANDING_PAGE: FormatSpec(
        label="Clone Landing Page",
        description="Agent instructions to recreate the page layout and sections",
        best_for="Marketing pages, hero sections, pricing sections",
        language="tsx", extension="tsx", full_document=False,
    ),
    OutputFormat.COPY_DESIGN_STYLE: FormatSpec(
        label="Copy Design Style",
        description="Agent instructions to apply this design style to YOUR existing product",
        best_for="Redesigning your app, adopting a new aesthetic",
        language="markdown", extension="md", full_document=True,
    ),
    OutputFormat.EXTRACT_DESIGN_TOKENS: FormatSpec(
        label="Extract Style & Tokens",
        description="Reusable design tokens: palette, typography, radius, shadows, spacing",
        best_for="Design systems, theming, consistent UI",
        language="markdown", extension="md", full_document=True,
    ),
    OutputFormat.REMOTION_DEMO_TEMPLATE: FormatSpec(
        label="Reuse Product Demo Style (Remotion)",
        description="Agent instructions to create similar product demos with your assets",
        best_for="Product demo videos",
        language="markdown", extension="md", full_document=True,
    ),
    OutputFormat.QA_CLONE_CHECKLIST: FormatSpec(
        label="QA Checklist for Perfect Clone",
        description="Acceptance criteria to verify your clone matches the original",
        best_for="Hand-off to devs, pixel/motion perfection",
        language="markdown", extension="md", full_document=True,
    ),
    OutputFormat.ACCESSIBILITY_AUDIT: FormatSpec(
        label="Accessibility Audit",
        description="WCAG compliance, seizure risk assessment, prefers-reduced-motion fallbacks",
        best_for="Inclusive design, WCAG certification",
        language="markdown", extension="md", full_document=True,
    ),
    OutputFormat.INTERACTION_STATE_MACHINE: FormatSpec(
        label="Interaction State Machine",
        description="XState/useReducer state machine from observed UI states and transitions",
        best_for="Complex interactions, multi-state components",
        language="typescript", extension="ts", full_document=False,
    ),
    OutputFormat.PERFORMANCE_BUDGET: FormatSpec(
        label="Performance Budget",
        description="Layout thrash detection, GPU layer analysis, 60fps optimization",
        best_for="Performance audits, mobile optimization",
        language="markdown", extension="md", full_document=True,
    ),
    OutputFormat.LOTTIE_RIVE_EXPORT: FormatSpec(
        label="Lottie / Rive Export",
        description="Lottie keyframe data and Rive state machine definitions",
        best_for="Motion graphics, micro-animations",
        language="json", extension="json", full_document=False,
    ),
    OutputFormat.STORYBOARD_BREAKDOWN: FormatSpec(
        label="Storyboard Breakdown",
        description="Frame-by-frame storyboard with annotated timing and states",
        best_for="Design handoff, animation documentation",
        language="markdown", extension="md", full_document=True,
    ),
    OutputFormat.TAILWIND_ANIMATE: FormatSpec(
        label="Tailwind Animate Config",
        description="Custom keyframes, animation utilities, and Tailwind config entries",
        best_for="Tailwind projects, utility-first animation",
        language="javascript", extension="js", full_document=False,
    ),
    OutputFormat.REACT_NATIVE_REANIMATED: FormatSpec(
        label="React Native (Reanimated)",
        description="Reanimated 3 with useAnimatedStyle, withSpring, gesture handler",
        best_for="Mobile apps, native performance",
        language="tsx", extension="tsx", full_document=False,
    ),
    OutputFormat.FIGMA_MOTION_SPEC: FormatSpec(
        label="Figma Motion Spec",
        description="Smart Animate properties, variant states, prototype interactions",
        best_for="Design systems, Figma prototypes",
        language="markdown", extension="md", full_document=True,
    ),
}

_unmapped = set(OutputFormat) - set(FORMAT_SPECS)
if _unmapped:
    raise RuntimeError(f"Output formats missing from FORMAT_SPECS: {sorted(f.value for f in _unmapped)}")


def language_for_format(fmt: OutputFormat) -> str:
    """Syntax-highlighting tag for the deliverable."""
    return FORMAT_SPECS[fmt].language


def extension_for_format(fmt: OutputFormat) -> str:
    """File extension used when the deliverable is downloaded."""
    return FORMAT_SPECS[fmt].extension


def is_full_document(fmt: OutputFormat) -> bool:
    return FORMAT_SPECS[fmt].full_document
