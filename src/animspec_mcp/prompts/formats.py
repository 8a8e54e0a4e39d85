"""Response-shape templates, one per output format.

The output parser depends on these shapes:

- Full-document formats open with an ``## Overview`` section whose first
  paragraph becomes the result overview; the whole response is the deliverable.
- Code-block formats open with an ``**Animation Overview:**`` line followed by
  one sentence, and put the deliverable in fenced code blocks tagged with the
  format's language. Prose outside the fences becomes the result notes.

Changing a heading or fence tag here means changing parsing.py with it.
"""

from __future__ import annotations

from ..types import OutputFormat

_CODE_BLOCK_OPENING = """\
Start your response with exactly these two lines:
**Animation Overview:**
[one sentence: what this is and what it does]"""

CLONE_UI_ANIMATION = """\
## OUTPUT FORMAT: Clone This Animation

A spec with every detail needed to recreate this animation exactly.

Required structure:

## Overview
[one sentence: what the animation does and where it is used]

## Trigger
[hover / click / scroll / load / focus -- give confidence if inferred]

## Elements
**[Element name]**
- Selector: `.suggested-class` or `[data-element]`
- Size: [W]px x [H]px
- Colors: background #XXXXXX, border #XXXXXX, text #XXXXXX
- Border radius: [X]px
- Shadow: `[exact box-shadow]`
[repeat for every animated element]

## Animation Sequence
**[Element name]**
```
Initial:  { opacity, transform, background }
Final:    { opacity, transform, background }
Duration: [X]ms
Delay:    [X]ms
Easing:   cubic-bezier(X, X, X, X) or spring(stiffness: X, damping: X)
```
[repeat for every element and every animated property]

## Stagger Pattern
[timing relationship between elements, e.g. "each card starts 80ms after the previous"]

## Micro-details
[the small touches: 2px lifts, 0.02 scale bumps, shadow fades]

## Implementation
```css
/* CSS, or GSAP / Framer Motion when spring physics are needed */
```

## The Details That Matter
- [ ] [specific detail to nail]
[6-10 items]"""

CLONE_COMPONENT = f"""\
## OUTPUT FORMAT: Clone This Component

A pixel-accurate React + Tailwind rebuild of the component in the video.

{_CODE_BLOCK_OPENING}

Then describe, briefly:
- Dimensions and layout: container size, padding, flex/grid, gaps, alignment
- Colors: every element/property pair with its hex or rgba value
- Typography: family, size / weight / line-height per text role, letter spacing
- Shape and depth: radius, border, exact box-shadow, backdrop blur
- States: default, hover, active, focus (ring color, offset, width), disabled,
  each with property changes and transition duration/easing

Then the deliverable:

```tsx
// one self-contained React + Tailwind component file
// no external UI libraries
// every state above implemented
// keyboard accessible with a visible focus style
```

Close with a short checklist of the subtle details that make it feel premium."""

CLONE_LANDING_PAGE = f"""\
## OUTPUT FORMAT: Clone This Landing Page

A responsive rebuild of the page layout and its sections.

{_CODE_BLOCK_OPENING}

Then describe, briefly:
- Each section in order: name, container width and columns, background,
  vertical padding, and its elements with key styles
- Design system: background, surface, text, accent and border colors;
  H1/H2/H3/body/small type scale; spacing scale; radii; exact shadows
- Responsive behavior below 768px, 768-1024px and above 1024px
- Entrance and scroll animations with duration, delay and easing

Then the deliverable:

```tsx
// complete page component
// responsive via Tailwind breakpoints
// placeholder content clearly marked
```

Close with a short checklist of details that matter."""

COPY_DESIGN_STYLE = """\
## OUTPUT FORMAT: Apply This Design Style

Capture the aesthetic of this UI so it can be applied to a different product.
This is not a clone; it is the style's DNA.

Required structure:

## Overview
[one sentence describing the style, e.g. "dark glassy SaaS with snappy micro-interactions"]

## What Makes This Style Distinctive
1. [key trait]
[5 traits]

## Color System
| Role | Value | How to use it |
|------|-------|---------------|
[background, surface, elevated surface, border (note opacity), text primary /
secondary / muted, accent, accent hover, success, warning, error]

## Typography
| Role | Size | Weight | Line height | Notes |
[H1, H2, H3, body, small, caption; family or a free alternative; letter spacing]

## Shape Language
[radius scale from chips to modals; border treatment]

## Depth & Elevation
[low / medium / high shadows as exact values; glass and blur settings]

## Motion & Animation
[micro, component and page durations; default cubic-bezier; hover, entrance,
exit and signature patterns]

## Implementation Kit
```javascript
// tailwind.config.js theme.extend with color, shadow and radius tokens
```
```css
/* :root custom properties */
```

## Style Transfer Checklist
- [ ] [concrete change to make in the target product]

## The Subtle Details
[5-8 touches most people miss]"""

EXTRACT_DESIGN_TOKENS = """\
## OUTPUT FORMAT: Design Tokens

A complete token system ready to paste into a codebase.

Required structure:

## Overview
[one sentence describing the aesthetic]

## Tokens

### Colors
| Token | Value | Usage |
[--color-bg, --color-surface, --color-surface-hover, --color-border,
--color-text, --color-text-secondary, --color-text-muted, --color-accent,
--color-accent-hover, and every other observed color]

### Typography
| Token | Value |
[--font-family, --font-size-xs .. --font-size-2xl, --font-weight-*, --line-height-*]

### Spacing
| Token | Value |
[--space-1 .. --space-8]

### Border Radius
| Token | Value |
[--radius-sm .. --radius-xl, --radius-full: 9999px]

### Shadows
| Token | Value |
[--shadow-sm, --shadow-md, --shadow-lg as exact values]

### Animation
| Token | Value |
[--duration-fast, --duration-normal, --duration-slow, --ease-default]

## CSS Variables
```css
:root { /* every token */ }
```

## JSON Tokens
```json
{"colors": {}, "typography": {}, "spacing": {}, "radii": {}, "shadows": {}}
```

## Tailwind Config
```javascript
module.exports = { theme: { extend: { /* tokens */ } } }
```"""

REMOTION_DEMO_TEMPLATE = """\
## OUTPUT FORMAT: Remotion Demo Template

A reusable template for producing demo videos in the same style.

Required structure:

## Overview
[one sentence: type of video, mood, duration, aspect ratio, fps]

## Scene Breakdown
| # | Scene | Start | Duration | What happens | Transition |
[every scene]

## Motion Language
[primary cubic-bezier; entrance and exit patterns with durations; stagger
interval; 3 signature moves]

## Visual Style
[background; headline, body and accent text colors and sizes; product frame
shadow, radius and border; recurring effects]

## Remotion Implementation
```
src/Root.tsx, src/scenes/*.tsx, src/components/*.tsx, src/lib/tokens.ts, src/lib/animations.ts
```
```tsx
// spring config, interpolate() pattern and <Sequence> timing for this style
```

## Assets Needed
- [ ] [asset with resolution]

## The Polish Details
[small touches that make the video feel professional]"""

QA_CLONE_CHECKLIST = """\
## OUTPUT FORMAT: QA Checklist

Acceptance criteria for confirming that a clone matches the original.

Required structure:

## Overview
[one sentence: what is being verified]

## Visual Checks
### Colors
- [ ] [role]: #XXXXXX
### Typography
- [ ] [role]: [size]px, weight [X], line-height [X]
### Spacing
- [ ] [container padding, gaps]
### Shape
- [ ] radius, exact shadow, border

## Animation Checks
### Timing
- [ ] total duration [X]ms (+/-50ms), delays, stagger
### Motion Quality
- [ ] easing feel, overshoot amount, settles without wobble
### States
- [ ] initial state, final state, no jumps between them

## Interaction Checks
- [ ] hover timing, click feedback, visible focus, keyboard navigation

## Responsive Checks
- [ ] below 640px, 640-1024px, above 1024px

## The Details That Matter
- [ ] [5-8 subtle polish items]

## Pass/Fail Criteria
PASS: colors within 2 hex steps, timing within 50ms, spacing within 2px, motion feel matches.
FAIL: any visibly wrong color, different motion feel, broken layout or broken interaction."""

ACCESSIBILITY_AUDIT = """\
## OUTPUT FORMAT: Accessibility Audit

An accessibility review of the motion and UI in the video.

Required structure:

## Overview
[one sentence: what was audited and the headline finding]

## Motion Safety
| Animation | Flashes per second | Area of screen | Seizure risk | Vestibular risk |
[every animation; flag anything above 3 flashes per second as a WCAG 2.3.1 failure]

## WCAG Findings
| Criterion | Status | Evidence | Fix |
[2.2.2 pause/stop/hide, 2.3.1, 2.3.3 animation from interactions, 1.4.3
contrast with measured hex pairs, 2.4.7 focus visible]

## Reduced Motion Fallbacks
```css
@media (prefers-reduced-motion: reduce) { /* per-animation replacement */ }
```

## Focus & Keyboard
[focus order, focus ring values, traps]

## Priority Fixes
1. [severity] [fix with exact values]"""

INTERACTION_STATE_MACHINE = f"""\
## OUTPUT FORMAT: Interaction State Machine

A state machine for the interaction, derived only from states visible in the video.

{_CODE_BLOCK_OPENING}

Then list, briefly:
- Every observed state with its visual properties (exact values)
- Every transition: source, event, target, duration and easing
- Guards and delayed transitions that are visible (timeouts, debounce)

Then the deliverable:

```typescript
// XState v5 createMachine() definition with states, events and delays
// followed by an equivalent useReducer implementation
// transition timings exported as constants
```"""

PERFORMANCE_BUDGET = """\
## OUTPUT FORMAT: Performance Budget

A rendering-cost analysis of the animations with a budget to hold them to 60fps.

Required structure:

## Overview
[one sentence: overall cost and the main risk]

## Property Cost Analysis
| Element | Animated property | Pipeline stage (composite / paint / layout) | Cost |
[every animated property; width, height, top, left and box-shadow are layout or paint]

## Layout Thrash Risks
[animations that force layout, and the transform/opacity replacement]

## GPU Layers
[elements that need will-change or their own layer; layers to avoid]

## Budget
| Metric | Budget |
[frame time 16.7ms, concurrent animations, layer count, main-thread work per frame]

## Optimized Implementation
```css
/* the same motion using compositor-only properties */
```

## Verification Steps
- [ ] [DevTools check to confirm the budget holds]"""

LOTTIE_RIVE_EXPORT = f"""\
## OUTPUT FORMAT: Lottie / Rive Export

Keyframe data for motion-graphics runtimes.

{_CODE_BLOCK_OPENING}

Then list, briefly:
- Composition size, frame rate and total frames
- Each layer with its animated properties and keyframe times in frames
- Easing per keyframe as bezier in/out tangents

Then the deliverables:

```json
// Lottie (bodymovin) JSON: v, fr, ip, op, w, h, layers with ks keyframes
```

```json
// Rive state machine description: inputs, states, transitions with durations
```"""

STORYBOARD_BREAKDOWN = """\
## OUTPUT FORMAT: Storyboard Breakdown

A frame-by-frame storyboard with annotated timing.

Required structure:

## Overview
[one sentence: what happens across the whole clip]

## Timeline
| Frame | Time | What is on screen | What changes | Easing |
[a row for every key moment, at least every state change]

## Key Frames
### [time] -- [name]
- Layout and positions (px)
- Colors and opacity
- Motion in progress, with direction and speed

## Choreography Notes
[which motion leads, which follows, overlap amounts]

## Handoff Notes
[what a designer or developer needs to reproduce each board]"""

TAILWIND_ANIMATE = f"""\
## OUTPUT FORMAT: Tailwind Animate Config

Custom keyframes and animation utilities for Tailwind CSS.

{_CODE_BLOCK_OPENING}

Then list, briefly:
- Each animation: name, keyframe stops with exact values, duration, easing, iteration
- How the utilities combine on each element (including delays for stagger)

Then the deliverables:

```javascript
// tailwind.config.js: theme.extend.keyframes and theme.extend.animation
// plus transitionTimingFunction entries for each cubic-bezier used
```

```html
<!-- markup showing the utility classes applied to each element -->
```"""

REACT_NATIVE_REANIMATED = f"""\
## OUTPUT FORMAT: React Native (Reanimated)

A mobile implementation using Reanimated 3.

{_CODE_BLOCK_OPENING}

Then list, briefly:
- Each animated value with from/to, duration or spring config
- Gesture handling (tap, pan, long press) if the video shows one
- Differences from the web version, if any

Then the deliverable:

```tsx
// single component file using useSharedValue, useAnimatedStyle,
// withTiming(Easing.bezier(...)) / withSpring({{ stiffness, damping, mass }})
// and react-native-gesture-handler where interactions are shown
```"""

FIGMA_MOTION_SPEC = """\
## OUTPUT FORMAT: Figma Motion Spec

A spec for recreating the motion as a Figma prototype.

Required structure:

## Overview
[one sentence: what the prototype shows]

## Variants
| Component | Variant | Properties (exact values) |
[every state as a component variant]

## Prototype Interactions
| From | Trigger | To | Animation | Easing | Duration |
[Smart Animate, dissolve, move in/out, with custom bezier or spring values]

## Smart Animate Notes
[layer naming that must match across frames; properties Smart Animate will tween]

## Spring Presets
[Figma spring settings: stiffness, damping, mass]

## Handoff
[what developers should read from the prototype and where values are estimates]"""

FORMAT_TEMPLATES: dict[OutputFormat, str] = {
    OutputFormat.CLONE_UI_ANIMATION: CLONE_UI_ANIMATION,
    OutputFormat.CLONE_COMPONENT: CLONE_COMPONENT,
    OutputFormat.CLONE_LANDING_PAGE: CLONE_LANDING_PAGE,
    OutputFormat.COPY_DESIGN_STYLE: COPY_DESIGN_STYLE,
    OutputFormat.EXTRACT_DESIGN_TOKENS: EXTRACT_DESIGN_TOKENS,
    OutputFormat.REMOTION_DEMO_TEMPLATE: REMOTION_DEMO_TEMPLATE,
    OutputFormat.QA_CLONE_CHECKLIST: QA_CLONE_CHECKLIST,
    OutputFormat.ACCESSIBILITY_AUDIT: ACCESSIBILITY_AUDIT,
    OutputFormat.INTERACTION_STATE_MACHINE: INTERACTION_STATE_MACHINE,
    OutputFormat.PERFORMANCE_BUDGET: PERFORMANCE_BUDGET,
    OutputFormat.LOTTIE_RIVE_EXPORT: LOTTIE_RIVE_EXPORT,
    OutputFormat.STORYBOARD_BREAKDOWN: STORYBOARD_BREAKDOWN,
    OutputFormat.TAILWIND_ANIMATE: TAILWIND_ANIMATE,
    OutputFormat.REACT_NATIVE_REANIMATED: REACT_NATIVE_REANIMATED,
    OutputFormat.FIGMA_MOTION_SPEC: FIGMA_MOTION_SPEC,
}
