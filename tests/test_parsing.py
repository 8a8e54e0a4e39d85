"""Tests for overview extraction, code-block aggregation and verification parsing."""

from __future__ import annotations

from animspec_mcp.parsing import (
    extract_code_and_notes,
    extract_overview,
    extract_verification_report,
    parse_agentic_output,
    parse_analysis_output,
)
from animspec_mcp.types import OutputFormat

THREE_BLOCKS = """Intro line.

```css
.card { transform: scale(1.02); }
```

Middle text.

```javascript
const delay = 120;
```

```
plain block
```

Outro."""


class TestExtractOverview:
    def test_marker_line(self):
        text = "**Animation Overview:**\nA card flips on hover.\nMore detail here."
        assert extract_overview(text) == "A card flips on hover."

    def test_marker_is_case_insensitive(self):
        assert extract_overview("**animation overview:**  \nFade in.") == "Fade in."

    def test_overview_heading_truncated(self):
        text = "# Spec\n\n## Overview\n" + "x" * 300 + "\n\n## Timing\nfast"
        assert extract_overview(text) == "x" * 200

    def test_heading_first_paragraph_only(self):
        text = "## Overview\n\nShort summary.\n\nSecond paragraph.\n\n## Details\n..."
        assert extract_overview(text) == "Short summary."

    def test_first_paragraph_fallback(self):
        text = "\n\nFirst line\nsecond line\n\nAnother paragraph"
        assert extract_overview(text) == "First line\nsecond line"

    def test_fallback_truncated(self):
        assert extract_overview("y" * 500) == "y" * 200


class TestExtractCodeAndNotes:
    def test_three_blocks_joined_in_order(self):
        code, notes = extract_code_and_notes(THREE_BLOCKS, OutputFormat.CLONE_COMPONENT)
        assert code == ".card { transform: scale(1.02); }\n\nconst delay = 120;\n\nplain block"
        assert notes is not None
        assert notes.startswith("Intro line.")
        assert notes.endswith("Outro.")
        assert "Middle text." in notes
        assert "```" not in notes

    def test_no_blocks_returns_whole_text(self):
        text = "Just prose, no fences."
        assert extract_code_and_notes(text, OutputFormat.TAILWIND_ANIMATE) == (text, None)

    def test_other_languages_ignored(self):
        text = "```python\nprint('x')\n```"
        assert extract_code_and_notes(text, OutputFormat.CLONE_COMPONENT) == (text, None)

    def test_only_code_means_no_notes(self):
        code, notes = extract_code_and_notes("```tsx\n<Card />\n```", OutputFormat.CLONE_COMPONENT)
        assert code == "<Card />"
        assert notes is None

    def test_info_string_after_language_tag(self):
        text = 'Intro\n```tsx title="Card.tsx"\nexport const Card = 1;\n```\nSome notes.\n```css\n.a{}\n```'
        code, notes = extract_code_and_notes(text, OutputFormat.CLONE_COMPONENT)
        assert code == "export const Card = 1;\n\n.a{}"
        assert notes == "Intro\n\nSome notes."

    def test_full_document_format_keeps_text(self):
        code, notes = extract_code_and_notes(THREE_BLOCKS, OutputFormat.CLONE_UI_ANIMATION)
        assert code == THREE_BLOCKS
        assert notes is None


class TestParseAnalysisOutput:
    def test_fields(self):
        text = "**Animation Overview:**\nButton ripple.\n\n```css\n.ripple {}\n```"
        result = parse_analysis_output(text, OutputFormat.TAILWIND_ANIMATE)
        assert result.overview == "Button ripple."
        assert result.code == ".ripple {}"
        assert result.format is OutputFormat.TAILWIND_ANIMATE
        assert result.raw_analysis == text
        assert result.verification is None

    def test_wire_aliases(self):
        result = parse_analysis_output("hello", OutputFormat.QA_CLONE_CHECKLIST)
        dumped = result.model_dump(by_alias=True)
        assert dumped["rawAnalysis"] == "hello"
        assert dumped["format"] == OutputFormat.QA_CLONE_CHECKLIST


class TestVerificationReport:
    def test_score_clamped_high_and_severity_coerced(self):
        text = (
            "Review below.\n```json\n"
            '{"overallScore": 142, "discrepancies": [{"element": "cta", "issue": "no bounce",'
            ' "severity": "catastrophic", "suggestedFix": "add spring"}], "corrections": ["x"]}'
            "\n```"
        )
        report = extract_verification_report(text)
        assert report is not None
        assert report.overall_score == 100
        assert report.discrepancies[0].severity == "minor"
        assert report.discrepancies[0].suggested_fix == "add spring"
        assert report.corrections == ["x"]

    def test_score_clamped_low(self):
        report = extract_verification_report('```json\n{"overallScore": -5}\n```')
        assert report.overall_score == 0
        assert report.discrepancies == []
        assert report.summary is None

    def test_malformed_json_returns_none(self):
        text = "```json\n{overallScore: 80,}\n```\n```\n{not json\n```"
        assert extract_verification_report(text) is None

    def test_last_valid_block_wins(self):
        text = (
            '```json\n{"overallScore": 40}\n```\n'
            '```json\n{"overallScore": 90, "summary": "good"}\n```'
        )
        report = extract_verification_report(text)
        assert report.overall_score == 90
        assert report.summary == "good"

    def test_skips_blocks_without_numeric_score(self):
        text = (
            '```json\n{"overallScore": 70}\n```\n'
            '```json\n{"overallScore": "high"}\n```\n'
            '```json\n{"overallScore": true}\n```'
        )
        assert extract_verification_report(text).overall_score == 70

    def test_unfenced_object_with_braces_in_strings(self):
        text = 'Result: {"overallScore": 72.6, "summary": "use {braces} carefully"} end'
        report = extract_verification_report(text)
        assert report.overall_score == 73
        assert report.summary == "use {braces} carefully"

    def test_stray_brace_in_prose_before_report(self):
        text = (
            "Checked the `.card {` rule first.\n"
            '{"overallScore": 80, "corrections": ["tighten stagger"]}'
        )
        report = extract_verification_report(text)
        assert report is not None
        assert report.overall_score == 80
        assert report.corrections == ["tighten stagger"]

    def test_wire_shape(self):
        report = extract_verification_report(
            '{"overallScore": 88, "discrepancies": [{"element": "a", "issue": "b",'
            ' "severity": "major", "suggestedFix": "c"}]}'
        )
        dumped = report.model_dump(by_alias=True)
        assert dumped["overallScore"] == 88
        assert dumped["discrepancies"][0]["suggestedFix"] == "c"


def test_parse_agentic_output_attaches_report():
    result = parse_agentic_output(
        "```tsx\n<Hero />\n```", '```json\n{"overallScore": 81}\n```', OutputFormat.CLONE_COMPONENT,
    )
    assert result.code == "<Hero />"
    assert result.verification.overall_score == 81


def test_parse_agentic_output_without_report():
    result = parse_agentic_output("# Doc", "no json here", OutputFormat.STORYBOARD_BREAKDOWN)
    assert result.verification is None
