"""Turn raw model text into typed results.

Nothing here raises on odd model formatting: every extractor has a fallback,
and a missing verification report is a normal ``None``.
"""

from __future__ import annotations

import json
import logging
import math
import re

from .formats import is_full_document
from .models.analysis import AnalysisResult, Discrepancy, VerificationReport
from .types import OutputFormat

logger = logging.getLogger(__name__)

OVERVIEW_MAX_CHARS = 200

CODE_LANGUAGES = frozenset({
    "", "css", "scss", "html", "javascript", "js", "jsx",
    "typescript", "ts", "tsx", "json",
})
SEVERITIES = ("minor", "major", "critical")

_OVERVIEW_MARKER_RE = re.compile(r"\*\*Animation Overview:\*\*[ \t]*\n([^\n]+)", re.IGNORECASE)
_OVERVIEW_HEADING_RE = re.compile(
    r"^##[ \t]*Overview[ \t]*\n(.*?)(?=^##\s|\Z)", re.MULTILINE | re.DOTALL | re.IGNORECASE
)
_FENCE_RE = re.compile(r"```([\w+-]*)[^\n]*\n(.*?)```", re.DOTALL)


def _first_paragraph(text: str) -> str:
    for paragraph in re.split(r"\n\s*\n", text):
        if paragraph.strip():
            return paragraph.strip()
    return ""


def extract_overview(text: str) -> str:
    """One-line summary of the deliverable.

    Tries, in order: the ``**Animation Overview:**`` marker line, the first
    paragraph under an ``## Overview`` heading, and the document's first
    paragraph. The last two are truncated to OVERVIEW_MAX_CHARS.
    """
    match = _OVERVIEW_MARKER_RE.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()

    match = _OVERVIEW_HEADING_RE.search(text)
    if match:
        paragraph = _first_paragraph(match.group(1))
        if paragraph:
            return paragraph[:OVERVIEW_MAX_CHARS]

    return _first_paragraph(text)[:OVERVIEW_MAX_CHARS]


def extract_code_and_notes(text: str, format: OutputFormat) -> tuple[str, str | None]:
    """Split raw text into (code, notes) according to the format's shape.

    Full-document formats are their own deliverable. Code-block formats
    collect every fenced block with an allowed language tag, in document
    order; the remaining prose becomes notes. Without any such block the
    whole text is the code and there are no notes.
    """
    if is_full_document(format):
        return text, None

    blocks: list[str] = []
    spans: list[tuple[int, int]] = []
    for match in _FENCE_RE.finditer(text):
        if match.group(1).lower() not in CODE_LANGUAGES:
            continue
        spans.append(match.span())
        body = match.group(2).strip()
        if body:
            blocks.append(body)

    if not blocks:
        return text, None

    remaining: list[str] = []
    cursor = 0
    for start, end in spans:
        remaining.append(text[cursor:start])
        cursor = end
    remaining.append(text[cursor:])
    notes = "".join(remaining).strip()
    return "\n\n".join(blocks), notes or None


def parse_analysis_output(text: str, format: OutputFormat) -> AnalysisResult:
    """Derive the full AnalysisResult from one response."""
    code, notes = extract_code_and_notes(text, format)
    return AnalysisResult(
        overview=extract_overview(text),
        code=code,
        format=format,
        notes=notes,
        raw_analysis=text,
    )


# ── Verification report ──────────────────────────────────────────────────────


def _score(payload: object) -> float | None:
    if not isinstance(payload, dict):
        return None
    value = payload.get("overallScore")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


def _text(value: object) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _coerce_discrepancy(item: dict) -> Discrepancy:
    severity = _text(item.get("severity")).strip().lower()
    return Discrepancy(
        element=_text(item.get("element")),
        issue=_text(item.get("issue")),
        severity=severity if severity in SEVERITIES else "minor",
        suggested_fix=_text(item.get("suggestedFix")),
    )


def _coerce_report(payload: dict, score: float) -> VerificationReport:
    raw_discrepancies = payload.get("discrepancies")
    raw_corrections = payload.get("corrections")
    summary = payload.get("summary")
    return VerificationReport(
        overall_score=max(0, min(100, round(score))),
        discrepancies=[
            _coerce_discrepancy(item)
            for item in (raw_discrepancies if isinstance(raw_discrepancies, list) else [])
            if isinstance(item, dict)
        ],
        corrections=[
            _text(item)
            for item in (raw_corrections if isinstance(raw_corrections, list) else [])
            if item is not None
        ],
        summary=_text(summary) if summary is not None else None,
    )


def _json_objects(text: str) -> list[object]:
    """Every ``{...}`` span that decodes as JSON, left to right.

    A brace that does not open valid JSON is skipped, so stray braces in
    prose never hide a later object.
    """
    decoder = json.JSONDecoder()
    objects: list[object] = []
    index = text.find("{")
    while index != -1:
        try:
            payload, end = decoder.raw_decode(text, index)
        except json.JSONDecodeError:
            index = text.find("{", index + 1)
            continue
        objects.append(payload)
        index = text.find("{", end)
    return objects


def _report_from(payload: object) -> VerificationReport | None:
    score = _score(payload)
    if score is None:
        return None
    return _coerce_report(payload, score)


def _try_report(candidate: str) -> VerificationReport | None:
    try:
        payload = json.loads(candidate)
    except (json.JSONDecodeError, ValueError):
        return None
    return _report_from(payload)


def extract_verification_report(text: str) -> VerificationReport | None:
    """Find the self-verification JSON in a pass's output.

    Fenced blocks are scanned last to first for JSON carrying a numeric
    ``overallScore``; failing that, every brace-delimited span that decodes
    as JSON is tried the same way, last first. Returns None when nothing qualifies.
    """
    for match in reversed(list(_FENCE_RE.finditer(text))):
        report = _try_report(match.group(2))
        if report is not None:
            return report

    for payload in reversed(_json_objects(text)):
        report = _report_from(payload)
        if report is not None:
            return report

    logger.warning("No verification report found in %d chars of output", len(text))
    return None


def parse_agentic_output(
    generated: str,
    verification: str,
    format: OutputFormat,
) -> AnalysisResult:
    """Result for a pipeline run: pass-3 deliverable plus the pass-4 report."""
    result = parse_analysis_output(generated, format)
    return result.model_copy(update={"verification": extract_verification_report(verification)})
