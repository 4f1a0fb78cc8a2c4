"""Render findings as check-run output, console text, or JSON."""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from flowlint.models.finding import (
    Finding,
    Severity,
    count_findings_by_severity,
    sort_findings_by_severity,
)

if TYPE_CHECKING:
    from flowlint.service import AnalysisResult, AnalysisSummary

DEFAULT_CHECK_TITLE = "FlowLint findings"
MAX_RAW_DETAILS = 64000

ANNOTATION_LEVELS = {
    Severity.MUST: "failure",
    Severity.SHOULD: "warning",
    Severity.NIT: "notice",
}


def build_annotations(findings: Iterable[Finding]) -> list[dict[str, Any]]:
    """Check-run annotations, most severe first."""
    annotations = []
    for finding in sort_findings_by_severity(findings):
        line = finding.line or 1

        raw_details = finding.raw_details
        if finding.documentation_url:
            doc_line = f"See examples: {finding.documentation_url}"
            raw_details = f"{doc_line}\n\n{raw_details}" if raw_details else doc_line

        annotation: dict[str, Any] = {
            "path": finding.path,
            "start_line": line,
            "end_line": line,
            "annotation_level": ANNOTATION_LEVELS[finding.severity],
            "message": f"{finding.rule}: {finding.message}",
        }
        if raw_details:
            annotation["raw_details"] = raw_details[:MAX_RAW_DETAILS]
        annotations.append(annotation)
    return annotations


def summarize(findings: Sequence[Finding]) -> str:
    if not findings:
        return "No issues found."
    counts = count_findings_by_severity(findings)
    return f"{counts.must} must-fix, {counts.should} should-fix, {counts.nit} nit."


def infer_conclusion(findings: Sequence[Finding]) -> str:
    """``failure`` on any must, ``neutral`` on any should, else ``success``."""
    severities = {f.severity for f in findings}
    if Severity.MUST in severities:
        return "failure"
    if Severity.SHOULD in severities:
        return "neutral"
    return "success"


def build_check_output(
    findings: Sequence[Finding],
    title: str = DEFAULT_CHECK_TITLE,
    summary: str | None = None,
    conclusion: str | None = None,
) -> dict[str, Any]:
    return {
        "conclusion": conclusion or infer_conclusion(findings),
        "output": {
            "title": title,
            "summary": summary if summary is not None else summarize(findings),
        },
    }


# ---------------------------------------------------------------------------
# Console and JSON rendering
# ---------------------------------------------------------------------------


def _format_finding(finding: Finding) -> str:
    location = finding.path if finding.line is None else f"{finding.path}:{finding.line}"
    text = f"  {location}  {finding.severity.value.upper():<6} {finding.rule:<4} {finding.message}"
    if finding.documentation_url:
        text += f"\n      see {finding.documentation_url}"
    return text


def render_text(results: Sequence[AnalysisResult], summary: AnalysisSummary) -> str:
    """Human-readable report, one block per file."""
    lines: list[str] = []
    for result in results:
        if result.errors:
            lines.append(f"{result.file.path}: invalid workflow")
            for issue in result.errors:
                text = f"  {issue.path}: {issue.message}"
                if issue.suggestion:
                    text += f" ({issue.suggestion})"
                lines.append(text)
            continue
        if not result.findings:
            continue
        lines.append(result.file.path)
        lines.extend(_format_finding(f) for f in sort_findings_by_severity(result.findings))

    if lines:
        lines.append("")
    lines.append(
        f"{summary.total_files} file(s) checked: "
        f"{summary.must} must, {summary.should} should, {summary.nit} nit, "
        f"{summary.errors} invalid"
    )
    return "\n".join(lines)


def render_json(results: Sequence[AnalysisResult], summary: AnalysisSummary) -> str:
    payload = {
        "files": [result.to_dict() for result in results],
        "summary": summary.to_dict(),
    }
    return json.dumps(payload, indent=2)
