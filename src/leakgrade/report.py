"""Markdown report generator for pull request comments."""

from __future__ import annotations

from pathlib import Path

from leakgrade.rules import Finding, Severity, count_severities
from leakgrade.scoring import GradeResult

_GRADE_EMOJI = {"A": "🟢", "B": "🟡", "C": "🟠", "D": "🔴", "F": "💀"}

_SEVERITY_LABEL = {
    Severity.CRITICAL: "🔴 Critical",
    Severity.WARNING: "🟡 Warning",
    Severity.INFO: "ℹ️ Info",
}


def _cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def generate_report(
    findings: list[Finding],
    grade_result: GradeResult,
    source: str,
    output_path: Path | None = None,
) -> str:
    """Render a findings summary as a markdown comment body."""
    counts = count_severities(findings)
    emoji = _GRADE_EMOJI.get(grade_result.letter, "❓")

    lines = [
        f"## {emoji} LeakGrade: Grade {grade_result.letter} ({grade_result.label})",
        "",
        f"**File:** `{source}`",
        f"**Score:** {grade_result.score}/100",
        f"**Findings:** {len(findings)} ({counts['critical']} critical, "
        f"{counts['warning']} warning, {counts['info']} info)",
        "",
    ]

    if findings:
        lines.extend([
            "### Findings",
            "",
            "| Severity | Line | Issue | Details |",
            "|----------|------|-------|---------|",
        ])
        for f in findings:
            lines.append(
                f"| {_SEVERITY_LABEL[f.severity]} | {f.line} | {_cell(f.name)} | "
                f"{_cell(f.description)} |"
            )
        lines.append("")
    else:
        lines.extend(["No issues found.", ""])

    lines.extend([
        "---",
        "<sub>Scanned offline by LeakGrade</sub>",
        "",
    ])

    report_text = "\n".join(lines)

    if output_path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(report_text, encoding="utf-8")

    return report_text
