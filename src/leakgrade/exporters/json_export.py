"""JSON export for scan results."""

from __future__ import annotations

import json

from leakgrade import __version__
from leakgrade.redactor import mask
from leakgrade.rules import Finding, count_severities
from leakgrade.scoring import GradeResult


def finding_to_dict(f: Finding) -> dict:
    """Finding as JSON, with the secret itself masked."""
    data = f.to_dict()
    if f.redactable:
        data["matched_text"] = mask(f.matched_text)
    return data


def findings_to_json(
    findings: list[Finding],
    grade_result: GradeResult,
    source: str = "stdin",
) -> dict:
    """Convert findings and their grade to a structured JSON dict."""
    return {
        "version": __version__,
        "source": source,
        "findings": [finding_to_dict(f) for f in findings],
        "summary": {
            **count_severities(findings),
            "total": len(findings),
        },
        "score": grade_result.score,
        "grade": grade_result.letter,
        "label": grade_result.label,
        "pass": grade_result.passed,
    }


def findings_to_json_string(
    findings: list[Finding],
    grade_result: GradeResult,
    source: str = "stdin",
) -> str:
    """Return formatted JSON string."""
    return json.dumps(findings_to_json(findings, grade_result, source), indent=2)
