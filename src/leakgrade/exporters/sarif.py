"""SARIF 2.1.0 output, GitHub Code Scanning compatible."""

from __future__ import annotations

import re

from leakgrade import __version__
from leakgrade.redactor import mask
from leakgrade.rules import Finding

SARIF_SCHEMA = "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/main/sarif-2.1/schema/sarif-schema-2.1.0.json"

_SEVERITY_TO_SARIF = {
    "critical": "error",
    "warning": "warning",
    "info": "note",
}


def rule_id(name: str) -> str:
    """Stable rule id from a finding name: "AWS Access Key ID" -> "aws-access-key-id"."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "finding"


def findings_to_sarif(findings: list[Finding], uri: str = ".env") -> dict:
    """Convert findings to SARIF 2.1.0 format.

    Secrets never reach the report: messages carry the masked value only.
    """
    rules: list[dict] = []
    results: list[dict] = []
    seen_rules: set[str] = set()

    for f in findings:
        rid = rule_id(f.name)
        level = _SEVERITY_TO_SARIF.get(f.severity.value, "warning")

        if rid not in seen_rules:
            seen_rules.add(rid)
            rules.append({
                "id": rid,
                "name": f.name,
                "shortDescription": {"text": f.name},
                "help": {"text": f.remediation},
                "defaultConfiguration": {"level": level},
                "properties": {
                    "kind": f.kind.value,
                    "severity": f.severity.value,
                },
            })

        shown = f.matched_text if not f.redactable else mask(f.matched_text)
        results.append({
            "ruleId": rid,
            "level": level,
            "message": {"text": f"{f.description} ({shown})"},
            "locations": [
                {
                    "physicalLocation": {
                        "artifactLocation": {"uri": uri},
                        "region": {
                            "startLine": f.line,
                            "startColumn": f.start_column + 1,
                            "endColumn": f.end_column + 1,
                        },
                    }
                }
            ],
        })

    return {
        "$schema": SARIF_SCHEMA,
        "version": "2.1.0",
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": "LeakGrade",
                        "version": __version__,
                        "rules": rules,
                    }
                },
                "results": results,
            }
        ],
    }
