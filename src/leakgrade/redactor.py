"""Mask matched secrets while keeping line structure intact."""

from __future__ import annotations

import re
from collections import defaultdict
from typing import Iterable

from leakgrade.rules import Finding

REDACTION_MARKER = "****REDACTED****"

# Credential shapes whose vendor prefix is worth keeping visible
_KNOWN_PREFIX_RE = re.compile(
    r"^(AKIA|sk_live_|pk_live_|rk_live_|ghp_|gho_|ghu_|ghs_|sk-proj-|sk-ant-|"
    r"xoxb-|xoxp-|SG\.|npm_|glpat-|shpat_|shpss_|hf_|hvs\.|dop_v1_|re_|lin_api_)",
    re.IGNORECASE,
)


def prefix_length(matched: str) -> int:
    """How many leading characters of a secret stay visible."""
    if _KNOWN_PREFIX_RE.match(matched):
        underscore = matched.find("_", 3)
        return min(8, underscore + 1) if underscore != -1 else 4
    if matched.startswith("-----BEGIN"):
        return 0
    # Short values (weak passwords) must never survive whole.
    return min(4, len(matched) // 2)


def mask(matched: str) -> str:
    return matched[: prefix_length(matched)] + REDACTION_MARKER


def _locate(line: str, finding: Finding) -> int:
    start = finding.start_column
    if line[start:start + len(finding.matched_text)] == finding.matched_text:
        return start
    return line.find(finding.matched_text)


def redact(text: str, findings: Iterable[Finding]) -> str:
    """Return a copy of text with every located secret masked.

    Findings are applied right to left within a line so earlier columns stay
    valid. A finding whose text can no longer be found is skipped.
    """
    by_line: dict[int, list[Finding]] = defaultdict(list)
    for f in findings:
        if f.redactable and f.matched_text:
            by_line[f.line].append(f)
    if not by_line:
        return text

    lines = text.split("\n")
    for line_no, line_findings in by_line.items():
        idx = line_no - 1
        if idx >= len(lines):
            continue
        line = lines[idx]
        for f in sorted(line_findings, key=lambda f: f.start_column, reverse=True):
            pos = _locate(line, f)
            if pos == -1:
                continue
            line = line[:pos] + mask(f.matched_text) + line[pos + len(f.matched_text):]
        lines[idx] = line
    return "\n".join(lines)
