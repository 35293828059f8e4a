"""Free-text secret scanner for logs, code, and pasted snippets."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from leakgrade.entropy import (
    ENTROPY_REMEDIATION,
    classify_entropy,
    find_entropy_candidates,
    shannon_entropy,
    should_skip_entropy,
)
from leakgrade.patterns import clip_line, iter_matches
from leakgrade.redactor import redact
from leakgrade.rules import (
    MAX_FINDINGS,
    Finding,
    FindingCollector,
    FindingKind,
    count_severities,
    sort_findings,
)
from leakgrade.scoring import LIGHT, GradeResult, Weighting, grade

logger = logging.getLogger(__name__)

# Characters of a pattern finding compared against an entropy token.
OVERLAP_PREFIX = 16


@dataclass(frozen=True)
class ScanResult:
    findings: list[Finding]
    counts: dict[str, int]
    grade: GradeResult
    redacted_text: str
    scan_time_ms: float
    capped: bool = False
    lines_scanned: int = 0

    def to_dict(self) -> dict:
        return {
            "findings": [f.to_dict() for f in self.findings],
            "counts": self.counts,
            "grade": self.grade.to_dict(),
            "capped": self.capped,
            "lines_scanned": self.lines_scanned,
            "scan_time_ms": self.scan_time_ms,
        }


def _scan_patterns(lines: list[str], collector: FindingCollector) -> None:
    for number, line in enumerate(lines, 1):
        for pattern, match in iter_matches(line):
            collector.add(Finding(
                line=number,
                start_column=match.start,
                end_column=match.end,
                matched_text=match.text,
                name=pattern.name,
                severity=pattern.severity,
                description=pattern.description,
                remediation=pattern.remediation,
                kind=FindingKind.PATTERN,
            ))
            if collector.full:
                return


def _covered_by_pattern(token: str, pattern_texts: list[str]) -> bool:
    # Prefix containment, not span overlap: a known approximation.
    return any(text[:OVERLAP_PREFIX] in token for text in pattern_texts)


def _scan_entropy(lines: list[str], collector: FindingCollector) -> None:
    pattern_texts: dict[int, list[str]] = {}
    for f in collector.findings:
        if f.kind is FindingKind.PATTERN:
            pattern_texts.setdefault(f.line, []).append(f.matched_text)

    for number, line in enumerate(lines, 1):
        for candidate in find_entropy_candidates(clip_line(line)):
            token = candidate.text
            if should_skip_entropy(token):
                continue
            if _covered_by_pattern(token, pattern_texts.get(number, [])):
                continue
            value = shannon_entropy(token)
            verdict = classify_entropy(value)
            if verdict is None:
                continue
            name, severity = verdict
            collector.add(Finding(
                line=number,
                start_column=candidate.offset,
                end_column=candidate.end,
                matched_text=token,
                name=name,
                severity=severity,
                description=f"Random-looking string ({value:.2f} bits/char).",
                remediation=ENTROPY_REMEDIATION,
                kind=FindingKind.ENTROPY,
            ))
            if collector.full:
                return


def scan_free_text(
    text: str,
    max_findings: int = MAX_FINDINGS,
    entropy: bool = True,
    weighting: Weighting = LIGHT,
) -> ScanResult | None:
    """Scan arbitrary text for secrets and credentials.

    Known credential shapes are matched first; the entropy fallback then
    flags unrecognized random-looking values. Returns None for empty or
    whitespace-only input.
    """
    if not text.strip():
        return None

    start = time.perf_counter()
    lines = text.split("\n")
    collector = FindingCollector(limit=max_findings)

    _scan_patterns(lines, collector)
    if entropy and not collector.full:
        _scan_entropy(lines, collector)

    findings = sort_findings(collector.findings)
    capped = collector.full
    if capped:
        logger.warning("Free-text scan capped at %d findings", max_findings)

    redacted = redact(text, findings)
    elapsed = round((time.perf_counter() - start) * 1000, 2)
    logger.debug(
        "Scanned %d lines in %.2f ms: %d findings", len(lines), elapsed, len(findings)
    )

    return ScanResult(
        findings=findings,
        counts=count_severities(findings),
        grade=grade(findings, weighting),
        redacted_text=redacted,
        scan_time_ms=elapsed,
        capped=capped,
        lines_scanned=len(lines),
    )
