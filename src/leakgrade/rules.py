"""Finding definitions, enums, and shared error types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# Hard ceiling on findings produced by a single scan.
MAX_FINDINGS = 500

# Matched text longer than this is shortened when rendered.
DISPLAY_LIMIT = 60


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Sort rank, most severe first."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK: dict[Severity, int] = {
    Severity.CRITICAL: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
}


class FindingKind(str, Enum):
    PATTERN = "pattern"
    ENTROPY = "entropy"
    COMMENTED = "commented"
    WEAK_PASSWORD = "weak_password"
    # Formatting problem whose span is the raw value
    FORMAT = "format"
    STRUCTURE = "structure"


class LeakGradeError(Exception):
    """Base error for input problems surfaced to callers."""


class InputError(LeakGradeError):
    """A source could not be read."""


class TokenError(LeakGradeError):
    """A token could not be decoded."""


class ConfigError(LeakGradeError):
    """The project configuration is invalid."""


@dataclass(frozen=True)
class Finding:
    line: int
    start_column: int
    end_column: int
    matched_text: str
    name: str
    severity: Severity
    description: str
    remediation: str
    kind: FindingKind

    def __post_init__(self) -> None:
        if self.line < 1:
            raise ValueError(f"line must be >= 1, got {self.line}")
        if self.start_column < 0 or self.end_column < self.start_column:
            raise ValueError(
                f"invalid column span {self.start_column}:{self.end_column}"
            )
        # Coerce plain strings so callers can pass "critical" etc.
        object.__setattr__(self, "severity", Severity(self.severity))
        object.__setattr__(self, "kind", FindingKind(self.kind))

    @property
    def dedup_key(self) -> tuple[int, int, str]:
        return (self.line, self.start_column, self.name)

    @property
    def display_text(self) -> str:
        if len(self.matched_text) > DISPLAY_LIMIT:
            return self.matched_text[: DISPLAY_LIMIT - 3] + "..."
        return self.matched_text

    @property
    def redactable(self) -> bool:
        return self.kind is not FindingKind.STRUCTURE

    def to_dict(self) -> dict:
        return {
            "line": self.line,
            "start_column": self.start_column,
            "end_column": self.end_column,
            "matched_text": self.display_text,
            "name": self.name,
            "severity": self.severity.value,
            "description": self.description,
            "remediation": self.remediation,
            "kind": self.kind.value,
        }


def sort_findings(findings: list[Finding]) -> list[Finding]:
    """Order findings most severe first, then by ascending line number."""
    return sorted(findings, key=lambda f: (f.severity.rank, f.line))


def count_severities(findings) -> dict[str, int]:
    """Count findings per severity; accepts anything with a ``severity``."""
    counts = {sev.value: 0 for sev in Severity}
    for f in findings:
        counts[Severity(f.severity).value] += 1
    return counts


@dataclass
class FindingCollector:
    """Accumulates findings for one scan, enforcing dedup and the cap."""

    limit: int = MAX_FINDINGS
    findings: list[Finding] = field(default_factory=list)
    _seen: set[tuple[int, int, str]] = field(default_factory=set)

    @property
    def full(self) -> bool:
        return len(self.findings) >= self.limit

    def add(self, finding: Finding) -> bool:
        """Record a finding. Returns False for duplicates or once full."""
        if self.full or finding.dedup_key in self._seen:
            return False
        self._seen.add(finding.dedup_key)
        self.findings.append(finding)
        return True
