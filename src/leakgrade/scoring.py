"""Severity-weighted scoring engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from leakgrade.rules import Severity, count_severities

MAX_SCORE = 100

GRADE_ORDER: tuple[str, ...] = ("A", "B", "C", "D", "F")
PASSING_GRADES = frozenset({"A", "B", "C"})


@dataclass(frozen=True)
class Weighting:
    """Points deducted per finding of each severity."""

    critical: int
    warning: int
    info: int

    def penalty(self, severity: Severity | str) -> int:
        return getattr(self, Severity(severity).value)


# Env files, logs and pasted text
LIGHT = Weighting(critical=15, warning=5, info=0)
# Token/JWT analysis
STRICT = Weighting(critical=40, warning=15, info=5)

WEIGHTINGS: dict[str, Weighting] = {"light": LIGHT, "strict": STRICT}


@dataclass(frozen=True)
class GradeResult:
    score: int
    letter: str
    label: str

    @property
    def passed(self) -> bool:
        return self.letter in PASSING_GRADES

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "grade": self.letter,
            "label": self.label,
            "pass": self.passed,
        }


def grade(findings: Iterable, weighting: Weighting = LIGHT) -> GradeResult:
    """Score a finding set and assign a letter grade.

    Score starts at 100 and each finding deducts its severity's weight,
    floored at 0. Any object with a ``severity`` attribute is accepted.
    """
    counts = count_severities(findings)
    deduction = sum(
        weighting.penalty(sev) * count for sev, count in counts.items()
    )
    score = max(0, MAX_SCORE - deduction)
    letter, label = _assign_grade(score)
    return GradeResult(score=score, letter=letter, label=label)


def _assign_grade(score: int) -> tuple[str, str]:
    """Assign a letter grade and label based on score."""
    if score >= 90:
        return "A", "Excellent"
    elif score >= 75:
        return "B", "Good"
    elif score >= 60:
        return "C", "Fair"
    elif score >= 40:
        return "D", "Poor"
    else:
        return "F", "Critical"


def grade_rank(letter: str) -> int:
    """Position on the A<B<C<D<F scale; unknown letters rank worst."""
    try:
        return GRADE_ORDER.index(letter.upper())
    except ValueError:
        return len(GRADE_ORDER)


def grade_worse_than(actual: str, threshold: str) -> bool:
    return grade_rank(actual) > grade_rank(threshold)
