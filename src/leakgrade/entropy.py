"""Shannon entropy secret detection."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from leakgrade.rules import Severity

MIN_TOKEN_LENGTH = 16
MAX_TOKEN_LENGTH = 500

# Strictly above: critical. Above SUSPICIOUS up to HIGH inclusive: warning.
HIGH_ENTROPY_THRESHOLD = 5.0
SUSPICIOUS_ENTROPY_THRESHOLD = 4.5

HIGH_ENTROPY_NAME = "High Entropy String"
SUSPICIOUS_ENTROPY_NAME = "Suspicious Entropy String"
ENTROPY_REMEDIATION = (
    "Verify this isn't a secret. High-entropy strings may be API keys or tokens."
)

# Shapes that are random-looking but benign
_SKIP_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE),
    re.compile(r"^[0-9a-f]{32}$", re.IGNORECASE),  # MD5
    re.compile(r"^[0-9a-f]{40}$", re.IGNORECASE),  # SHA-1
    re.compile(r"^[0-9a-f]{64}$", re.IGNORECASE),  # SHA-256
    re.compile(r"^(/|\./|\.\./|[a-zA-Z]:\\)"),  # file paths
    re.compile(r"^https?://[^:@]*$"),  # URLs without credentials
    re.compile(r"^[a-zA-Z][a-zA-Z0-9_.-]*\.[a-zA-Z]{2,}$"),  # domain names
)

# A value introduced by an assignment or an opening quote. The run is matched
# greedily once; the terminator is checked in code so a bad terminator never
# makes the engine retry shorter runs.
_CANDIDATE_RE = re.compile(r"""(?:[=:]\s*['"]?|['"])([A-Za-z0-9+/=_-]{%d,})""" % MIN_TOKEN_LENGTH)
_TERMINATORS = frozenset("'\"")


@dataclass(frozen=True)
class EntropyCandidate:
    text: str
    offset: int

    @property
    def end(self) -> int:
        return self.offset + len(self.text)


def shannon_entropy(data: str) -> float:
    """Calculate Shannon entropy (bits per character) of a string."""
    if not data:
        return 0.0
    freq: dict[str, int] = {}
    for ch in data:
        freq[ch] = freq.get(ch, 0) + 1
    length = len(data)
    return -sum(
        (count / length) * math.log2(count / length) for count in freq.values()
    )


def should_skip_entropy(token: str) -> bool:
    """True when a token has a well-known benign shape (UUID, hash, path, URL, domain)."""
    return any(p.search(token) for p in _SKIP_PATTERNS)


def find_entropy_candidates(line: str) -> list[EntropyCandidate]:
    """Extract quoted-or-assigned alphanumeric runs that may hold a secret.

    A run must be at least 16 characters, at most 500, and be followed by a
    quote, whitespace, or the end of the line.
    """
    candidates: list[EntropyCandidate] = []
    for m in _CANDIDATE_RE.finditer(line):
        end = m.end(1)
        if end < len(line):
            nxt = line[end]
            if nxt not in _TERMINATORS and not nxt.isspace():
                continue
        token = m.group(1)
        if len(token) > MAX_TOKEN_LENGTH:
            continue
        candidates.append(EntropyCandidate(text=token, offset=m.start(1)))
    return candidates


def classify_entropy(value: float) -> tuple[str, Severity] | None:
    """Map an entropy value to a finding name and severity, or None."""
    if value > HIGH_ENTROPY_THRESHOLD:
        return HIGH_ENTROPY_NAME, Severity.CRITICAL
    if value > SUSPICIOUS_ENTROPY_THRESHOLD:
        return SUSPICIOUS_ENTROPY_NAME, Severity.WARNING
    return None
