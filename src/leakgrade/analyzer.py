"""Line-oriented checks for key=value (dotenv-style) text."""

from __future__ import annotations

import logging
import re

from leakgrade.passwords import is_credential_key, is_weak_password, strip_quotes
from leakgrade.patterns import first_match, iter_matches
from leakgrade.rules import (
    MAX_FINDINGS,
    Finding,
    FindingCollector,
    FindingKind,
    Severity,
)

logger = logging.getLogger(__name__)

COMMENT_MARKERS: tuple[str, ...] = ("#",)

_KEY_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_QUOTES = ("'", '"')


class _Line:
    """One physical line, with column offsets into the original text."""

    def __init__(self, number: int, raw: str) -> None:
        self.number = number
        self.raw = raw
        self.trimmed = raw.strip()
        self.lead = len(raw) - len(raw.lstrip())

    def finding(
        self,
        start: int,
        text: str,
        name: str,
        severity: Severity,
        description: str,
        remediation: str,
        kind: FindingKind = FindingKind.STRUCTURE,
    ) -> Finding:
        return Finding(
            line=self.number,
            start_column=start,
            end_column=start + len(text),
            matched_text=text,
            name=name,
            severity=severity,
            description=description,
            remediation=remediation,
            kind=kind,
        )


def _is_wrapped(value: str) -> bool:
    return len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]


def _has_open_quote(value: str) -> bool:
    return value[:1] in _QUOTES and value.count(value[0]) % 2 == 1


def _check_comment(ln: _Line) -> Finding | None:
    body_raw = ln.trimmed[1:]
    body = body_raw.strip()
    hit = first_match(body)
    if hit is None:
        return None
    pattern, match = hit
    offset = ln.lead + 1 + (len(body_raw) - len(body_raw.lstrip()))
    return ln.finding(
        offset + match.start,
        match.text,
        f"Commented-out {pattern.name}",
        Severity.WARNING,
        f"Commented line still contains a {pattern.name.lower()}. Remove it entirely.",
        "Delete commented-out secrets completely rather than just commenting them.",
        FindingKind.COMMENTED,
    )


def _check_assignment(
    ln: _Line, seen_keys: dict[str, int]
) -> list[Finding]:
    key_raw, _, value_raw = ln.trimmed.partition("=")
    key = key_raw.strip()
    value = value_raw.strip()
    key_col = ln.lead
    value_col = ln.lead + len(key_raw) + 1 + (len(value_raw) - len(value_raw.lstrip()))
    out: list[Finding] = []

    if not _KEY_RE.fullmatch(key):
        out.append(ln.finding(
            key_col, key, "Invalid key name", Severity.WARNING,
            f'"{key}" contains invalid characters.',
            "Use only A-Z, 0-9, and underscore. Start with a letter or underscore.",
        ))

    first_seen = seen_keys.get(key)
    if first_seen is not None:
        out.append(ln.finding(
            key_col, key, "Duplicate key", Severity.WARNING,
            f'"{key}" is defined on lines {first_seen} and {ln.number}.',
            "Remove the duplicate definition to avoid confusion.",
        ))
    else:
        seen_keys[key] = ln.number

    if not value:
        out.append(ln.finding(
            key_col, key, "Empty value", Severity.INFO,
            f'"{key}" has an empty value.',
            "Set a value or remove the variable if unused.",
        ))
        return out

    if " " in value and not _is_wrapped(value):
        out.append(ln.finding(
            value_col, value, "Unquoted value with spaces", Severity.WARNING,
            f'"{key}" contains spaces but is not quoted.',
            'Wrap the value in double quotes: KEY="value with spaces"',
            FindingKind.FORMAT,
        ))

    if _has_open_quote(value):
        out.append(ln.finding(
            value_col, value, "Mismatched quotes", Severity.WARNING,
            f'"{key}" opens a {value[0]} quote that is never closed.',
            "Close the quote or remove it.",
            FindingKind.FORMAT,
        ))

    if is_credential_key(key) and is_weak_password(value):
        out.append(ln.finding(
            value_col, value, "Weak/default password", Severity.CRITICAL,
            f'"{key}" uses a common weak password: "{strip_quotes(value).casefold()}".',
            "Use a strong, randomly generated password (32+ characters, mixed case, numbers, symbols).",
            FindingKind.WEAK_PASSWORD,
        ))

    for pattern, match in iter_matches(ln.trimmed):
        out.append(ln.finding(
            ln.lead + match.start, match.text, pattern.name, pattern.severity,
            pattern.description, pattern.remediation, FindingKind.PATTERN,
        ))
    return out


def scan_key_value(text: str, max_findings: int = MAX_FINDINGS) -> list[Finding]:
    """Analyze dotenv-style text line by line.

    Returns findings in document order. Empty or whitespace-only input
    yields an empty list.
    """
    if not text.strip():
        return []

    collector = FindingCollector(limit=max_findings)
    seen_keys: dict[str, int] = {}

    for number, raw in enumerate(text.split("\n"), 1):
        ln = _Line(number, raw)
        if not ln.trimmed:
            continue

        if ln.trimmed.startswith(COMMENT_MARKERS):
            found = _check_comment(ln)
            line_findings = [found] if found else []
        elif "=" not in ln.trimmed or ln.trimmed.startswith("="):
            continue
        else:
            line_findings = _check_assignment(ln, seen_keys)

        for f in line_findings:
            collector.add(f)
        if collector.full:
            logger.warning(
                "Key/value scan stopped at line %d: %d finding limit reached",
                number, max_findings,
            )
            break

    logger.debug("Key/value scan produced %d findings", len(collector.findings))
    return collector.findings
