"""Static dictionary of known-bad default passwords."""

from __future__ import annotations

import re

WEAK_PASSWORDS: frozenset[str] = frozenset({
    "password", "password1", "password123", "passw0rd", "p@ssw0rd",
    "P@ssw0rd", "P@ssword1", "123456", "12345678", "123456789",
    "1234567890", "admin", "admin123", "root", "root123", "test",
    "test123", "changeme", "changeit", "default", "secret", "supersecret",
    "letmein", "letmein123", "welcome", "qwerty", "abc123", "monkey",
    "master", "dragon", "login", "princess", "football", "shadow",
    "sunshine", "trustno1", "iloveyou", "batman", "hello", "charlie",
    "donald", "hunter2",
})

_FOLDED: frozenset[str] = frozenset(p.casefold() for p in WEAK_PASSWORDS)

# Key names whose value is expected to be a credential
CREDENTIAL_KEY_RE = re.compile(r"password|passwd|pass|secret|key|token", re.IGNORECASE)

_EDGE_QUOTE_RE = re.compile(r"""^['"]|['"]$""")


def strip_quotes(value: str) -> str:
    """Drop one leading and one trailing quote character, if present."""
    return _EDGE_QUOTE_RE.sub("", value)


def is_credential_key(key: str) -> bool:
    return CREDENTIAL_KEY_RE.search(key) is not None


def is_weak_password(value: str) -> bool:
    """Case-insensitive dictionary lookup on the quote-stripped value."""
    return strip_quotes(value).casefold() in _FOLDED
