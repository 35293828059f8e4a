"""JWT decoding and security audit, fully offline."""

from __future__ import annotations

import base64
import binascii
import json
import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone

from leakgrade.rules import Severity, TokenError
from leakgrade.scoring import STRICT, GradeResult, grade

STANDARD_CLAIMS: dict[str, tuple[str, str]] = {
    "iss": ("Issuer", "Who issued this token"),
    "sub": ("Subject", "Who the token is about"),
    "aud": ("Audience", "Who the token is intended for"),
    "exp": ("Expiration", "When this token expires"),
    "nbf": ("Not Before", "Token is not valid before this time"),
    "iat": ("Issued At", "When this token was issued"),
    "jti": ("JWT ID", "Unique identifier for this token"),
}

_TIMESTAMP_CLAIMS = frozenset({"exp", "iat", "nbf"})

# alg -> (strength, label)
ALGORITHMS: dict[str, tuple[str, str]] = {
    "none": ("critical", "No signature - anyone can forge this token"),
    "HS256": ("weak", "HMAC-SHA256 - acceptable, but asymmetric algorithms preferred"),
    "HS384": ("weak", "HMAC-SHA384 - acceptable, but asymmetric algorithms preferred"),
    "HS512": ("ok", "HMAC-SHA512 - acceptable symmetric algorithm"),
    "RS256": ("strong", "RSA-SHA256 - strong asymmetric algorithm"),
    "RS384": ("strong", "RSA-SHA384 - strong asymmetric algorithm"),
    "RS512": ("strong", "RSA-SHA512 - strong asymmetric algorithm"),
    "ES256": ("strong", "ECDSA-SHA256 - strong, compact asymmetric algorithm"),
    "ES384": ("strong", "ECDSA-SHA384 - strong asymmetric algorithm"),
    "ES512": ("strong", "ECDSA-SHA512 - strong asymmetric algorithm"),
    "PS256": ("strong", "RSASSA-PSS SHA256 - strong asymmetric algorithm"),
    "PS384": ("strong", "RSASSA-PSS SHA384 - strong asymmetric algorithm"),
    "PS512": ("strong", "RSASSA-PSS SHA512 - strong asymmetric algorithm"),
    "EdDSA": ("strong", "EdDSA - modern, strong asymmetric algorithm"),
}

LONG_LIVED_SECONDS = 86_400


@dataclass(frozen=True)
class TokenIssue:
    id: str
    severity: Severity
    title: str
    detail: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "severity": self.severity.value,
            "title": self.title,
            "detail": self.detail,
        }


@dataclass(frozen=True)
class DecodedToken:
    header: dict
    payload: dict
    signature: str


@dataclass(frozen=True)
class ExpiryStatus:
    expired: bool = False
    expires_in: int | None = None
    not_yet_valid: bool = False
    issued_at: str | None = None
    expires_at: str | None = None
    not_before: str | None = None


@dataclass
class TokenReport:
    token: DecodedToken
    expiry: ExpiryStatus
    standard_claims: list[dict]
    custom_claims: list[dict]
    issues: list[TokenIssue]
    grade: GradeResult
    algorithm: tuple[str, str]

    def to_dict(self) -> dict:
        return {
            "header": self.token.header,
            "payload": self.token.payload,
            "expiry": self.expiry.__dict__,
            "standard_claims": self.standard_claims,
            "custom_claims": self.custom_claims,
            "issues": [i.to_dict() for i in self.issues],
            "grade": self.grade.to_dict(),
            "algorithm": {"strength": self.algorithm[0], "label": self.algorithm[1]},
        }


def base64url_decode(segment: str) -> str:
    """Decode a base64url segment (padding optional) to UTF-8 text."""
    if not isinstance(segment, str):
        raise TokenError("Invalid base64url input")
    pad = len(segment) % 4
    if pad == 1:
        raise TokenError("Invalid base64url string")
    padded = segment + "=" * ((4 - pad) % 4)
    try:
        return base64.urlsafe_b64decode(padded).decode("utf-8")
    except (binascii.Error, ValueError) as exc:
        raise TokenError("Invalid base64url encoding") from exc


def decode_jwt(token: str) -> DecodedToken:
    """Split and decode a JWT. The signature is not verified."""
    if not isinstance(token, str) or not token.strip():
        raise TokenError("Token must be a non-empty string")

    parts = token.strip().split(".")
    if len(parts) != 3:
        raise TokenError(f"Invalid JWT: expected 3 segments, got {len(parts)}")
    if not parts[0] or not parts[1]:
        raise TokenError("Invalid JWT: header and payload segments cannot be empty")

    header = _decode_segment(parts[0], "header")
    payload = _decode_segment(parts[1], "payload")
    return DecodedToken(header=header, payload=payload, signature=parts[2])


def _decode_segment(segment: str, label: str) -> dict:
    try:
        data = json.loads(base64url_decode(segment))
    except (TokenError, json.JSONDecodeError) as exc:
        raise TokenError(f"Invalid JWT {label}: {exc}") from exc
    if not isinstance(data, dict):
        raise TokenError(f"Invalid JWT {label}: expected a JSON object")
    return data


def _is_number(value) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and (isinstance(value, int) or math.isfinite(value))
    )


def format_timestamp(ts) -> str | None:
    if not _is_number(ts):
        return None
    try:
        return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
    except (OverflowError, OSError, ValueError):
        return None


def _now(now: int | None) -> int:
    return int(time.time()) if now is None else now


def check_expiry(payload: dict, now: int | None = None) -> ExpiryStatus:
    now = _now(now)
    exp = payload.get("exp")
    nbf = payload.get("nbf")
    return ExpiryStatus(
        expired=_is_number(exp) and now >= exp,
        expires_in=int(exp - now) if _is_number(exp) else None,
        not_yet_valid=_is_number(nbf) and now < nbf,
        issued_at=format_timestamp(payload.get("iat")),
        expires_at=format_timestamp(exp),
        not_before=format_timestamp(nbf),
    )


def inspect_claims(payload: dict) -> tuple[list[dict], list[dict]]:
    """Split claims into registered (with descriptions) and custom ones."""
    standard: list[dict] = []
    custom: list[dict] = []
    for key, value in payload.items():
        if key in STANDARD_CLAIMS:
            name, desc = STANDARD_CLAIMS[key]
            entry = {"key": key, "value": value, "name": name, "desc": desc}
            if key in _TIMESTAMP_CLAIMS and _is_number(value):
                entry["formatted_value"] = format_timestamp(value)
            standard.append(entry)
        else:
            custom.append({"key": key, "value": value})
    return standard, custom


def algorithm_info(alg) -> tuple[str, str]:
    if not alg or str(alg).lower() == "none":
        return ALGORITHMS["none"]
    if isinstance(alg, str) and alg in ALGORITHMS:
        return ALGORITHMS[alg]
    return ("unknown", f"Unknown algorithm: {alg}")


def security_audit(header: dict, payload: dict, now: int | None = None) -> list[TokenIssue]:
    """Flag risky header and claim choices in a decoded token."""
    now = _now(now)
    issues: list[TokenIssue] = []
    alg = header.get("alg")
    exp = payload.get("exp")
    iat = payload.get("iat")
    nbf = payload.get("nbf")
    unsigned = not alg or str(alg).lower() == "none"

    if unsigned:
        issues.append(TokenIssue(
            "alg-none", Severity.CRITICAL, 'Algorithm set to "none"',
            "This token has no signature. Anyone can forge it. Never accept unsigned JWTs.",
        ))
    if alg in ("HS256", "HS384"):
        issues.append(TokenIssue(
            "weak-alg", Severity.WARNING, f"Weak algorithm: {alg}",
            "Symmetric HMAC algorithms are vulnerable if the secret is short or leaked. Prefer RS256/ES256.",
        ))
    if not unsigned and (not isinstance(alg, str) or alg not in ALGORITHMS):
        issues.append(TokenIssue(
            "unknown-alg", Severity.WARNING, f"Unknown algorithm: {alg}",
            "This algorithm is not in the standard JWT algorithm registry.",
        ))
    if "exp" not in payload:
        issues.append(TokenIssue(
            "no-exp", Severity.WARNING, "No expiration claim (exp)",
            "Tokens without expiration never expire. Always set an exp claim.",
        ))
    if _is_number(exp) and now >= exp:
        issues.append(TokenIssue(
            "expired", Severity.INFO, "Token is expired",
            f"Expired {format_timestamp(exp)}. This token should no longer be accepted.",
        ))
    if _is_number(exp) and _is_number(iat) and exp - iat > LONG_LIVED_SECONDS:
        hours = round((exp - iat) / 3600)
        issues.append(TokenIssue(
            "long-lived", Severity.WARNING, f"Long-lived token ({hours}h)",
            "Token lifetime exceeds 24 hours. Short-lived tokens with refresh are more secure.",
        ))
    if "aud" not in payload:
        issues.append(TokenIssue(
            "no-aud", Severity.INFO, "No audience claim (aud)",
            "Without an audience, this token could be replayed to unintended services.",
        ))
    if "iss" not in payload:
        issues.append(TokenIssue(
            "no-iss", Severity.INFO, "No issuer claim (iss)",
            "Without an issuer, the token origin cannot be verified.",
        ))
    if _is_number(nbf) and now < nbf:
        issues.append(TokenIssue(
            "not-yet-valid", Severity.INFO, "Token is not yet valid",
            f"Valid from {format_timestamp(nbf)}. This token cannot be used yet.",
        ))
    return issues


def analyze_jwt(token: str, now: int | None = None) -> TokenReport:
    """Decode a token, audit it, and grade it with the strict weighting."""
    decoded = decode_jwt(token)
    standard, custom = inspect_claims(decoded.payload)
    issues = security_audit(decoded.header, decoded.payload, now)
    return TokenReport(
        token=decoded,
        expiry=check_expiry(decoded.payload, now),
        standard_claims=standard,
        custom_claims=custom,
        issues=issues,
        grade=grade(issues, STRICT),
        algorithm=algorithm_info(decoded.header.get("alg")),
    )
