"""Token inspector tests."""
import base64
import json

import pytest

from leakgrade.rules import Severity, TokenError
from leakgrade.tokens import (
    algorithm_info,
    analyze_jwt,
    base64url_decode,
    check_expiry,
    decode_jwt,
    format_timestamp,
    inspect_claims,
    security_audit,
)

NOW = 1_700_000_000


def _b64(obj) -> str:
    raw = json.dumps(obj).encode()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def _token(header, payload, signature="sig") -> str:
    return f"{_b64(header)}.{_b64(payload)}.{signature}"


GOOD_PAYLOAD = {
    "iss": "https://auth.example.com",
    "sub": "user-1",
    "aud": "api",
    "iat": NOW - 60,
    "exp": NOW + 3600,
}


class TestDecode:
    def test_base64url_without_padding(self):
        assert base64url_decode("e30") == "{}"

    def test_base64url_invalid_length(self):
        with pytest.raises(TokenError):
            base64url_decode("a")

    def test_decode(self):
        decoded = decode_jwt(_token({"alg": "RS256", "typ": "JWT"}, {"sub": "x"}))
        assert decoded.header == {"alg": "RS256", "typ": "JWT"}
        assert decoded.payload == {"sub": "x"}
        assert decoded.signature == "sig"

    def test_unsigned_token_allowed(self):
        decoded = decode_jwt(_token({"alg": "none"}, {}, signature=""))
        assert decoded.signature == ""

    @pytest.mark.parametrize("token", [
        "",
        "   ",
        "abc",
        "a.b",
        "a.b.c.d",
        ".e30.sig",
        "!!!.e30.sig",
        "e30.W10.sig",
        "e30.bm90IGpzb24.sig",
    ])
    def test_malformed(self, token):
        with pytest.raises(TokenError):
            decode_jwt(token)

    def test_non_string(self):
        with pytest.raises(TokenError):
            decode_jwt(None)


class TestExpiry:
    def test_valid(self):
        status = check_expiry({"exp": NOW + 100, "iat": NOW}, now=NOW)
        assert status.expired is False
        assert status.expires_in == 100
        assert status.issued_at == "2023-11-14 22:13:20 UTC"

    def test_expired(self):
        assert check_expiry({"exp": NOW - 1}, now=NOW).expired is True

    def test_not_yet_valid(self):
        assert check_expiry({"nbf": NOW + 10}, now=NOW).not_yet_valid is True

    def test_non_numeric_claims_ignored(self):
        status = check_expiry({"exp": "soon", "nbf": True}, now=NOW)
        assert status.expired is False
        assert status.expires_in is None
        assert status.not_yet_valid is False

    def test_format_timestamp_out_of_range(self):
        assert format_timestamp(10**20) is None
        assert format_timestamp(float("nan")) is None


class TestClaims:
    def test_split(self):
        standard, custom = inspect_claims({"iss": "me", "exp": NOW, "role": "admin"})
        assert [c["key"] for c in standard] == ["iss", "exp"]
        assert standard[1]["formatted_value"] == "2023-11-14 22:13:20 UTC"
        assert custom == [{"key": "role", "value": "admin"}]


class TestAlgorithmInfo:
    def test_known(self):
        assert algorithm_info("RS256")[0] == "strong"
        assert algorithm_info("HS256")[0] == "weak"

    def test_none(self):
        assert algorithm_info(None)[0] == "critical"
        assert algorithm_info("NONE")[0] == "critical"

    def test_unknown(self):
        assert algorithm_info("XY999")[0] == "unknown"
        assert algorithm_info(["RS256"])[0] == "unknown"


class TestSecurityAudit:
    def _ids(self, header, payload):
        return [i.id for i in security_audit(header, payload, now=NOW)]

    def test_clean(self):
        assert self._ids({"alg": "RS256"}, GOOD_PAYLOAD) == []

    def test_alg_none(self):
        issues = security_audit({"alg": "none"}, GOOD_PAYLOAD, now=NOW)
        assert [i.id for i in issues] == ["alg-none"]
        assert issues[0].severity is Severity.CRITICAL

    def test_missing_alg_is_unsigned(self):
        assert self._ids({}, GOOD_PAYLOAD) == ["alg-none"]

    def test_weak_alg(self):
        assert self._ids({"alg": "HS256"}, GOOD_PAYLOAD) == ["weak-alg"]

    def test_unknown_alg(self):
        assert self._ids({"alg": "XY999"}, GOOD_PAYLOAD) == ["unknown-alg"]
        assert self._ids({"alg": 5}, GOOD_PAYLOAD) == ["unknown-alg"]

    def test_missing_claims(self):
        assert self._ids({"alg": "ES256"}, {}) == ["no-exp", "no-aud", "no-iss"]

    def test_expired(self):
        payload = {**GOOD_PAYLOAD, "exp": NOW - 10}
        assert self._ids({"alg": "RS256"}, payload) == ["expired"]

    def test_long_lived(self):
        payload = {**GOOD_PAYLOAD, "iat": NOW, "exp": NOW + 7 * 86_400}
        issues = security_audit({"alg": "RS256"}, payload, now=NOW)
        assert [i.id for i in issues] == ["long-lived"]
        assert "168h" in issues[0].title

    def test_not_yet_valid(self):
        payload = {**GOOD_PAYLOAD, "nbf": NOW + 600}
        assert self._ids({"alg": "RS256"}, payload) == ["not-yet-valid"]


class TestAnalyzeJwt:
    def test_clean_token_grades_a(self):
        report = analyze_jwt(_token({"alg": "RS256"}, GOOD_PAYLOAD), now=NOW)
        assert report.grade.letter == "A"
        assert report.grade.score == 100

    def test_unsigned_token_fails_strict(self):
        report = analyze_jwt(_token({"alg": "none"}, {}), now=NOW)
        # 40 + 15 + 5 + 5
        assert report.grade.score == 35
        assert report.grade.letter == "F"

    def test_to_dict_is_json_serializable(self):
        report = analyze_jwt(_token({"alg": "HS256"}, GOOD_PAYLOAD), now=NOW)
        data = json.loads(json.dumps(report.to_dict()))
        assert data["grade"]["score"] == 85
        assert data["issues"][0]["id"] == "weak-alg"
        assert data["algorithm"]["strength"] == "weak"
