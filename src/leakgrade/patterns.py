"""Credential-shape pattern library.

The catalog is built once at import time and never mutated. It has two
tiers: provider-specific detectors, then the generic catch-all. Callers
always walk the specific tier before the fallback tier, so a precise,
higher-severity finding is produced before the generic one.

Every matcher must stay linear on untrusted input: provider prefixes are
anchored on a word boundary and open-ended runs that precede a literal are
bounded.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from leakgrade.rules import Severity

logger = logging.getLogger(__name__)

# Lines longer than this are cut before matching.
MAX_LINE_LENGTH = 100_000

# user:password of a URL. Userinfo never holds "/", "?" or "#".
_USERINFO = r"[^:\s/@]{1,256}:[^@\s/?#]{1,256}"


class Tier(str, Enum):
    SPECIFIC = "specific"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class PatternMatch:
    start: int
    end: int
    text: str


class RegexMatcher:
    """Matcher backed by a compiled regular expression.

    Capture group 1 holds the credential body when the surrounding syntax
    (``KEY=``, ``Authorization: Bearer``) is not part of the secret.
    """

    def __init__(self, pattern: str, flags: int = 0) -> None:
        self.regex = re.compile(pattern, flags)
        self.group = 1 if self.regex.groups else 0

    def __repr__(self) -> str:
        return f"RegexMatcher({self.regex.pattern!r})"

    def _to_match(self, m: re.Match[str]) -> PatternMatch:
        start, end = m.span(self.group)
        return PatternMatch(start=start, end=end, text=m.group(self.group))

    def test(self, line: str) -> bool:
        return self.regex.search(line) is not None

    def search(self, line: str) -> PatternMatch | None:
        m = self.regex.search(line)
        return self._to_match(m) if m else None

    def find_all(self, line: str) -> list[PatternMatch]:
        return [self._to_match(m) for m in self.regex.finditer(line)]


@dataclass(frozen=True)
class Pattern:
    name: str
    matcher: RegexMatcher
    severity: Severity
    description: str
    remediation: str
    tier: Tier = Tier.SPECIFIC

    def test(self, line: str) -> bool:
        return self.matcher.test(line)

    def search(self, line: str) -> PatternMatch | None:
        return self.matcher.search(line)

    def find_all(self, line: str) -> list[PatternMatch]:
        return self.matcher.find_all(line)


def _p(
    name: str,
    regex: str,
    severity: Severity,
    description: str,
    remediation: str,
    flags: int = 0,
) -> Pattern:
    return Pattern(
        name=name,
        matcher=RegexMatcher(regex, flags),
        severity=severity,
        description=description,
        remediation=remediation,
    )


CRIT = Severity.CRITICAL
WARN = Severity.WARNING
INFO = Severity.INFO

SPECIFIC_PATTERNS: tuple[Pattern, ...] = (
    # AWS
    _p("AWS Access Key ID", r"\b(AKIA[0-9A-Z]{16})\b", CRIT,
       "AWS access key detected.",
       "Rotate immediately in AWS IAM console. Use IAM roles or environment variables."),
    _p("AWS Secret Access Key",
       r"""(?:aws_secret_access_key|aws_secret|secret_access_key)\s*[=:]\s*['"]?([A-Za-z0-9/+=]{40})['"]?""",
       CRIT, "AWS secret key detected.",
       "Rotate in AWS IAM. Use IAM roles or AWS Secrets Manager.", re.IGNORECASE),

    # GitHub
    _p("GitHub Personal Access Token", r"\b(ghp_[0-9a-zA-Z]{36})\b", CRIT,
       "GitHub PAT detected.",
       "Revoke at GitHub Settings > Developer Settings > Personal Access Tokens."),
    _p("GitHub OAuth Token", r"\b(gho_[0-9a-zA-Z]{36})\b", CRIT,
       "GitHub OAuth token detected.",
       "Revoke at GitHub Settings > Applications."),
    _p("GitHub App Token", r"\b(gh[us]_[0-9a-zA-Z]{36})\b", CRIT,
       "GitHub App token detected.",
       "Rotate via your GitHub App settings."),
    _p("GitHub Fine-grained PAT", r"\b(github_pat_[0-9a-zA-Z_]{82})\b", CRIT,
       "GitHub fine-grained PAT detected.",
       "Revoke at GitHub Settings > Developer Settings."),

    # OpenAI
    _p("OpenAI API Key", r"\b(sk-[0-9a-zA-Z]{20}T3BlbkFJ[0-9a-zA-Z]{20})\b", CRIT,
       "OpenAI API key detected.",
       "Rotate at platform.openai.com/api-keys. Set usage limits."),
    _p("OpenAI API Key (new format)", r"\b(sk-proj-[0-9a-zA-Z_-]{40,})\b", CRIT,
       "OpenAI project API key detected.",
       "Rotate at platform.openai.com/api-keys."),

    # Stripe
    _p("Stripe Secret Key", r"\b(sk_live_[0-9a-zA-Z]{24,})\b", CRIT,
       "Stripe live secret key detected.",
       "Rotate in Stripe Dashboard > API Keys. Use restricted keys."),
    _p("Stripe Publishable Key", r"\b(pk_live_[0-9a-zA-Z]{24,})\b", WARN,
       "Stripe publishable key (safe for client-side, but keep out of repos).",
       "Publishable keys are client-safe but should still be in env vars."),
    _p("Stripe Restricted Key", r"\b(rk_live_[0-9a-zA-Z]{24,})\b", CRIT,
       "Stripe restricted key detected.",
       "Rotate in Stripe Dashboard > API Keys."),

    # Slack
    _p("Slack Bot Token", r"\b(xoxb-[0-9]{10,13}-[0-9]{10,13}-[0-9a-zA-Z]{24})\b", CRIT,
       "Slack bot token detected.",
       "Rotate at api.slack.com > Your Apps > OAuth & Permissions."),
    _p("Slack User Token", r"\b(xoxp-[0-9]{10,13}-[0-9]{10,13}-[0-9a-zA-Z]{24,})\b", CRIT,
       "Slack user token detected.",
       "Rotate at api.slack.com > Your Apps > OAuth & Permissions."),
    _p("Slack App Token", r"\b(xoxe\.xoxp-[0-9a-zA-Z-]+)\b", CRIT,
       "Slack app-level token detected.",
       "Rotate at api.slack.com > Your Apps."),
    _p("Slack Webhook URL",
       r"(hooks\.slack\.com/services/T[0-9A-Z]{8,}/B[0-9A-Z]{8,}/[0-9a-zA-Z]{24})", WARN,
       "Slack webhook URL detected.",
       "Rotate the webhook in your Slack app settings."),

    # Google
    _p("Google API Key", r"\b(AIza[0-9A-Za-z_-]{35})\b", CRIT,
       "Google API key detected.",
       "Restrict key in Google Cloud Console > APIs & Services > Credentials."),
    _p("Google OAuth Client Secret", r"\b(GOCSPX-[0-9A-Za-z_-]{28})\b", CRIT,
       "Google OAuth client secret detected.",
       "Rotate in Google Cloud Console > OAuth 2.0 Client IDs."),

    # Email / messaging
    _p("SendGrid API Key", r"\b(SG\.[0-9A-Za-z_-]{22}\.[0-9A-Za-z_-]{43})\b", CRIT,
       "SendGrid API key detected.",
       "Rotate at app.sendgrid.com > Settings > API Keys."),
    _p("Mailgun API Key", r"\b(key-[0-9a-zA-Z]{32})\b", CRIT,
       "Mailgun API key detected.",
       "Rotate in Mailgun Dashboard > API Security."),
    _p("Resend API Key", r"\b(re_[0-9a-zA-Z]{20,})\b", CRIT,
       "Resend API key detected.",
       "Rotate at resend.com > API Keys."),
    _p("Twilio Account SID", r"\b(AC[0-9a-f]{32})\b", WARN,
       "Twilio Account SID detected.",
       "SIDs are semi-public but should still be in env vars."),
    _p("Twilio Auth Token",
       r"""(?:twilio[\w.-]{0,30}?auth[\w.-]{0,30}?token)\s*[=:]\s*['"]?([0-9a-f]{32})['"]?""",
       CRIT, "Twilio auth token detected.",
       "Rotate in Twilio Console > Account > API Keys.", re.IGNORECASE),

    # Package registries
    _p("npm Token", r"\b(npm_[0-9a-zA-Z]{36})\b", CRIT,
       "npm access token detected.",
       "Revoke at npmjs.com > Access Tokens. Use granular tokens."),
    _p("PyPI Token", r"\b(pypi-[0-9a-zA-Z_-]{50,})\b", CRIT,
       "PyPI API token detected.",
       "Revoke at pypi.org > Account Settings > API Tokens."),
    _p("Docker Hub Token", r"\b(dckr_pat_[0-9a-zA-Z_-]{20,})\b", CRIT,
       "Docker Hub personal access token detected.",
       "Revoke at hub.docker.com > Account Settings > Security."),

    # GitLab
    _p("GitLab Token", r"\b(glpat-[0-9a-zA-Z_-]{20})\b", CRIT,
       "GitLab personal access token detected.",
       "Revoke at GitLab > User Settings > Access Tokens."),
    _p("GitLab Pipeline Token", r"\b(glptt-[0-9a-f]{40})\b", CRIT,
       "GitLab pipeline trigger token detected.",
       "Revoke in GitLab > CI/CD > Pipeline triggers."),

    # Private keys
    _p("Private Key (PEM)", r"(-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----)", CRIT,
       "Private key detected.",
       "Never store private keys in code. Use a secrets manager or key vault."),

    # Connection strings
    _p("Database URL with Password",
       r"((?:postgres(?:ql)?|mysql|mariadb|mssql)://" + _USERINFO + r"@\S+)", CRIT,
       "Database connection string with embedded password.",
       "Use separate DB_HOST/DB_PASSWORD vars or a secrets manager."),
    _p("Redis URL with Password", r"(rediss?://[^:\s/@]{0,256}:[^@\s/?#]{1,256}@\S+)", CRIT,
       "Redis URL with embedded password.",
       "Use separate REDIS_HOST/REDIS_PASSWORD environment variables."),
    _p("MongoDB URI with Password", r"(mongodb(?:\+srv)?://" + _USERINFO + r"@\S+)", CRIT,
       "MongoDB connection string with embedded password.",
       "Use MongoDB Atlas secrets or separate credential vars."),
    _p("Basic Auth in URL", r"(https?://" + _USERINFO + r"@\S+)", CRIT,
       "URL with embedded username and password.",
       "Remove credentials from URLs. Use environment variables or a secrets manager."),

    # Bearer tokens
    _p("Bearer Token",
       r"""(?:Authorization|authorization)\s*[:=]\s*['"]?(Bearer\s+[A-Za-z0-9_.-]{20,})['"]?""",
       CRIT, "Hardcoded bearer token detected.",
       "Remove hardcoded bearer tokens. Use runtime token injection."),

    # Infrastructure
    _p("HashiCorp Vault Token", r"\b(hvs\.[0-9a-zA-Z_-]{24,})\b", CRIT,
       "HashiCorp Vault service token detected.",
       "Revoke in Vault and generate a new token."),
    _p("DigitalOcean Token", r"\b(dop_v1_[0-9a-f]{64})\b", CRIT,
       "DigitalOcean personal access token detected.",
       "Revoke at cloud.digitalocean.com > API > Tokens."),
    _p("PlanetScale Password", r"\b(pscale_pw_[0-9a-zA-Z_-]{40,})\b", CRIT,
       "PlanetScale database password detected.",
       "Rotate in PlanetScale Dashboard > Database > Passwords."),
    _p("Supabase Service Role Key",
       r"\b(eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9\.[A-Za-z0-9_-]{50,}\.[A-Za-z0-9_-]{20,})", CRIT,
       "Supabase/JWT service key detected.",
       "Rotate in Supabase Dashboard > Settings > API."),

    # AI providers
    _p("Anthropic API Key", r"\b(sk-ant-api\d{2}-[0-9a-zA-Z_-]{90,})\b", CRIT,
       "Anthropic API key detected.",
       "Rotate at console.anthropic.com > API Keys."),
    _p("Hugging Face Token", r"\b(hf_[0-9a-zA-Z]{34})\b", CRIT,
       "Hugging Face access token detected.",
       "Rotate at huggingface.co > Settings > Access Tokens."),

    # Commerce / chat
    _p("Shopify Access Token", r"\b(shpat_[0-9a-fA-F]{32})\b", CRIT,
       "Shopify admin access token detected.",
       "Rotate in Shopify Admin > Apps > Develop apps."),
    _p("Shopify Shared Secret", r"\b(shpss_[0-9a-fA-F]{32})\b", CRIT,
       "Shopify shared secret detected.",
       "Rotate in Shopify Partner Dashboard."),
    _p("Discord Bot Token", r"\b([MN][A-Za-z\d]{23,}\.[\w-]{6}\.[\w-]{27,})\b", CRIT,
       "Discord bot token detected.",
       "Regenerate at discord.com/developers > Bot > Reset Token."),
    _p("Telegram Bot Token", r"\b(\d{8,10}:[0-9A-Za-z_-]{35})\b", CRIT,
       "Telegram bot token detected.",
       "Revoke via @BotFather on Telegram."),

    # Observability / SaaS
    _p("Sentry DSN", r"(https://[0-9a-f]{32}@(?:o\d+\.)?(?:sentry\.io|[^/\s]+)/\d+)", WARN,
       "Sentry DSN detected (contains project info).",
       "DSNs are semi-public for client SDKs but should not be committed."),
    _p("New Relic API Key", r"\b(NRAK-[0-9A-Z]{27})\b", CRIT,
       "New Relic API key detected.",
       "Rotate at one.newrelic.com > API Keys."),
    _p("Linear API Key", r"\b(lin_api_[0-9a-zA-Z]{40})\b", CRIT,
       "Linear API key detected.",
       "Revoke at linear.app > Settings > API."),
    _p("Mapbox Token", r"\b((?:pk|sk)\.eyJ[0-9a-zA-Z_-]+\.[0-9a-zA-Z_-]{20,})\b", WARN,
       "Mapbox access token detected.",
       "Rotate at mapbox.com > Account > Tokens."),
)

FALLBACK_PATTERNS: tuple[Pattern, ...] = (
    Pattern(
        name="Generic Secret Assignment",
        matcher=RegexMatcher(
            r"""(?:password|passwd|secret|token|apikey|api_key|auth_token|access_token|private_key)"""
            r"""\w{0,40}\s*[=:]\s*['"]?([^\s'"]{8,})['"]?""",
            re.IGNORECASE,
        ),
        severity=WARN,
        description="Potential secret value detected.",
        remediation=(
            "Review this value and ensure it is not a real credential "
            "committed to source control."
        ),
        tier=Tier.FALLBACK,
    ),
)

CATALOG: tuple[Pattern, ...] = SPECIFIC_PATTERNS + FALLBACK_PATTERNS

_BY_NAME: dict[str, Pattern] = {p.name: p for p in CATALOG}


def get_pattern(name: str) -> Pattern:
    """Look a pattern up by its unique name."""
    return _BY_NAME[name]


def clip_line(line: str) -> str:
    if len(line) > MAX_LINE_LENGTH:
        logger.debug("Line of %d characters clipped to %d", len(line), MAX_LINE_LENGTH)
        return line[:MAX_LINE_LENGTH]
    return line


def iter_matches(line: str) -> Iterator[tuple[Pattern, PatternMatch]]:
    """Yield every match of every pattern, specific tier first."""
    line = clip_line(line)
    for tier in (SPECIFIC_PATTERNS, FALLBACK_PATTERNS):
        for pattern in tier:
            for match in pattern.find_all(line):
                yield pattern, match


def first_match(line: str) -> tuple[Pattern, PatternMatch] | None:
    """Return the first pattern (in catalog order) that matches the line."""
    line = clip_line(line)
    for tier in (SPECIFIC_PATTERNS, FALLBACK_PATTERNS):
        for pattern in tier:
            match = pattern.search(line)
            if match is not None:
                return pattern, match
    return None
