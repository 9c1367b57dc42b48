"""Conservative secret redaction for diff text.

Only fixed-format signatures are replaced. Ordinary code must pass through
untouched, so a missed secret is preferred over a mangled diff.
"""

from __future__ import annotations

import re

PEM_PLACEHOLDER = "[REDACTED_PEM_BLOCK]"
AWS_KEY_PLACEHOLDER = "[REDACTED_AWS_KEY]"
GITHUB_TOKEN_PLACEHOLDER = "[REDACTED_GITHUB_TOKEN]"
TOKEN_PLACEHOLDER = "[REDACTED_TOKEN]"
LONG_STRING_PLACEHOLDER = "[REDACTED_LONG_STRING]"

LONG_STRING_MIN_CHARS = 40

_PEM_RE = re.compile(
    r"-----BEGIN [A-Z0-9 ]{1,64}-----.*?-----END [A-Z0-9 ]{1,64}-----",
    re.DOTALL,
)
_AWS_KEY_RE = re.compile(r"(?<![A-Za-z0-9])(?:AKIA|ASIA)[0-9A-Z]{16}(?![A-Za-z0-9])")
_GITHUB_TOKEN_RE = re.compile(r"\b(?:gh[pousr]_[A-Za-z0-9_]{20,}|github_pat_[A-Za-z0-9_]{20,})")
_SK_TOKEN_RE = re.compile(r"\bsk-(?:proj-)?([A-Za-z0-9_-]{20,})")
_SLACK_TOKEN_RE = re.compile(r"\bxox[abprs]-[A-Za-z0-9-]{10,}")

# The run must not touch identifier or punctuation characters on either side;
# a base64-looking slice of a longer identifier is left alone. A leading diff
# marker at line start is kept as group 1.
_LONG_STRING_RE = re.compile(
    r"(^[+\- ]|(?<![A-Za-z0-9/+=_.\-]))"
    r"([A-Za-z0-9/][A-Za-z0-9/+=]{%d,})"
    r"(?![A-Za-z0-9/+=_.\-])" % (LONG_STRING_MIN_CHARS - 1),
    re.MULTILINE,
)


def _character_classes(value: str) -> int:
    return sum(
        (
            any(c.islower() for c in value),
            any(c.isupper() for c in value),
            any(c.isdigit() for c in value),
        )
    )


def _redact_sk_token(match: re.Match[str]) -> str:
    # Hyphenated lowercase names like "sk-learn-compatible-wrapper" are not keys.
    if _character_classes(match.group(1)) < 2:
        return match.group(0)
    return TOKEN_PLACEHOLDER


def _redact_long_string(match: re.Match[str]) -> str:
    prefix, candidate = match.group(1), match.group(2)
    if _character_classes(candidate) < 2:
        return match.group(0)
    return prefix + LONG_STRING_PLACEHOLDER


def redact(text: str) -> str:
    """Replace unambiguous secret-shaped spans with typed placeholders."""
    if not text:
        return text or ""
    redacted = _PEM_RE.sub(PEM_PLACEHOLDER, text)
    redacted = _AWS_KEY_RE.sub(AWS_KEY_PLACEHOLDER, redacted)
    redacted = _GITHUB_TOKEN_RE.sub(GITHUB_TOKEN_PLACEHOLDER, redacted)
    redacted = _SK_TOKEN_RE.sub(_redact_sk_token, redacted)
    redacted = _SLACK_TOKEN_RE.sub(TOKEN_PLACEHOLDER, redacted)
    redacted = _LONG_STRING_RE.sub(_redact_long_string, redacted)
    return redacted
