"""Pass/fail decision over normalized findings."""

from __future__ import annotations

import json
from collections.abc import Iterable

from .annotations import error
from .config import ConfigError
from .models import Finding, Review, Severity

DEFAULT_BLOCKING_SEVERITIES = frozenset({Severity.HIGH, Severity.CRITICAL, Severity.SECURITY})

_VALID_NAMES = {s.value for s in Severity}


def parse_blocking_severities(raw: str) -> frozenset[Severity]:
    """Parse a JSON array of severity names; every entry must be known."""
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"fail_on_severity: invalid JSON: {exc}") from exc
    if not isinstance(parsed, list):
        raise ConfigError("fail_on_severity: must be a JSON array")

    invalid = [item for item in parsed if not isinstance(item, str) or item not in _VALID_NAMES]
    if invalid:
        names = ", ".join(str(item) for item in invalid)
        raise ConfigError(f"fail_on_severity: invalid severities: {names}")
    return frozenset(Severity(item) for item in parsed)


def format_severities(severities: Iterable[Severity]) -> str:
    order = list(Severity)
    return json.dumps([s.value for s in sorted(severities, key=order.index)])


def resolve_blocking_severities(raw: str | None) -> frozenset[Severity]:
    """Parse the configured set, falling back to the default when it is malformed."""
    if raw is None or not raw.strip():
        return DEFAULT_BLOCKING_SEVERITIES
    try:
        return parse_blocking_severities(raw)
    except ConfigError as exc:
        error(f"Failed to parse fail_on_severity: {exc}")
        error(f"Using default: {format_severities(DEFAULT_BLOCKING_SEVERITIES)}")
        return DEFAULT_BLOCKING_SEVERITIES


def blocking_findings(review: Review, blocking: Iterable[Severity]) -> list[Finding]:
    blocked = frozenset(blocking)
    return [issue for issue in review.issues if issue.severity in blocked]


def should_block(review: Review, blocking: Iterable[Severity]) -> bool:
    """True iff at least one finding's severity is in the blocking set."""
    return bool(blocking_findings(review, blocking))
