"""Map free-text severity and risk tokens onto the closed enumerations."""

from __future__ import annotations

from collections.abc import Iterable

from .models import Finding, Risk, Severity

# Common synonyms produced by models that ignore the requested vocabulary.
_SEVERITY_ALIASES = {
    "informational": Severity.INFO,
    "minor": Severity.LOW,
    "moderate": Severity.MEDIUM,
    "major": Severity.HIGH,
    "blocker": Severity.CRITICAL,
}


def norm_key(value: object) -> str:
    """Normalize arbitrary input into a stable lookup key."""
    return " ".join(str(value or "").strip().lower().split())


def parse_severity(value: object) -> Severity | None:
    """Return the matching severity, or None when the token is unknown."""
    if isinstance(value, Severity):
        return value
    key = norm_key(value)
    try:
        return Severity(key)
    except ValueError:
        return _SEVERITY_ALIASES.get(key)


def normalize_severity(value: object) -> Severity:
    """Unknown severities degrade to info; they are never dropped."""
    return parse_severity(value) or Severity.INFO


def parse_risk(value: object) -> Risk | None:
    if isinstance(value, Risk):
        return value
    try:
        return Risk(norm_key(value))
    except ValueError:
        return None


def derive_risk(findings: Iterable[Finding]) -> Risk:
    """Aggregate risk implied by finding severities."""
    severities = {finding.severity for finding in findings}
    if severities & {Severity.CRITICAL, Severity.SECURITY}:
        return Risk.CRITICAL
    if Severity.HIGH in severities:
        return Risk.HIGH
    if Severity.MEDIUM in severities:
        return Risk.MEDIUM
    return Risk.LOW


def resolve_risk(explicit: object, findings: Iterable[Finding]) -> Risk:
    """Use an explicit, valid risk token; otherwise derive it from findings."""
    return parse_risk(explicit) or derive_risk(findings)
