from __future__ import annotations

import pytest

from pkg.reviewgate.models import Finding, Risk, Severity
from pkg.reviewgate.severity import derive_risk, normalize_severity, parse_risk, resolve_risk


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("HIGH", Severity.HIGH),
        (" security ", Severity.SECURITY),
        ("Major", Severity.HIGH),
        ("minor", Severity.LOW),
        ("blocker", Severity.CRITICAL),
        ("catastrophic", Severity.INFO),
        (None, Severity.INFO),
        (3, Severity.INFO),
    ],
)
def test_normalize_severity(raw, expected):
    assert normalize_severity(raw) is expected


def _findings(*severities):
    return [Finding(severity=s) for s in severities]


@pytest.mark.parametrize(
    "severities,expected",
    [
        ((), Risk.LOW),
        ((Severity.INFO, Severity.LOW), Risk.LOW),
        ((Severity.MEDIUM, Severity.LOW), Risk.MEDIUM),
        ((Severity.HIGH, Severity.MEDIUM), Risk.HIGH),
        ((Severity.SECURITY, Severity.LOW), Risk.CRITICAL),
        ((Severity.CRITICAL,), Risk.CRITICAL),
    ],
)
def test_derive_risk(severities, expected):
    assert derive_risk(_findings(*severities)) is expected


def test_explicit_risk_wins():
    assert resolve_risk("Low", _findings(Severity.CRITICAL)) is Risk.LOW


def test_invalid_explicit_risk_falls_back_to_derivation():
    assert parse_risk("severe") is None
    assert resolve_risk("severe", _findings(Severity.HIGH)) is Risk.HIGH
