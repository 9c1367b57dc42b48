"""Typed records shared by every pipeline stage."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

UNKNOWN_FILE = "unknown"
DEFAULT_TITLE = "Untitled finding"
DEFAULT_DETAIL = "Issue detected in code review requiring attention."
DEFAULT_SUMMARY = "AI review completed"
PARSING_ERROR_TAG = "parsing-error"


class Severity(str, Enum):
    """Closed set of finding severities."""

    INFO = "info"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"
    SECURITY = "security"


class Risk(str, Enum):
    """Closed set of aggregate review risk levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class ChangedFile:
    """One changed file of a pull request."""

    path: str
    patch: str | None = None

    @classmethod
    def from_github(cls, raw: dict[str, Any]) -> "ChangedFile":
        patch = raw.get("patch")
        return cls(
            path=str(raw.get("filename") or ""),
            patch=patch if isinstance(patch, str) else None,
        )


@dataclass(frozen=True)
class Finding:
    """One reported problem."""

    file: str = UNKNOWN_FILE
    line: int | None = None
    severity: Severity = Severity.INFO
    title: str = DEFAULT_TITLE
    detail: str = DEFAULT_DETAIL
    suggestion: str | None = None
    tags: tuple[str, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "line": self.line,
            "severity": self.severity.value,
            "title": self.title,
            "detail": self.detail,
            "suggestion": self.suggestion,
            "tags": list(self.tags) if self.tags is not None else None,
        }


@dataclass(frozen=True)
class Review:
    """Normalized result of interpreting one raw model response."""

    summary: str = DEFAULT_SUMMARY
    overall_risk: Risk = Risk.LOW
    issues: tuple[Finding, ...] = field(default_factory=tuple)

    @property
    def is_parse_failure(self) -> bool:
        return any(PARSING_ERROR_TAG in (issue.tags or ()) for issue in self.issues)

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "overall_risk": self.overall_risk.value,
            "issues": [issue.to_dict() for issue in self.issues],
        }
