"""Interpret a raw model response as a Review.

The response format is not trusted. Strategies are plain functions
``text -> Review | None`` tried in order, first result wins:

- ``structured``: the whole text is the strict review JSON, all closed-set
  values already valid;
- ``embedded-json``: a balanced ``{...}`` object somewhere in the text,
  decoded leniently;
- ``marker-text``: ``[SEVERITY] title - path:line`` markers (or an
  explicitly positive reply), with ``OVERALL RISK:`` seeding the risk;
- ``fallback``: a visible parsing-error review, never an empty "clean" one.

``interpret_response`` never raises.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterable, Iterator
from typing import Any

from .annotations import info, warn
from .models import (
    DEFAULT_DETAIL,
    DEFAULT_SUMMARY,
    DEFAULT_TITLE,
    PARSING_ERROR_TAG,
    UNKNOWN_FILE,
    Finding,
    Review,
    Risk,
    Severity,
)
from .severity import normalize_severity, parse_risk, resolve_risk

STRATEGY_STRUCTURED = "structured"
STRATEGY_EMBEDDED_JSON = "embedded-json"
STRATEGY_MARKER_TEXT = "marker-text"
STRATEGY_FALLBACK = "fallback"

FALLBACK_TITLE = "Unrecognized review response format"
FALLBACK_SUMMARY = (
    "The AI review response could not be interpreted. Manual review is recommended."
)
FALLBACK_EXCERPT_CHARS = 500

_SEVERITY_VALUES = {s.value for s in Severity}
_RISK_VALUES = {r.value for r in Risk}
_REVIEW_KEYS = ("summary", "overall_risk", "issues")
_REQUIRED_ISSUE_KEYS = ("file", "line", "severity", "title", "detail")

_SEVERITY_TOKENS = "SECURITY|CRITICAL|HIGH|MEDIUM|LOW|INFO"

_RISK_RE = re.compile(
    r"\**[ \t]*OVERALL[ \t]+RISK[ \t]*\**[ \t]*:[ \t]*\**[ \t]*"
    r"(LOW|MEDIUM|HIGH|CRITICAL)\b\**",
    re.IGNORECASE,
)

# The header consumes the rest of the line in one pass; the location is
# matched afterwards against the text after the last " - " only.
_MARKER_RE = re.compile(
    r"\*{0,2}\[(" + _SEVERITY_TOKENS + r")\]\*{0,2}[ \t]*([^\r\n]*)",
    re.IGNORECASE,
)

_LOCATION_SEP = " - "

# Path = non-delimiter runs joined by single "/", and it must look like a
# path: contain a "/", end in an extension, or carry a ":line" suffix.
_PATH = (
    r"(?:[^\s:/`*]+/)+[^\s:/`*]+"
    r"|[^\s:/`*]*\.[A-Za-z0-9]{1,8}"
    r"|[^\s:/`*]+(?=`?:\d)"
)

_LOCATION_RE = re.compile(r"`?(" + _PATH + r")`?(?::(\d+))?`?")

_SUGGESTION_RE = re.compile(
    r"^[ \t]*(?:[-*>][ \t]*)?\**[ \t]*Suggestion[ \t]*\**[ \t]*:[ \t]*\**[ \t]*",
    re.IGNORECASE | re.MULTILINE,
)

_POSITIVE_RE = re.compile(
    r"\b(?:"
    r"looks?\s+(?:good|great|fine|solid)"
    r"|lgtm"
    r"|all\s+good"
    r"|nothing\s+to\s+(?:flag|report)"
    r"|no\s+(?:significant\s+|major\s+|obvious\s+|blocking\s+)?"
    r"(?:issues|problems|concerns|bugs|findings)"
    r")\b",
    re.IGNORECASE,
)


# --- shared coercion helpers ---


def _text(value: object) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _coerce_line(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float) and value.is_integer():
        return int(value) if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        line = int(value.strip())
        return line if line > 0 else None
    return None


def _dedupe_tags(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


def _coerce_tags(value: object) -> tuple[str, ...] | None:
    if isinstance(value, str):
        tag = value.strip()
        return (tag,) if tag else None
    if isinstance(value, (list, tuple)):
        return _dedupe_tags(t for t in (_text(item) for item in value) if t)
    return None


# --- strategy A: strict schema ---


def _strict_finding(raw: object) -> Finding | None:
    if not isinstance(raw, dict):
        return None
    if any(key not in raw for key in _REQUIRED_ISSUE_KEYS):
        return None

    file, line, severity = raw["file"], raw["line"], raw["severity"]
    title, detail = raw["title"], raw["detail"]
    suggestion, tags = raw.get("suggestion"), raw.get("tags")

    if not isinstance(file, str) or not file.strip():
        return None
    if line is not None and (isinstance(line, bool) or not isinstance(line, int) or line < 1):
        return None
    if not isinstance(severity, str) or severity not in _SEVERITY_VALUES:
        return None
    if not isinstance(title, str) or not title.strip():
        return None
    if not isinstance(detail, str) or not detail.strip():
        return None
    if suggestion is not None and not isinstance(suggestion, str):
        return None
    if tags is not None and (
        not isinstance(tags, list) or not all(isinstance(t, str) for t in tags)
    ):
        return None

    return Finding(
        file=file,
        line=line,
        severity=Severity(severity),
        title=title,
        detail=detail,
        suggestion=suggestion,
        tags=_dedupe_tags(tags) if tags is not None else None,
    )


def decode_structured(text: str) -> Review | None:
    """Strategy A: the producer honored the contract exactly."""
    try:
        data = json.loads(text.strip())
    except (ValueError, RecursionError):
        return None
    if not isinstance(data, dict):
        return None

    summary, risk, issues = data.get("summary"), data.get("overall_risk"), data.get("issues")
    if not isinstance(summary, str) or not summary.strip():
        return None
    if not isinstance(risk, str) or risk not in _RISK_VALUES:
        return None
    if not isinstance(issues, list):
        return None

    findings: list[Finding] = []
    for raw in issues:
        finding = _strict_finding(raw)
        if finding is None:
            return None
        findings.append(finding)
    return Review(summary=summary, overall_risk=Risk(risk), issues=tuple(findings))


# --- strategy B: embedded JSON ---


def iter_json_objects(text: str) -> Iterator[Any]:
    """Yield JSON values decoded at each ``{`` that opens a complete object.

    A ``{`` that does not start valid JSON is skipped, so a stray brace in
    prose does not hide an object that follows it.
    """
    decoder = json.JSONDecoder()
    idx = text.find("{")
    while idx != -1:
        try:
            value, end = decoder.raw_decode(text, idx)
        except (ValueError, RecursionError):
            idx = text.find("{", idx + 1)
            continue
        yield value
        idx = text.find("{", end)


def _lenient_finding(raw: object) -> Finding | None:
    if isinstance(raw, str):
        title = raw.strip()
        return Finding(title=title) if title else None
    if not isinstance(raw, dict):
        return None

    file = _text(raw.get("file")) or _text(raw.get("path")) or _text(raw.get("filename"))
    detail = _text(raw.get("detail")) or _text(raw.get("description")) or _text(raw.get("message"))
    return Finding(
        file=file or UNKNOWN_FILE,
        line=_coerce_line(raw.get("line")),
        severity=normalize_severity(raw.get("severity")),
        title=_text(raw.get("title")) or DEFAULT_TITLE,
        detail=detail or DEFAULT_DETAIL,
        suggestion=_text(raw.get("suggestion")) or None,
        tags=_coerce_tags(raw.get("tags")),
    )


def _lenient_review(data: dict[str, Any]) -> Review:
    issues = data.get("issues")
    if not isinstance(issues, list):
        issues = []
    findings = tuple(f for f in (_lenient_finding(raw) for raw in issues) if f is not None)
    return Review(
        summary=_text(data.get("summary")) or DEFAULT_SUMMARY,
        overall_risk=resolve_risk(data.get("overall_risk"), findings),
        issues=findings,
    )


def decode_embedded_json(text: str) -> Review | None:
    """Strategy B: first embedded JSON object that carries review fields."""
    for data in iter_json_objects(text):
        if isinstance(data, dict) and any(key in data for key in _REVIEW_KEYS):
            return _lenient_review(data)
    return None


# --- strategy C: marker text ---


def _clean_title(raw: str) -> str:
    return raw.strip().strip("*_").strip()


def _split_body(body: str) -> tuple[str, str | None]:
    match = _SUGGESTION_RE.search(body)
    if match is None:
        return body.strip(), None
    detail = body[: match.start()].strip()
    suggestion = body[match.end() :].strip()
    return detail, suggestion or None


def _split_header(header: str) -> tuple[str, str | None, int | None]:
    """Split ``title - path[:line]`` into its parts; the location is optional."""
    header = header.rstrip().rstrip("*").rstrip()
    head, sep, tail = header.rpartition(_LOCATION_SEP)
    if sep:
        match = _LOCATION_RE.fullmatch(tail.strip())
        if match is not None:
            line = match.group(2)
            return head, match.group(1), _coerce_line(line) if line else None
    return header, None, None


def _clean_summary(text: str) -> str:
    summary = _RISK_RE.sub("", text)
    summary = re.sub(r"\n{3,}", "\n\n", summary)
    return summary.strip()


def decode_marker_text(text: str) -> Review | None:
    """Strategy C: ``[SEVERITY]`` markers, or an explicitly positive reply.

    The ``OVERALL RISK`` token only seeds the risk; on its own it is not a
    recognized review.
    """
    markers = list(_MARKER_RE.finditer(text))
    if not markers and not _POSITIVE_RE.search(text):
        return None
    risk_match = _RISK_RE.search(text)

    findings: list[Finding] = []
    for idx, match in enumerate(markers):
        body_end = markers[idx + 1].start() if idx + 1 < len(markers) else len(text)
        detail, suggestion = _split_body(text[match.end() : body_end])
        title, file, line = _split_header(match.group(2))
        findings.append(
            Finding(
                file=file or UNKNOWN_FILE,
                line=line,
                severity=normalize_severity(match.group(1)),
                title=_clean_title(title) or DEFAULT_TITLE,
                detail=detail or DEFAULT_DETAIL,
                suggestion=suggestion,
            )
        )

    preamble = text[: markers[0].start()] if markers else text
    explicit = parse_risk(risk_match.group(1)) if risk_match else None
    return Review(
        summary=_clean_summary(preamble) or DEFAULT_SUMMARY,
        overall_risk=explicit or resolve_risk(None, findings),
        issues=tuple(findings),
    )


# --- strategy D: loud failure ---


def fallback_review(text: str) -> Review:
    """Parsing-error review; visibly distinct from a clean one."""
    excerpt = " ".join(text.split())[:FALLBACK_EXCERPT_CHARS]
    detail = "The AI response did not match any recognized review format."
    if excerpt:
        detail += f" Response excerpt: {excerpt}"
    else:
        detail += " The response was empty."
    return Review(
        summary=FALLBACK_SUMMARY,
        overall_risk=Risk.MEDIUM,
        issues=(
            Finding(
                file=UNKNOWN_FILE,
                line=None,
                severity=Severity.MEDIUM,
                title=FALLBACK_TITLE,
                detail=detail,
                suggestion="Review the raw response in the audit report and the pull request manually.",
                tags=(PARSING_ERROR_TAG,),
            ),
        ),
    )


STRATEGIES: tuple[tuple[str, Callable[[str], Review | None]], ...] = (
    (STRATEGY_STRUCTURED, decode_structured),
    (STRATEGY_EMBEDDED_JSON, decode_embedded_json),
    (STRATEGY_MARKER_TEXT, decode_marker_text),
)


def interpret_with_strategy(text: object) -> tuple[Review, str]:
    """Return the review and the name of the strategy that produced it."""
    if isinstance(text, bytes):
        raw = text.decode("utf-8", errors="replace")
    elif isinstance(text, str):
        raw = text
    else:
        raw = "" if text is None else str(text)

    for name, strategy in STRATEGIES:
        try:
            review = strategy(raw)
        except Exception as exc:  # interpretation never raises
            warn(f"Response strategy '{name}' failed: {exc}")
            continue
        if review is not None:
            info(f"Parsed AI response with '{name}' strategy: {len(review.issues)} issues, risk {review.overall_risk.value}")
            return review, name

    warn("AI response format not recognized; reporting a parsing-error finding.")
    return fallback_review(raw), STRATEGY_FALLBACK


def interpret_response(text: object) -> Review:
    """Interpret one raw response string; never raises."""
    review, _ = interpret_with_strategy(text)
    return review
