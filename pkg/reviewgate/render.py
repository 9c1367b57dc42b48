"""Markdown rendering for the review comment.

Free text from the model is escaped before it reaches the comment so it
cannot open markup, fake headings, or forge the comment marker.
"""

from __future__ import annotations

import html
import re
from urllib.parse import quote

from .models import Review, Severity

COMMENT_MARKER = "<!-- ai-code-review-bot -->"
MAX_COMMENT_CHARS = 60_000
TRUNCATED_COMMENT_NOTE = "\n\n[Comment truncated for size. See the {artifact} artifact for the full report.]"
DEFAULT_ARTIFACT_NAME = "ai-review-report"

_SEVERITY_ICON = {
    Severity.SECURITY: "🛡️",
    Severity.CRITICAL: "🔴",
    Severity.HIGH: "🟠",
    Severity.MEDIUM: "🟡",
    Severity.LOW: "🔵",
    Severity.INFO: "⚪",
}

_MARKDOWN_SPECIAL_RE = re.compile(r"([\\`*_{}\[\]()#+\-.!|~])")
_LABEL_UNSAFE_RE = re.compile(r"[`<>\r\n]")


def severity_icon(severity: Severity | str | None) -> str:
    """Severity icon."""
    text = str(getattr(severity, "value", severity) or "").strip().lower()
    try:
        return _SEVERITY_ICON[Severity(text)]
    except ValueError:
        return _SEVERITY_ICON[Severity.INFO]


def escape_markdown(text: str) -> str:
    """Escape markdown control characters and HTML in model-provided text."""
    escaped = html.escape(text or "", quote=False)
    return _MARKDOWN_SPECIAL_RE.sub(r"\\\1", escaped)


def blob_url(
    path: str,
    *,
    server: str,
    repo: str,
    sha: str,
    line: int | None = None,
) -> str | None:
    """Blob url."""
    server = (server or "").rstrip("/")
    repo = (repo or "").strip()
    sha = (sha or "").strip()
    path = (path or "").strip()

    if not (server and repo and sha and path):
        return None
    url = f"{server}/{repo}/blob/{sha}/{quote(path, safe='/')}"
    if line is not None and line > 0:
        url += f"#L{line}"
    return url


def location_link(
    path: str,
    line: int | None,
    *,
    server: str = "",
    repo: str = "",
    sha: str = "",
) -> str:
    """Code-span location, linked to the blob when repo context is known."""
    clean = _LABEL_UNSAFE_RE.sub("", path or "").strip() or "unknown"
    label = f"{clean}:{line}" if line is not None and line > 0 else clean
    if clean == "unknown":
        return f"`{label}`"
    url = blob_url(clean, server=server, repo=repo, sha=sha, line=line)
    if not url:
        return f"`{label}`"
    return f"[`{label}`]({url})"


def _indent(text: str, prefix: str = "  ") -> str:
    return "\n".join(f"{prefix}{ln}" if ln.strip() else "" for ln in text.splitlines()) or prefix.rstrip()


def render_review(
    review: Review,
    *,
    server: str = "",
    repo: str = "",
    sha: str = "",
) -> str:
    """Render a Review as the comment markdown (without markers)."""
    risk = review.overall_risk.value.upper()
    lines = [f"### 🤖 AI Code Review ({risk})", "", escape_markdown(review.summary), ""]

    if review.is_parse_failure:
        lines.append("> ⚠️ The AI response could not be parsed. This is not a clean review.")
        lines.append("")

    if not review.issues:
        lines.append("**No issues found.** ✅")
        return "\n".join(lines)

    lines.append(f"**Findings ({len(review.issues)}):**")
    for idx, issue in enumerate(review.issues, start=1):
        location = location_link(issue.file, issue.line, server=server, repo=repo, sha=sha)
        lines.append(
            f"- **{idx}. {severity_icon(issue.severity)} [{issue.severity.value.upper()}] "
            f"{escape_markdown(issue.title)}** in {location}"
        )
        lines.append(_indent(escape_markdown(issue.detail)))
        if issue.suggestion:
            lines.append(_indent(f"**Suggestion:** {escape_markdown(issue.suggestion)}"))
    return "\n".join(lines)


def truncate_comment(text: str, *, max_chars: int = MAX_COMMENT_CHARS, artifact: str = DEFAULT_ARTIFACT_NAME) -> str:
    """Cut an oversized comment and point at the persisted report."""
    if len(text) <= max_chars:
        return text
    note = TRUNCATED_COMMENT_NOTE.format(artifact=artifact)
    return text[: max(0, max_chars - len(note))] + note


def build_comment_body(
    markdown: str,
    *,
    marker: str = COMMENT_MARKER,
    max_chars: int = MAX_COMMENT_CHARS,
    artifact: str = DEFAULT_ARTIFACT_NAME,
) -> str:
    """Wrap rendered markdown with the marker and apply the size ceiling."""
    body = f"{marker}\n{markdown}\n{marker}"
    return truncate_comment(body, max_chars=max_chars, artifact=artifact)
