"""Tests for comment rendering."""
from __future__ import annotations

from pkg.reviewgate.interpret import fallback_review
from pkg.reviewgate.models import Finding, Review, Risk, Severity
from pkg.reviewgate.render import (
    COMMENT_MARKER,
    build_comment_body,
    escape_markdown,
    location_link,
    render_review,
    severity_icon,
    truncate_comment,
)


class TestEscapeMarkdown:
    def test_escapes_markdown_controls(self):
        assert escape_markdown("a*b_c") == "a\\*b\\_c"

    def test_escapes_html(self):
        assert escape_markdown("<script>") == "&lt;script&gt;"

    def test_empty(self):
        assert escape_markdown("") == ""


class TestLocationLink:
    def test_links_to_blob_when_context_known(self):
        link = location_link("src/a.py", 3, server="https://github.com", repo="o/r", sha="abc")
        assert link == "[`src/a.py:3`](https://github.com/o/r/blob/abc/src/a.py#L3)"

    def test_plain_code_span_without_context(self):
        assert location_link("src/a.py", None) == "`src/a.py`"

    def test_unknown_file_never_linked(self):
        link = location_link("unknown", None, server="https://github.com", repo="o/r", sha="abc")
        assert link == "`unknown`"

    def test_strips_backticks(self):
        assert location_link("a`b.py", 1) == "`ab.py:1`"


def test_severity_icon_defaults_to_info():
    assert severity_icon(Severity.CRITICAL) == "🔴"
    assert severity_icon("bogus") == severity_icon(Severity.INFO)


class TestRenderReview:
    def test_clean_review(self):
        md = render_review(Review(summary="All good", overall_risk=Risk.LOW))
        assert md.startswith("### 🤖 AI Code Review (LOW)")
        assert "**No issues found.** ✅" in md

    def test_findings_are_numbered(self):
        review = Review(
            summary="Found one",
            overall_risk=Risk.HIGH,
            issues=(
                Finding(
                    file="src/a.py",
                    line=3,
                    severity=Severity.HIGH,
                    title="Null deref",
                    detail="x may be None",
                    suggestion="Guard it",
                ),
            ),
        )
        md = render_review(review, server="https://github.com", repo="o/r", sha="abc")
        assert "**Findings (1):**" in md
        assert "**1. 🟠 [HIGH] Null deref** in [`src/a.py:3`]" in md
        assert "  x may be None" in md
        assert "  **Suggestion:** Guard it" in md

    def test_parse_failure_banner(self):
        md = render_review(fallback_review("garbage"))
        assert "could not be parsed" in md
        assert "No issues found" not in md


class TestCommentBody:
    def test_marker_wraps_body(self):
        body = build_comment_body("hello")
        assert body == f"{COMMENT_MARKER}\nhello\n{COMMENT_MARKER}"

    def test_model_text_cannot_forge_marker(self):
        review = Review(issues=(Finding(title=COMMENT_MARKER, detail=COMMENT_MARKER),))
        body = build_comment_body(render_review(review))
        assert body.count(COMMENT_MARKER) == 2

    def test_oversize_comment_truncated(self):
        body = build_comment_body("x" * 1000, max_chars=200)
        assert len(body) <= 200
        assert body.startswith(COMMENT_MARKER)
        assert "ai-review-report" in body

    def test_truncate_comment_noop_under_limit(self):
        assert truncate_comment("short", max_chars=100) == "short"
