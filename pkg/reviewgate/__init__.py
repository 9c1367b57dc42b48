"""AI code review gate for pull requests."""

from .budget import BudgetLimits, prepare_payload
from .classifier import classify_path, filter_safe_files
from .gate import resolve_blocking_severities, should_block
from .interpret import interpret_response, interpret_with_strategy
from .models import ChangedFile, Finding, Review, Risk, Severity
from .reconcile import CommentAction, plan_comment_action, reconcile_comment
from .redact import redact
from .render import COMMENT_MARKER, build_comment_body, render_review

__all__ = [
    "BudgetLimits",
    "COMMENT_MARKER",
    "ChangedFile",
    "CommentAction",
    "Finding",
    "Review",
    "Risk",
    "Severity",
    "build_comment_body",
    "classify_path",
    "filter_safe_files",
    "interpret_response",
    "interpret_with_strategy",
    "plan_comment_action",
    "prepare_payload",
    "reconcile_comment",
    "redact",
    "render_review",
    "resolve_blocking_severities",
    "should_block",
]
