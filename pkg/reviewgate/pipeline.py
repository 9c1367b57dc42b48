"""One review run, stage by stage.

fetch PR -> classify files -> redact + budget -> prompt -> model ->
interpret -> report -> comment -> gate. Any collaborator failure propagates
and aborts the run before a comment is written.
"""

from __future__ import annotations

from typing import Protocol

from .annotations import error, info, notice
from .budget import BudgetLimits, prepare_payload
from .classifier import filter_safe_files
from .config import Settings
from .gate import blocking_findings, format_severities, resolve_blocking_severities
from .github import GitHubClient
from .interpret import interpret_with_strategy
from .prompt import PullRequestContext, build_prompt
from .reconcile import reconcile_comment
from .render import COMMENT_MARKER, build_comment_body, render_review
from .report import write_report

EXIT_PASS = 0
EXIT_BLOCKED = 1


class ReviewModel(Protocol):
    model: str

    def complete(self, prompt: str) -> str: ...


def _head_sha(pr: dict) -> str:
    head = pr.get("head")
    if isinstance(head, dict) and isinstance(head.get("sha"), str):
        return head["sha"]
    return ""


def run_review(
    settings: Settings,
    github: GitHubClient,
    model: ReviewModel,
    *,
    dry_run: bool = False,
) -> int:
    """Run the full review for settings.pr_number and return the exit code."""
    blocking = resolve_blocking_severities(settings.fail_on_severity)
    limits = BudgetLimits(
        max_file_chars=settings.max_file_chars,
        max_total_chars=settings.max_total_chars,
        max_chars=settings.max_diff_chars,
    )

    pr = github.get_pull_request(settings.pr_number)
    files = github.list_files(settings.pr_number)
    info(f"PR #{settings.pr_number}: {len(files)} changed files")

    safe_files = filter_safe_files(files)
    diff = prepare_payload(safe_files, limits)
    prompt = build_prompt(PullRequestContext.from_github(pr), diff)

    info(f"AI model being used: {model.model}")
    raw = model.complete(prompt)
    info(f"AI response length: {len(raw)}")

    review, strategy = interpret_with_strategy(raw)
    write_report(settings.workspace, raw, review, model=model.model, strategy=strategy)

    markdown = render_review(
        review,
        server=settings.server_url,
        repo=settings.repository,
        sha=_head_sha(pr),
    )
    body = build_comment_body(markdown)
    if dry_run:
        info("Dry run: skipping PR comment")
        print(body)
    else:
        reconcile_comment(github, settings.pr_number, body, COMMENT_MARKER)

    blocked = blocking_findings(review, blocking)
    if blocked:
        error(f"AI review found {len(blocked)} blocking issues (fail_on_severity={format_severities(blocking)})")
        for issue in blocked:
            error(f"[{issue.severity.value.upper()}] {issue.title} ({issue.file})")
        return EXIT_BLOCKED

    if review.is_parse_failure:
        notice("AI review response was not recognized; see the PR comment and audit report.")
    info("AI review passed (no blocking issues).")
    return EXIT_PASS
