"""Tests for idempotent comment reconciliation."""
from __future__ import annotations

import pytest

from conftest import FakeGitHub
from pkg.reviewgate.reconcile import (
    CommentAction,
    find_comment_by_marker,
    plan_comment_action,
    reconcile_comment,
)
from pkg.reviewgate.render import COMMENT_MARKER

MARKER = "<!-- test-marker -->"


class TestPlanCommentAction:
    def test_create_when_no_marker(self):
        comments = [{"id": 1, "body": "unrelated"}]
        assert plan_comment_action(comments, MARKER) == CommentAction("create")

    def test_update_first_match(self):
        comments = [
            {"id": 1, "body": "unrelated"},
            {"id": 2, "body": f"{MARKER}\nold"},
            {"id": 3, "body": f"{MARKER}\nolder"},
        ]
        assert plan_comment_action(comments, MARKER) == CommentAction("update", 2)

    def test_skips_non_integer_ids(self):
        comments = [{"id": "IC_abc", "body": MARKER}, {"id": True, "body": MARKER}]
        assert find_comment_by_marker(comments, MARKER) is None

    def test_ignores_malformed_entries(self):
        comments = ["junk", {"id": 5}, {"id": 6, "body": None}, {"id": 7, "body": MARKER}]
        assert find_comment_by_marker(comments, MARKER) == 7

    def test_empty(self):
        assert plan_comment_action([], MARKER).kind == "create"


class TestReconcileComment:
    def test_two_runs_leave_one_comment(self):
        gh = FakeGitHub()
        gh.comments.append({"id": 1, "body": "human comment"})

        first = reconcile_comment(gh, 7, f"{COMMENT_MARKER}\nrun 1\n{COMMENT_MARKER}")
        second = reconcile_comment(gh, 7, f"{COMMENT_MARKER}\nrun 2\n{COMMENT_MARKER}")

        assert first.kind == "create"
        assert second == CommentAction("update", first_id(gh))
        marked = [c for c in gh.comments if COMMENT_MARKER in c["body"]]
        assert len(marked) == 1
        assert "run 2" in marked[0]["body"]
        assert (gh.created, gh.updated) == (1, 1)

    def test_body_without_marker_rejected(self):
        with pytest.raises(ValueError):
            reconcile_comment(FakeGitHub(), 7, "no marker here")


def first_id(gh: FakeGitHub) -> int:
    return next(c["id"] for c in gh.comments if COMMENT_MARKER in c["body"])
