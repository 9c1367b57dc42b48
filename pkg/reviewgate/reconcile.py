"""Idempotent upsert of the single review comment on a pull request."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal, Protocol

from .annotations import info
from .render import COMMENT_MARKER

CREATE = "create"
UPDATE = "update"


@dataclass(frozen=True)
class CommentAction:
    kind: Literal["create", "update"]
    comment_id: int | None = None


class CommentClient(Protocol):
    def list_comments(self, pr_number: int) -> list[dict]: ...

    def create_comment(self, pr_number: int, body: str) -> dict: ...

    def update_comment(self, comment_id: int, body: str) -> dict: ...


def find_comment_by_marker(comments: Iterable[dict], marker: str) -> int | None:
    """Id of the first comment whose body contains the marker."""
    for comment in comments:
        if not isinstance(comment, dict):
            continue
        body = comment.get("body")
        comment_id = comment.get("id")
        if not isinstance(body, str) or marker not in body:
            continue
        if isinstance(comment_id, int) and not isinstance(comment_id, bool):
            return comment_id
    return None


def plan_comment_action(comments: Iterable[dict], marker: str = COMMENT_MARKER) -> CommentAction:
    """Decide whether the next write creates a comment or updates an existing one."""
    comment_id = find_comment_by_marker(comments, marker)
    if comment_id is None:
        return CommentAction(CREATE)
    return CommentAction(UPDATE, comment_id)


def reconcile_comment(
    client: CommentClient,
    pr_number: int,
    body: str,
    marker: str = COMMENT_MARKER,
) -> CommentAction:
    """Create or update the marked comment so exactly one exists after the call."""
    if marker not in body:
        raise ValueError("comment body must contain the marker")
    action = plan_comment_action(client.list_comments(pr_number), marker)
    if action.kind == UPDATE:
        client.update_comment(action.comment_id, body)
        info(f"Updated existing review comment {action.comment_id}")
    else:
        client.create_comment(pr_number, body)
        info("Posted new review comment")
    return action
