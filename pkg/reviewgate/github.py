"""GitHub access through the ``gh`` CLI.

Thin collaborator: pull request metadata, changed files and issue comments.
Transient 5xx responses are retried with exponential backoff; every other
failure propagates.
"""

from __future__ import annotations

import json
import os
import random
import subprocess
import time
from collections.abc import Iterator
from typing import Any

from .annotations import warn
from .models import ChangedFile

PER_PAGE = 100


class GitHubError(Exception):
    """A GitHub API call failed."""


class CommentPermissionError(GitHubError):
    """Token lacks pull-requests: write permission."""


class TransientGitHubError(GitHubError):
    """GitHub API returned a transient error (5xx)."""


def _is_transient_error(stderr: str) -> bool:
    """Check if error is a transient GitHub API error (5xx)."""
    transient_codes = ("502", "503", "504")
    lower_stderr = stderr.lower()
    # Handle both gh CLI format "(http 503)" and raw "HTTP 503" formats
    return any(
        f"(http {code})" in lower_stderr or f"http {code}" in lower_stderr
        for code in transient_codes
    )


class GitHubClient:
    """Pull request operations for one repository."""

    def __init__(
        self,
        repository: str,
        token: str,
        *,
        max_retries: int = 3,
        base_delay: float = 1.0,
    ) -> None:
        self.repository = repository
        self._token = token
        self._max_retries = max_retries
        self._base_delay = base_delay

    def _run_gh(self, args: list[str], *, stdin: str | None = None) -> subprocess.CompletedProcess[str]:
        """Run a gh CLI command with retry logic for transient errors.

        Raises:
            CommentPermissionError: Token lacks pull-requests: write permission
            TransientGitHubError: GitHub API returned 5xx after all retries
            GitHubError: Other gh CLI failures
        """
        env = {**os.environ, "GH_TOKEN": self._token}
        for attempt in range(self._max_retries):
            result = subprocess.run(
                ["gh", *args],
                input=stdin,
                capture_output=True,
                text=True,
                check=False,
                env=env,
            )
            if result.returncode == 0:
                return result

            stderr = result.stderr or ""
            lower = stderr.lower()
            if any(s in lower for s in ("403", "resource not accessible", "insufficient")):
                raise CommentPermissionError(
                    "GitHub token lacks the required permission.\n"
                    "Add this to your workflow:\n"
                    "permissions:\n"
                    "  contents: read\n"
                    "  pull-requests: write"
                )

            if _is_transient_error(stderr):
                if attempt < self._max_retries - 1:
                    delay = self._base_delay * (2 ** attempt) + random.uniform(0, 0.5)
                    warn(
                        f"GitHub API error (attempt {attempt + 1}/{self._max_retries}), "
                        f"retrying in {delay:.1f}s..."
                    )
                    time.sleep(delay)
                    continue
                raise TransientGitHubError(
                    f"GitHub API returned transient error after {self._max_retries} attempts: {stderr}"
                )

            raise GitHubError(f"gh {' '.join(args[:2])} failed: {stderr.strip()}")

        raise GitHubError("gh retry loop exited unexpectedly")

    def _api_json(self, endpoint: str, *, method: str = "GET", payload: dict[str, Any] | None = None) -> Any:
        args = ["api", endpoint]
        if method != "GET":
            args += ["-X", method]
        stdin = None
        if payload is not None:
            args += ["--input", "-"]
            stdin = json.dumps(payload)
        result = self._run_gh(args, stdin=stdin)
        try:
            return json.loads(result.stdout or "null")
        except json.JSONDecodeError as exc:
            raise GitHubError(f"invalid JSON from {endpoint}: {exc}") from exc

    def iter_paginated(
        self,
        endpoint: str,
        *,
        per_page: int = PER_PAGE,
        max_pages: int | None = None,
    ) -> Iterator[dict]:
        """Lazily yield items of a paginated list endpoint until a short page.

        With ``max_pages`` set, stopping on a full last page is logged since
        the listing may be incomplete.
        """
        sep = "&" if "?" in endpoint else "?"
        page = 1
        while True:
            if max_pages is not None and page > max_pages:
                warn(f"Stopped listing {endpoint} after {max_pages} pages; results may be incomplete")
                return
            payload = self._api_json(f"{endpoint}{sep}per_page={per_page}&page={page}")
            if not isinstance(payload, list):
                raise GitHubError(f"expected a list from {endpoint}, got {type(payload).__name__}")
            for item in payload:
                if isinstance(item, dict):
                    yield item
            if len(payload) < per_page:
                return
            page += 1

    def get_pull_request(self, pr_number: int) -> dict:
        data = self._api_json(f"repos/{self.repository}/pulls/{pr_number}")
        if not isinstance(data, dict):
            raise GitHubError(f"unexpected pull request payload for #{pr_number}")
        return data

    def list_files(self, pr_number: int) -> list[ChangedFile]:
        """All changed files of the pull request (pagination fully drained)."""
        items = self.iter_paginated(f"repos/{self.repository}/pulls/{pr_number}/files")
        return [ChangedFile.from_github(item) for item in items]

    def list_comments(self, pr_number: int) -> list[dict]:
        return list(self.iter_paginated(f"repos/{self.repository}/issues/{pr_number}/comments"))

    def create_comment(self, pr_number: int, body: str) -> dict:
        return self._api_json(
            f"repos/{self.repository}/issues/{pr_number}/comments",
            method="POST",
            payload={"body": body},
        )

    def update_comment(self, comment_id: int, body: str) -> dict:
        return self._api_json(
            f"repos/{self.repository}/issues/comments/{comment_id}",
            method="PATCH",
            payload={"body": body},
        )
