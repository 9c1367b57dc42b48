"""Command-line entry point for the review gate.

Usage:
    reviewgate [--dry-run] [--response-file PATH]

Exit codes: 0 pass, 1 blocking findings or a failed run, 2 invalid configuration.
"""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Mapping
from pathlib import Path

from .annotations import error
from .config import ConfigError, Settings
from .github import CommentPermissionError, GitHubClient, GitHubError
from .model import ModelClient, ModelError, StaticResponse
from .pipeline import run_review

EXIT_FAILED = 1
EXIT_USAGE = 2


def parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="reviewgate", description="AI code review gate for a pull request.")
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the comment body instead of posting it",
    )
    p.add_argument(
        "--response-file",
        default="",
        help="Interpret a saved model response instead of calling the model",
    )
    return p.parse_args(argv)


def main(argv: list[str] | None = None, environ: Mapping[str, str] | None = None) -> int:
    args = parse_args(argv)
    env = os.environ if environ is None else environ

    try:
        settings = Settings.from_env(env, require_openai=not args.response_file)
    except ConfigError as e:
        error(f"Configuration error: {e}")
        return EXIT_USAGE

    if args.response_file:
        try:
            text = Path(args.response_file).read_text(encoding="utf-8")
        except OSError as e:
            error(f"Unable to read response file {args.response_file}: {e}")
            return EXIT_USAGE
        model = StaticResponse(text, model=settings.model)
    else:
        model = ModelClient(settings.openai_api_key, settings.model, settings.openai_base_url)

    github = GitHubClient(settings.repository, settings.github_token)
    try:
        return run_review(settings, github, model, dry_run=args.dry_run)
    except CommentPermissionError as e:
        error(str(e).replace("\n", " "))
        return EXIT_FAILED
    except (GitHubError, ModelError) as e:
        error(f"AI review failed: {e}")
        return EXIT_FAILED
    except OSError as e:
        error(f"AI review failed writing the report: {e}")
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
