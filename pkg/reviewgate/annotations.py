"""stderr output helpers.

Plain progress lines go to stderr; anything a maintainer should see in the
Actions UI is emitted as a workflow command annotation.
"""

from __future__ import annotations

import sys


def info(message: str) -> None:
    """Info."""
    print(message, file=sys.stderr)


def notice(message: str) -> None:
    """Notice."""
    print(f"::notice::{message}", file=sys.stderr)


def warn(message: str) -> None:
    """Warn."""
    print(f"::warning::{message}", file=sys.stderr)


def error(message: str) -> None:
    """Error."""
    print(f"::error::{message}", file=sys.stderr)
