"""Assemble the bounded diff payload sent to the model.

Three independent ceilings, applied in order:

1. per file: an oversized patch is replaced by a stub note;
2. total: accumulation stops before the running patch size would exceed the
   ceiling, remaining files are dropped wholesale;
3. global: the assembled blob is cut with an explicit suffix.

The ordering keeps as many complete files as possible while guaranteeing the
result never exceeds the global ceiling.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .annotations import info
from .models import ChangedFile
from .redact import redact

DEFAULT_MAX_FILE_CHARS = 50_000
DEFAULT_MAX_TOTAL_CHARS = 150_000
DEFAULT_MAX_CHARS = 180_000

TOO_LARGE_NOTE = "[File too large for review]"
FILES_TRUNCATED_NOTE = "\n[Additional files truncated for size]\n"
TRUNCATED_SUFFIX = "\n\n[...truncated...]"


@dataclass(frozen=True)
class BudgetLimits:
    """Character ceilings for the review payload."""

    max_file_chars: int = DEFAULT_MAX_FILE_CHARS
    max_total_chars: int = DEFAULT_MAX_TOTAL_CHARS
    max_chars: int = DEFAULT_MAX_CHARS

    def __post_init__(self) -> None:
        for name in ("max_file_chars", "max_total_chars", "max_chars"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"{name} must be a positive integer")


def _file_header(path: str) -> str:
    return f"\n--- a/{path}\n+++ b/{path}\n"


def truncate(text: str, max_chars: int) -> str:
    """Cut text so the result, suffix included, fits in max_chars."""
    if len(text) <= max_chars:
        return text
    keep = max_chars - len(TRUNCATED_SUFFIX)
    if keep <= 0:
        return text[:max_chars]
    return text[:keep] + TRUNCATED_SUFFIX


def build_payload(files: Iterable[ChangedFile], limits: BudgetLimits | None = None) -> str:
    """Concatenate per-file patches under the per-file and total ceilings."""
    limits = limits or BudgetLimits()
    parts: list[str] = []
    total = 0
    for changed in files:
        patch = changed.patch
        if not patch:
            continue
        if len(patch) > limits.max_file_chars:
            info(f"Skipping {changed.path}: patch is {len(patch)} chars (limit {limits.max_file_chars})")
            parts.append(f"{_file_header(changed.path)}{TOO_LARGE_NOTE}\n")
            continue
        if total + len(patch) > limits.max_total_chars:
            info(f"Payload total limit {limits.max_total_chars} reached at {changed.path}; dropping remaining files")
            parts.append(FILES_TRUNCATED_NOTE)
            break
        parts.append(f"{_file_header(changed.path)}{patch}\n")
        total += len(patch)
    return "".join(parts)


def prepare_payload(files: Iterable[ChangedFile], limits: BudgetLimits | None = None) -> str:
    """Redact each patch, assemble under budget, then apply the global ceiling."""
    limits = limits or BudgetLimits()
    redacted = [
        ChangedFile(path=changed.path, patch=redact(changed.patch) if changed.patch else changed.patch)
        for changed in files
    ]
    return truncate(build_payload(redacted, limits), limits.max_chars)
