"""Audit report: raw model text next to the interpreted review."""

from __future__ import annotations

import json
import time
from datetime import datetime, timezone
from pathlib import Path

from .annotations import info
from .models import Review
from .render import DEFAULT_ARTIFACT_NAME


def report_filename(epoch_ms: int) -> str:
    return f"{DEFAULT_ARTIFACT_NAME}-{epoch_ms}.json"


def build_report(
    raw_response: str,
    review: Review,
    *,
    model: str,
    strategy: str,
    now: datetime | None = None,
) -> dict:
    now = now or datetime.now(timezone.utc)
    return {
        "raw_response": raw_response,
        "parsed": review.to_dict(),
        "timestamp": now.astimezone(timezone.utc).isoformat().replace("+00:00", "Z"),
        "model": model,
        "strategy": strategy,
    }


def write_report(
    workspace: Path,
    raw_response: str,
    review: Review,
    *,
    model: str,
    strategy: str,
    epoch_ms: int | None = None,
) -> Path:
    """Write the report JSON into the workspace and return its path."""
    epoch_ms = int(time.time() * 1000) if epoch_ms is None else epoch_ms
    now = datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc)
    report = build_report(raw_response, review, model=model, strategy=strategy, now=now)

    path = Path(workspace) / report_filename(epoch_ms)
    path.write_text(json.dumps(report, indent=2) + "\n", encoding="utf-8")
    info(f"AI review report written to: {path}")
    info(f"Upload it with actions/upload-artifact (name: {DEFAULT_ARTIFACT_NAME})")
    return path
