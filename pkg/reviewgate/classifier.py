"""Decide which changed files may be sent to the model.

Allow-list posture: a path is reviewed only when nothing marks it sensitive
and its extension or basename is explicitly allowed.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .annotations import info
from .models import ChangedFile

CREDENTIAL_DOTFILES = {".npmrc", ".pypirc", ".netrc"}

SECRET_SEGMENTS = {"secret", "secrets"}

EXCLUDED_DIRS = {
    "node_modules",
    "dist",
    "build",
    "coverage",
    "vendor",
    ".git",
    ".venv",
    "__pycache__",
    ".next",
}

KEY_EXTENSIONS = {".pem", ".key", ".pfx", ".p12", ".crt", ".cert", ".keystore", ".jks"}

KEY_BASENAME_PREFIXES = ("id_rsa", "id_dsa", "id_ecdsa", "id_ed25519")

LOCKFILES = {
    "package-lock.json",
    "pnpm-lock.yaml",
    "yarn.lock",
    "gemfile.lock",
    "cargo.lock",
    "go.sum",
    "composer.lock",
    "poetry.lock",
}

ALLOWED_EXTENSIONS = {
    ".js", ".ts", ".tsx", ".jsx", ".vue",
    ".py", ".go", ".rb", ".java", ".kt", ".swift", ".rs", ".php", ".cs",
    ".sh", ".sql", ".md",
    ".json", ".yml", ".yaml",
}

ALLOWED_BASENAMES = {"dockerfile", "makefile", "package.json"}

REASON_SENSITIVE = "sensitive pattern"
REASON_NOT_ALLOWED = "not allowed extension"


@dataclass(frozen=True)
class Classification:
    """Outcome of classifying one path."""

    included: bool
    reason: str | None = None


def _segments(path: str) -> list[str]:
    normalized = path.replace("\\", "/").strip()
    if normalized.startswith("./"):
        normalized = normalized[2:]
    return [seg.lower() for seg in normalized.split("/") if seg]


def _extension(basename: str) -> str:
    dot = basename.rfind(".")
    if dot <= 0:
        return ""
    return basename[dot:]


def is_sensitive(path: str) -> bool:
    """Match sensitive patterns against whole path segments."""
    segments = _segments(path)
    if not segments:
        return False
    basename = segments[-1]
    directories = segments[:-1]

    if basename == ".env" or basename.startswith(".env."):
        return True
    if basename in CREDENTIAL_DOTFILES:
        return True
    if any(seg in SECRET_SEGMENTS for seg in segments):
        return True
    if any(seg in EXCLUDED_DIRS for seg in directories):
        return True
    if _extension(basename) in KEY_EXTENSIONS:
        return True
    if basename.startswith(KEY_BASENAME_PREFIXES):
        return True
    return basename in LOCKFILES


def is_allowed(path: str) -> bool:
    segments = _segments(path)
    if not segments:
        return False
    basename = segments[-1]
    if basename in ALLOWED_BASENAMES or basename.startswith("dockerfile."):
        return True
    return _extension(basename) in ALLOWED_EXTENSIONS


def classify_path(path: str) -> Classification:
    """Classify a changed-file path as included or excluded(reason)."""
    if is_sensitive(path):
        return Classification(included=False, reason=REASON_SENSITIVE)
    if not is_allowed(path):
        return Classification(included=False, reason=REASON_NOT_ALLOWED)
    return Classification(included=True)


def filter_safe_files(files: Iterable[ChangedFile]) -> list[ChangedFile]:
    """Keep reviewable files; log every exclusion for audit."""
    included: list[ChangedFile] = []
    excluded: list[str] = []
    for changed in files:
        result = classify_path(changed.path)
        if result.included:
            included.append(changed)
        else:
            excluded.append(f"{changed.path} ({result.reason})")

    if excluded:
        info(f"Excluded {len(excluded)} files from AI review:")
        for entry in excluded:
            info(f"  - {entry}")
    info(f"Including {len(included)} files in AI review")
    return included
