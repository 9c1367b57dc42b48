"""Tests for the changed-file classifier."""
from __future__ import annotations

import pytest

from pkg.reviewgate.classifier import (
    REASON_NOT_ALLOWED,
    REASON_SENSITIVE,
    classify_path,
    filter_safe_files,
    is_sensitive,
)
from pkg.reviewgate.models import ChangedFile


@pytest.mark.parametrize(
    "path",
    [
        "src/app.ts",
        "lib/worker.py",
        "Dockerfile",
        "docker/Dockerfile.prod",
        "Makefile",
        "package.json",
        ".github/workflows/ci.yml",
        "src/secretary.py",
        "docs/README.md",
    ],
)
def test_included(path):
    assert classify_path(path).included is True


@pytest.mark.parametrize(
    "path",
    [
        "secrets/db.yml",
        "config/secret/app.json",
        ".env",
        "deploy/.env.production",
        "home/.npmrc",
        ".pypirc",
        "vendor/lib.go",
        "node_modules/left-pad/index.js",
        "web/dist/bundle.js",
        "certs/server.pem",
        "keys/id_rsa.pub",
        "package-lock.json",
        "Cargo.lock",
        "go.sum",
    ],
)
def test_sensitive_excluded(path):
    result = classify_path(path)
    assert result.included is False
    assert result.reason == REASON_SENSITIVE


@pytest.mark.parametrize("path", ["assets/logo.png", "bin/tool", "notes.txt", ""])
def test_not_allowed_excluded(path):
    result = classify_path(path)
    assert result.included is False
    assert result.reason == REASON_NOT_ALLOWED


def test_segment_exclusion_beats_allowed_extension():
    assert is_sensitive("vendor/lib.go")
    assert not is_sensitive("src/vendors.go")


def test_excluded_dir_name_as_basename_is_not_sensitive():
    assert not is_sensitive("scripts/build")


def test_windows_separators():
    assert classify_path("secrets\\db.yml").included is False


def test_filter_safe_files_logs_exclusions(capsys):
    files = [
        ChangedFile(path="src/app.ts", patch="+x"),
        ChangedFile(path="secrets/db.yml", patch="+y"),
        ChangedFile(path="logo.png"),
    ]
    kept = filter_safe_files(files)
    assert [f.path for f in kept] == ["src/app.ts"]

    err = capsys.readouterr().err
    assert "Excluded 2 files from AI review:" in err
    assert "secrets/db.yml (sensitive pattern)" in err
    assert "logo.png (not allowed extension)" in err
    assert "Including 1 files in AI review" in err
