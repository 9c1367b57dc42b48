"""Tests for the reviewgate command-line entry point."""
from __future__ import annotations

import pytest

import pkg.reviewgate.cli as cli
from conftest import FakeGitHub
from pkg.reviewgate.github import CommentPermissionError, GitHubError
from pkg.reviewgate.models import ChangedFile
from pkg.reviewgate.render import COMMENT_MARKER


@pytest.fixture
def env(tmp_path):
    return {
        "GITHUB_TOKEN": "ghs_token",
        "GITHUB_REPOSITORY": "octo/widgets",
        "PR_NUMBER": "3",
        "GITHUB_WORKSPACE": str(tmp_path),
    }


@pytest.fixture
def gh(monkeypatch):
    fake = FakeGitHub(files=[ChangedFile(path="src/main.go", patch="+func main() {}\n")])
    monkeypatch.setattr(cli, "GitHubClient", lambda repository, token: fake)
    return fake


def _response_file(tmp_path, text):
    path = tmp_path / "response.txt"
    path.write_text(text)
    return str(path)


def test_blocking_response_exits_1(tmp_path, env, gh):
    response = _response_file(tmp_path, "[CRITICAL] Panic on start - src/main.go:1\nNil map write.\n")
    assert cli.main(["--response-file", response], environ=env) == 1
    assert len(gh.comments) == 1
    assert COMMENT_MARKER in gh.comments[0]["body"]


def test_passing_response_exits_0(tmp_path, env, gh):
    response = _response_file(tmp_path, "OVERALL RISK: LOW\nLGTM")
    assert cli.main(["--response-file", response], environ=env) == 0


def test_missing_configuration_is_usage_error(env, gh, capsys):
    del env["GITHUB_REPOSITORY"]
    assert cli.main([], environ=env) == 2
    assert "::error::Configuration error" in capsys.readouterr().err
    assert gh.comments == []


def test_openai_key_required_without_response_file(env, gh, capsys):
    assert cli.main([], environ=env) == 2
    assert "openai_api_key" in capsys.readouterr().err


def test_config_file_directory_is_usage_error(tmp_path, env, gh, capsys):
    env["INPUT_CONFIG_FILE"] = str(tmp_path)
    response = _response_file(tmp_path, "OVERALL RISK: LOW\nLGTM")
    assert cli.main(["--response-file", response], environ=env) == 2
    assert "::error::Configuration error: unable to read config file" in capsys.readouterr().err


def test_missing_response_file(tmp_path, env, gh):
    assert cli.main(["--response-file", str(tmp_path / "nope.txt")], environ=env) == 2


@pytest.mark.parametrize(
    "exc",
    [GitHubError("gh api failed"), CommentPermissionError("GitHub token lacks the required permission.\nAdd it")],
)
def test_collaborator_failure_exits_1_without_comment(tmp_path, env, gh, capsys, exc):
    def boom(pr_number):
        raise exc

    gh.get_pull_request = boom
    response = _response_file(tmp_path, "OVERALL RISK: LOW\nLGTM")
    assert cli.main(["--response-file", response], environ=env) == 1
    assert gh.comments == []
    err = capsys.readouterr().err
    assert "::error::" in err


def test_dry_run(tmp_path, env, gh, capsys):
    response = _response_file(tmp_path, "OVERALL RISK: LOW\nLGTM")
    assert cli.main(["--dry-run", "--response-file", response], environ=env) == 0
    assert gh.comments == []
    assert COMMENT_MARKER in capsys.readouterr().out
