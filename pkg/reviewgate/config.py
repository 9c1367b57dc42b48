"""Settings for one review run.

Inputs come from the Actions environment (``INPUT_*`` variables) layered over
an optional YAML file. Parsing and validation live here so the pipeline only
sees typed values.
"""

from __future__ import annotations

import json
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .annotations import warn
from .budget import DEFAULT_MAX_CHARS as DEFAULT_MAX_DIFF_CHARS
from .budget import DEFAULT_MAX_FILE_CHARS, DEFAULT_MAX_TOTAL_CHARS

DEFAULT_MODEL = "gpt-5-mini"
DEFAULT_FAIL_ON_SEVERITY = '["high","critical","security"]'
DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_SERVER_URL = "https://github.com"

_PR_REF_RE = re.compile(r"refs/pull/(\d+)/merge")
_LEADING_INT_RE = re.compile(r"^\s*(\d+)")


class ConfigError(RuntimeError):
    """Invalid or missing configuration."""


@dataclass(frozen=True)
class ReviewConfig:
    """Values read from the optional YAML config file."""

    model: str | None = None
    fail_on_severity: str | None = None
    max_file_chars: int = DEFAULT_MAX_FILE_CHARS
    max_total_chars: int = DEFAULT_MAX_TOTAL_CHARS
    max_diff_chars: int = DEFAULT_MAX_DIFF_CHARS


@dataclass(frozen=True)
class Settings:
    """Resolved settings for a single pipeline run."""

    github_token: str
    openai_api_key: str
    repository: str
    pr_number: int
    model: str = DEFAULT_MODEL
    fail_on_severity: str = DEFAULT_FAIL_ON_SEVERITY
    max_file_chars: int = DEFAULT_MAX_FILE_CHARS
    max_total_chars: int = DEFAULT_MAX_TOTAL_CHARS
    max_diff_chars: int = DEFAULT_MAX_DIFF_CHARS
    openai_base_url: str = DEFAULT_OPENAI_BASE_URL
    server_url: str = DEFAULT_SERVER_URL
    workspace: Path = field(default_factory=Path.cwd)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        require_openai: bool = True,
    ) -> "Settings":
        env = os.environ if environ is None else environ

        config_file = _env(env, "INPUT_CONFIG_FILE")
        file_cfg = load_review_config(Path(config_file)) if config_file else ReviewConfig()

        github_token = _env(env, "INPUT_GITHUB_TOKEN") or _env(env, "GITHUB_TOKEN")
        if not github_token:
            raise ConfigError("Missing github_token input")
        openai_api_key = _env(env, "INPUT_OPENAI_API_KEY") or _env(env, "OPENAI_API_KEY")
        if require_openai and not openai_api_key:
            raise ConfigError("Missing openai_api_key input")

        repository = _env(env, "GITHUB_REPOSITORY")
        if not repository or "/" not in repository or repository.startswith("/") or repository.endswith("/"):
            raise ConfigError("Missing or invalid GITHUB_REPOSITORY (expected owner/repo)")

        max_diff_raw = _env(env, "INPUT_MAX_DIFF_CHARS")
        max_diff_chars = (
            _parse_positive_int(max_diff_raw, "INPUT_MAX_DIFF_CHARS")
            if max_diff_raw
            else file_cfg.max_diff_chars
        )

        return cls(
            github_token=github_token,
            openai_api_key=openai_api_key,
            repository=repository,
            pr_number=resolve_pr_number(env),
            model=_env(env, "INPUT_AI_MODEL") or file_cfg.model or DEFAULT_MODEL,
            fail_on_severity=(
                _env(env, "INPUT_FAIL_ON_SEVERITY")
                or file_cfg.fail_on_severity
                or DEFAULT_FAIL_ON_SEVERITY
            ),
            max_file_chars=file_cfg.max_file_chars,
            max_total_chars=file_cfg.max_total_chars,
            max_diff_chars=max_diff_chars,
            openai_base_url=(_env(env, "OPENAI_BASE_URL") or DEFAULT_OPENAI_BASE_URL).rstrip("/"),
            server_url=(_env(env, "GITHUB_SERVER_URL") or DEFAULT_SERVER_URL).rstrip("/"),
            workspace=Path(_env(env, "GITHUB_WORKSPACE") or Path.cwd()),
        )


def _env(env: Mapping[str, str], key: str) -> str:
    return (env.get(key) or "").strip()


def _parse_positive_int(raw: str, ctx: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{ctx}: expected integer, got {raw!r}") from None
    if value < 1:
        raise ConfigError(f"{ctx}: must be >= 1")
    return value


def _read_event_pr_number(path: str) -> int | None:
    try:
        event = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        warn(f"Could not read GitHub event: {exc}")
        return None
    if not isinstance(event, dict):
        return None
    pull_request = event.get("pull_request")
    if not isinstance(pull_request, dict):
        return None
    number = pull_request.get("number")
    if isinstance(number, int) and not isinstance(number, bool):
        return number
    return None


def resolve_pr_number(env: Mapping[str, str]) -> int:
    """Pull request number from the event payload, then ref, ref name, PR_NUMBER."""
    event_path = _env(env, "GITHUB_EVENT_PATH")
    if event_path:
        number = _read_event_pr_number(event_path)
        if number is not None:
            return number

    ref_match = _PR_REF_RE.search(_env(env, "GITHUB_REF"))
    if ref_match:
        return int(ref_match.group(1))

    for key in ("GITHUB_REF_NAME", "PR_NUMBER"):
        match = _LEADING_INT_RE.match(_env(env, key))
        if match:
            return int(match.group(1))

    raise ConfigError("Unable to determine pull request number from GitHub event or environment")


# --- YAML config file ---


def _require_mapping(value: Any, ctx: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigError(f"{ctx}: expected mapping")
    return value


def _require_str(value: Any, ctx: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"{ctx}: expected string")
    s = value.strip()
    if not s:
        raise ConfigError(f"{ctx}: must be non-empty")
    return s


def _require_str_list(value: Any, ctx: str) -> list[str]:
    if not isinstance(value, list):
        raise ConfigError(f"{ctx}: expected list")
    return [_require_str(item, f"{ctx}[{idx}]") for idx, item in enumerate(value)]


def _require_positive_int(value: Any, ctx: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{ctx}: expected integer")
    if value < 1:
        raise ConfigError(f"{ctx}: must be >= 1")
    return value


def _load_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text())
    except FileNotFoundError:
        raise ConfigError(f"missing config file: {path}") from None
    except OSError as e:
        raise ConfigError(f"unable to read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e


def load_review_config(path: Path) -> ReviewConfig:
    """Load review config."""
    raw = _load_yaml(path)
    if raw is None:
        return ReviewConfig()
    cfg = _require_mapping(raw, "config")

    model = cfg.get("model")
    fail_on = cfg.get("fail_on_severity")
    limits = _require_mapping(cfg.get("limits") or {}, "limits")

    def _limit(key: str, default: int) -> int:
        value = limits.get(key)
        if value is None:
            return default
        return _require_positive_int(value, f"limits.{key}")

    return ReviewConfig(
        model=_require_str(model, "model") if model is not None else None,
        fail_on_severity=(
            json.dumps(_require_str_list(fail_on, "fail_on_severity")) if fail_on is not None else None
        ),
        max_file_chars=_limit("max_file_chars", DEFAULT_MAX_FILE_CHARS),
        max_total_chars=_limit("max_total_chars", DEFAULT_MAX_TOTAL_CHARS),
        max_diff_chars=_limit("max_diff_chars", DEFAULT_MAX_DIFF_CHARS),
    )
