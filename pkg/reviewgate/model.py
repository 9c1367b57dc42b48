"""Model client for the OpenAI Responses API (plain-text output)."""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from typing import Any

from .config import DEFAULT_MODEL, DEFAULT_OPENAI_BASE_URL

REQUEST_TIMEOUT = 300


class ModelError(RuntimeError):
    """The model call failed or returned nothing usable."""


def extract_output_text(payload: Any) -> str:
    """Concatenated text of a Responses API payload."""
    if not isinstance(payload, dict):
        return ""
    direct = payload.get("output_text")
    if isinstance(direct, str) and direct.strip():
        return direct

    parts: list[str] = []
    for item in payload.get("output") or []:
        if not isinstance(item, dict):
            continue
        for content in item.get("content") or []:
            if not isinstance(content, dict):
                continue
            if content.get("type") in ("output_text", "text") and isinstance(content.get("text"), str):
                parts.append(content["text"])
    return "".join(parts)


class ModelClient:
    """Sends one review prompt and returns the raw response text."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_OPENAI_BASE_URL,
        *,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _post(self, path: str, body: dict) -> dict:
        url = f"{self.base_url}{path}"
        req = urllib.request.Request(
            url,
            data=json.dumps(body).encode("utf-8"),
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            method="POST",
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return json.loads(resp.read())
        except urllib.error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            raise ModelError(f"HTTP {exc.code} from {url}: {detail}") from exc
        except urllib.error.URLError as exc:
            raise ModelError(f"Request failed for {url}: {exc.reason}") from exc
        except json.JSONDecodeError as exc:
            raise ModelError(f"Invalid JSON from {url}: {exc}") from exc

    def complete(self, prompt: str) -> str:
        payload = self._post("/responses", {"model": self.model, "input": prompt})
        text = extract_output_text(payload)
        if not text.strip():
            raise ModelError("AI returned empty response")
        return text


class StaticResponse:
    """Replays a saved response instead of calling the model."""

    def __init__(self, text: str, model: str = "recorded") -> None:
        self.text = text
        self.model = model

    def complete(self, prompt: str) -> str:
        if not self.text.strip():
            raise ModelError("AI returned empty response")
        return self.text
