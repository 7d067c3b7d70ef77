"""
sshgate Gemini Judge

Calls the Gemini generateContent REST endpoint with httpx:

    POST {base_url}/models/{model}:generateContent
    x-goog-api-key: <key>

The system prompt travels as systemInstruction and JSON output is
requested through generationConfig.responseMimeType.
"""

from __future__ import annotations

from typing import Any

import httpx

from sshgate.exceptions import JudgeUnavailableError
from sshgate.judge.base import JudgeProvider, JudgeProviderConfig


class GeminiJudge(JudgeProvider):
    """Google Gemini judge over the public REST API."""

    DEFAULT_MODEL = "gemini-2.0-flash"
    DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(
        self,
        config: JudgeProviderConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(config)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self._config.timeout_seconds)

    @property
    def endpoint(self) -> str:
        base = (self._config.base_url or self.DEFAULT_BASE_URL).rstrip("/")
        return f"{base}/models/{self._config.model}:generateContent"

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _complete(self, system: str, prompt: str) -> str:
        body: dict[str, Any] = {
            "systemInstruction": {"parts": [{"text": system}]},
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "temperature": 0,
                "maxOutputTokens": self._config.max_tokens,
            },
        }
        response = await self._client.post(
            self.endpoint,
            json=body,
            headers={"x-goog-api-key": self._config.api_key or ""},
        )
        if response.status_code != 200:
            raise JudgeUnavailableError(
                self.name,
                f"Gemini returned HTTP {response.status_code}",
                details={"body": response.text[:500]},
            )
        return _candidate_text(response.json())


def _candidate_text(payload: dict[str, Any]) -> str:
    """Concatenated text parts of the first candidate."""
    candidates = payload.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict))
