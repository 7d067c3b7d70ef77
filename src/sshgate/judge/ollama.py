"""
sshgate Ollama Judge

Judges with a local model through Ollama's OpenAI-compatible endpoint.
No API key needed.

Default URL: http://localhost:11434/v1
Override with SSHGATE_JUDGE_BASE_URL. A bare host URL gets /v1 appended.
"""

from __future__ import annotations

from sshgate.judge.base import JudgeProvider, JudgeProviderConfig
from sshgate.judge.openai import OpenAIJudge


class OllamaJudge(JudgeProvider):
    """Local Ollama judge, delegating to OpenAIJudge. Model must be pulled first."""

    DEFAULT_MODEL = "llama3.1"
    DEFAULT_BASE_URL = "http://localhost:11434/v1"

    def __init__(self, config: JudgeProviderConfig | None = None):
        super().__init__(config)
        base_url = _openai_compatible_url(self._config.base_url or self.DEFAULT_BASE_URL)
        self._config = self._config.model_copy(update={"base_url": base_url})
        self._delegate = OpenAIJudge(
            self._config.model_copy(update={"api_key": "ollama"})  # ignored by Ollama, required by the SDK
        )

    @property
    def base_url(self) -> str:
        return self._config.base_url or self.DEFAULT_BASE_URL

    async def aclose(self) -> None:
        await self._delegate.aclose()

    async def _complete(self, system: str, prompt: str) -> str:
        return await self._delegate._complete(system, prompt)


def _openai_compatible_url(url: str) -> str:
    url = url.rstrip("/")
    return url if url.endswith("/v1") else url + "/v1"
