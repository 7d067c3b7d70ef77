"""
sshgate OpenAI Judge

Wraps the OpenAI chat completions API behind the JudgeProvider
interface (bearer-token auth). Also serves any OpenAI-compatible endpoint
via base_url, which is how the Ollama judge reaches a local model.
"""

from __future__ import annotations

from typing import Any

from openai import AsyncOpenAI

from sshgate.judge.base import JudgeProvider, JudgeProviderConfig


class OpenAIJudge(JudgeProvider):
    """OpenAI and OpenAI-compatible judge."""

    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        config: JudgeProviderConfig | None = None,
        client: AsyncOpenAI | None = None,
    ):
        super().__init__(config)
        self._owns_client = client is None
        self._client = client or self._create_client()

    def _create_client(self) -> AsyncOpenAI:
        kwargs: dict[str, Any] = {
            "timeout": self._config.timeout_seconds,
            "max_retries": 0,
        }
        if self._config.api_key:
            kwargs["api_key"] = self._config.api_key
        if self._config.base_url:
            kwargs["base_url"] = self._config.base_url
        return AsyncOpenAI(**kwargs)

    @property
    def client(self) -> AsyncOpenAI:
        return self._client

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.close()

    async def _complete(self, system: str, prompt: str) -> str:
        response = await self._client.chat.completions.create(
            model=self._config.model,
            max_tokens=self._config.max_tokens,
            temperature=0,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
