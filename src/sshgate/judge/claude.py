"""
sshgate Claude Judge

Wraps the Anthropic SDK (anthropic.AsyncAnthropic) behind the
JudgeProvider interface. Authenticates with the configured API key
(x-api-key header).
"""

from __future__ import annotations

from typing import Any

import anthropic

from sshgate.judge.base import JudgeProvider, JudgeProviderConfig


class ClaudeJudge(JudgeProvider):
    """Anthropic Claude judge via the official SDK."""

    DEFAULT_MODEL = "claude-sonnet-4-20250514"

    def __init__(
        self,
        config: JudgeProviderConfig | None = None,
        client: anthropic.AsyncAnthropic | None = None,
    ):
        super().__init__(config)
        kwargs: dict[str, Any] = {
            "api_key": self._config.api_key or None,
            "timeout": self._config.timeout_seconds,
            "max_retries": 0,
        }
        if self._config.base_url:
            kwargs["base_url"] = self._config.base_url
        self._owns_client = client is None
        self._client = client or anthropic.AsyncAnthropic(**kwargs)

    @property
    def client(self) -> anthropic.AsyncAnthropic:
        return self._client

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.close()

    async def _complete(self, system: str, prompt: str) -> str:
        response = await self._client.messages.create(
            model=self._config.model,
            max_tokens=self._config.max_tokens,
            system=system,
            messages=[{"role": "user", "content": prompt}],
            temperature=0,
        )
        return "".join(block.text for block in response.content if block.type == "text")
