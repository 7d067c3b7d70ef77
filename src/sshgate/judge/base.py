"""
sshgate Judge Provider Base

Abstract interface for the reasoning services the judge gate consults.
Every provider turns (system prompt, user prompt) into raw text; the base
class owns the prompt and the verdict parsing so all providers judge the
same way.

Key design decisions:
- Async-first (all providers are async)
- Exactly one attempt per call: no retries, no backoff. The gate bounds
  the call with its own deadline and applies the fail-mode.
- Any provider failure surfaces as JudgeUnavailableError
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ValidationError

from sshgate.exceptions import JudgeUnavailableError
from sshgate.models import InvocationRequest, JudgeVerdict

SYSTEM_PROMPT = (
    "You are a security judge for a remote administration system that runs commands "
    "on Linux hosts over SSH and on the local machine. "
    "Evaluate tool calls for safety and appropriateness. Consider:\n"
    "- Destructive operations (rm, mkfs, dd, truncation, mass deletion)\n"
    "- Sensitive system paths (/etc, /root, /boot, credential and key files)\n"
    "- Production vs development environments\n"
    "- Network operations that could affect connectivity (firewall, routes, sshd)\n"
    "- File operations that could overwrite critical files\n"
    "\n"
    'Return JSON only: {"allowed": true/false, "reason": "brief explanation"}'
)

_VERDICT_INSTRUCTION = (
    'Evaluate if this tool call should be allowed. '
    'Return JSON: {"allowed": true/false, "reason": "brief explanation"}'
)


class JudgeProviderConfig(BaseModel):
    """Configuration for a judge provider."""
    api_key: str | None = None
    model: str = ""
    base_url: str | None = None
    timeout_seconds: float = 10.0
    max_tokens: int = 256


def build_prompt(
    tool_name: str,
    parameters: dict[str, Any],
    invocation: InvocationRequest | None = None,
) -> str:
    """User prompt describing one pending tool call."""
    lines = [
        f"Tool: {tool_name}",
        "Parameters:",
        json.dumps(parameters, indent=2, sort_keys=True, default=str),
    ]
    if invocation is not None:
        lines += ["", "Resolved command line:", invocation.describe()]
        if invocation.remote_host:
            lines.append(f"Target host: {invocation.remote_host}")
    lines += ["", _VERDICT_INSTRUCTION]
    return "\n".join(lines)


def parse_verdict(text: str) -> JudgeVerdict:
    """Parse a judge answer into a verdict.

    The whole text is tried as JSON first, then the span from the first
    '{' to the last '}' (models like to wrap JSON in prose or code fences).

    Raises ValueError if no well-formed verdict is found.
    """
    payload = _load_json_object(text)
    if payload is None:
        start = text.find("{")
        end = text.rfind("}")
        if start != -1 and end > start:
            payload = _load_json_object(text[start:end + 1])
    if payload is None:
        raise ValueError("judge response is not a JSON object")

    if "allowed" not in payload:
        raise ValueError("judge response has no 'allowed' field")
    reason = payload.get("reason")
    try:
        return JudgeVerdict(allowed=payload["allowed"], reason="" if reason is None else reason)
    except ValidationError as e:
        raise ValueError(f"malformed judge verdict: {e.errors()[0]['msg']}") from e


def _load_json_object(text: str) -> dict[str, Any] | None:
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None
    return value if isinstance(value, dict) else None


class JudgeProvider(ABC):
    """Abstract base class for judge providers.

    Subclasses implement _complete(); evaluate() adds the shared system
    prompt and verdict parsing.
    """

    DEFAULT_MODEL = ""

    def __init__(self, config: JudgeProviderConfig | None = None):
        self._config = config or JudgeProviderConfig()
        if not self._config.model:
            self._config = self._config.model_copy(update={"model": self.DEFAULT_MODEL})

    @property
    def name(self) -> str:
        """Human-readable provider name."""
        return self.__class__.__name__

    @property
    def model(self) -> str:
        """Current model name."""
        return self._config.model

    @property
    def config(self) -> JudgeProviderConfig:
        return self._config

    async def aclose(self) -> None:
        """Release network clients the provider created. Injected clients are left open."""

    @abstractmethod
    async def _complete(self, system: str, prompt: str) -> str:
        """Provider-specific single request. Returns the raw answer text."""
        ...

    async def evaluate(self, prompt: str) -> JudgeVerdict:
        """Ask the service for a verdict on one prompt.

        Raises JudgeUnavailableError if the service fails or answers
        something that is not a verdict.
        """
        try:
            text = await self._complete(SYSTEM_PROMPT, prompt)
        except JudgeUnavailableError:
            raise
        except Exception as e:
            raise JudgeUnavailableError(
                self.name, f"{self.name} request failed: {e}", details={"error_type": type(e).__name__}
            ) from e

        try:
            return parse_verdict(text)
        except ValueError as e:
            raise JudgeUnavailableError(
                self.name, f"Failed to parse judge response: {e}", details={"response": text[:500]}
            ) from e
