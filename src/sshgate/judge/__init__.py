"""
sshgate Judge

Optional LLM judge consulted before a tool call is executed. One
provider per reasoning service, selected once at startup.

Usage:
    from sshgate.config import JudgeConfig
    from sshgate.judge import load_judge_gate

    gate = load_judge_gate(JudgeConfig.from_env())
    verdict = await gate.check("run_ssh_command", params, invocation)
"""

from __future__ import annotations

from sshgate.config import JUDGE_ENV_PREFIX, JudgeConfig, JudgeService
from sshgate.exceptions import ConfigurationError
from sshgate.judge.base import (
    SYSTEM_PROMPT,
    JudgeProvider,
    JudgeProviderConfig,
    build_prompt,
    parse_verdict,
)
from sshgate.judge.claude import ClaudeJudge
from sshgate.judge.gate import JudgeGate, load_judge_gate

__all__ = [
    "SYSTEM_PROMPT",
    "ClaudeJudge",
    "JudgeGate",
    "JudgeProvider",
    "JudgeProviderConfig",
    "build_prompt",
    "create_judge",
    "load_judge_gate",
    "parse_verdict",
]


def create_judge(config: JudgeConfig) -> JudgeProvider:
    """Factory function to create the judge provider for the configured service.

    Raises:
        ConfigurationError: no service selected, missing credential, or
            the client could not be constructed.
    """
    service = config.service
    if service is None:
        raise ConfigurationError(JUDGE_ENV_PREFIX + "SERVICE", "no judge service selected")
    if service.requires_api_key and not config.api_key:
        raise ConfigurationError(
            JUDGE_ENV_PREFIX + "API_KEY", f"an API key is required for {service.value}"
        )

    provider_config = JudgeProviderConfig(
        api_key=config.api_key or None,
        model=config.model,
        base_url=config.base_url or None,
        timeout_seconds=config.timeout_seconds,
    )

    try:
        if service == JudgeService.ANTHROPIC:
            return ClaudeJudge(provider_config)
        elif service == JudgeService.OPENAI:
            from sshgate.judge.openai import OpenAIJudge
            return OpenAIJudge(provider_config)
        elif service == JudgeService.OLLAMA:
            from sshgate.judge.ollama import OllamaJudge
            return OllamaJudge(provider_config)
        else:
            from sshgate.judge.gemini import GeminiJudge
            return GeminiJudge(provider_config)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(JUDGE_ENV_PREFIX + "SERVICE", f"cannot create {service.value} client: {e}") from e
