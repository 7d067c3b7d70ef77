"""
sshgate Judge Gate

Asks the configured judge whether a pending tool call may proceed:

    Dispatcher → JudgeGate.check → JudgeProvider.evaluate → allow / deny

- Tools outside the gated set, or a disabled judge, bypass the gate
  without any network call.
- A gated call makes exactly one judge request, bounded by the
  configured timeout.
- When no verdict can be obtained the fail-mode decides: "open" lets the
  call through (logged at WARNING), "closed" denies it with
  "Judge unavailable: <detail>".
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from sshgate.config import FailMode, JudgeConfig
from sshgate.exceptions import ConfigurationError, JudgeUnavailableError
from sshgate.judge.base import JudgeProvider, build_prompt
from sshgate.models import InvocationRequest, JudgeVerdict, VerdictSource

logger = logging.getLogger(__name__)


class JudgeGate:
    """Allow/deny gate in front of the executor.

    Immutable after construction; safe to share between concurrent calls.
    """

    def __init__(self, config: JudgeConfig, provider: JudgeProvider | None = None):
        self._config = config
        self._provider = provider

    @classmethod
    def disabled(cls) -> JudgeGate:
        return cls(JudgeConfig())

    @property
    def config(self) -> JudgeConfig:
        return self._config

    @property
    def provider(self) -> JudgeProvider | None:
        return self._provider

    @property
    def enabled(self) -> bool:
        return self._config.enabled and self._provider is not None

    def applies_to(self, tool_name: str) -> bool:
        """True if calls to this tool go to the judge."""
        return self.enabled and self._config.applies_to(tool_name)

    async def check(
        self,
        tool_name: str,
        parameters: dict[str, Any],
        invocation: InvocationRequest | None = None,
    ) -> JudgeVerdict:
        """Decide whether a tool call may run.

        Never raises for judge failures: they are resolved into a verdict
        according to the fail-mode.
        """
        if not self.applies_to(tool_name):
            return JudgeVerdict(allowed=True, source=VerdictSource.BYPASS)

        assert self._provider is not None
        prompt = build_prompt(tool_name, parameters, invocation)
        timeout = self._config.timeout_seconds

        try:
            verdict = await asyncio.wait_for(self._provider.evaluate(prompt), timeout=timeout)
        except TimeoutError:
            return self._unavailable(tool_name, f"LLM judge timeout after {timeout:g}s")
        except JudgeUnavailableError as e:
            return self._unavailable(tool_name, str(e))

        logger.info(
            "Judge %s %s", "allowed" if verdict.allowed else "denied", tool_name,
            extra={
                "tool_name": tool_name,
                "provider": self._provider.name,
                "allowed": verdict.allowed,
                "verdict_source": verdict.source.value,
            },
        )
        return verdict

    async def aclose(self) -> None:
        if self._provider is not None:
            await self._provider.aclose()

    def _unavailable(self, tool_name: str, detail: str) -> JudgeVerdict:
        extra = {
            "tool_name": tool_name,
            "provider": self._provider.name if self._provider else None,
            "fail_mode": self._config.fail_mode.value,
            "error": detail,
        }
        if self._config.fail_mode == FailMode.CLOSED:
            logger.error("Judge unavailable, denying %s: %s", tool_name, detail, extra=extra)
            return JudgeVerdict(
                allowed=False,
                reason=f"Judge unavailable: {detail}",
                source=VerdictSource.FAIL_CLOSED,
            )

        logger.warning(
            "Judge unavailable (fail_mode=open), allowing %s: %s", tool_name, detail, extra=extra
        )
        return JudgeVerdict(allowed=True, reason=detail, source=VerdictSource.FAIL_OPEN)


def load_judge_gate(config: JudgeConfig) -> JudgeGate:
    """Build the gate once at startup.

    A provider that cannot be constructed disables the judge when the
    fail-mode is open and is fatal (ConfigurationError) when it is closed.
    """
    if not config.enabled:
        logger.info("Judge disabled: no service configured")
        return JudgeGate(config)

    from sshgate.judge import create_judge

    try:
        provider = create_judge(config)
    except ConfigurationError as e:
        if config.fail_mode == FailMode.CLOSED:
            raise
        logger.warning(
            "Failed to initialize judge, tool calls will not be judged: %s", e,
            extra={"fail_mode": config.fail_mode.value, "error": str(e)},
        )
        return JudgeGate(config.model_copy(update={"service": None}))

    logger.info(
        "Judge enabled: %s (%s)", provider.name, provider.model,
        extra={"provider": provider.name, "fail_mode": config.fail_mode.value},
    )
    return JudgeGate(config, provider)
