"""
sshgate Dispatcher

Every tool call runs through the same pipeline:

    1. Registry lookup → unknown tools are rejected
    2. Argument validation → InvalidArgumentError listing the bad fields
    3. Invocation Builder → concrete argv (nothing spawned yet)
    4. Judge Gate → denial raises JudgeRejectedError, nothing is spawned
    5. Executor → outcome mapped to a ToolCallResult
    6. One audit record per call on the sshgate.audit logger

Timeouts, connection failures and non-zero exits come back as results.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from typing import Any

from sshgate.config import JudgeConfig, ServerSettings
from sshgate.exceptions import InvalidArgumentError, JudgeRejectedError, SshGateError
from sshgate.execution.executor import SubprocessExecutor
from sshgate.invocation.builder import multiplexing_options, parse_params
from sshgate.judge.gate import JudgeGate, load_judge_gate
from sshgate.logging import get_audit_logger
from sshgate.models import ExecutionOutcome, InvocationRequest
from sshgate.tools.models import ToolCallResult, ToolCallTrace
from sshgate.tools.registry import RegisteredTool, ToolRegistry

logger = logging.getLogger(__name__)


class Dispatcher:
    """Routes tool calls through builder, judge gate and executor.

    Holds no per-call state; concurrent calls are independent.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        executor: SubprocessExecutor | None = None,
        gate: JudgeGate | None = None,
        ssh_options: Sequence[str] = (),
    ):
        self._registry = registry
        self._executor = executor or SubprocessExecutor()
        self._gate = gate or JudgeGate.disabled()
        self._ssh_options = tuple(ssh_options)

    @classmethod
    def from_settings(
        cls,
        judge_config: JudgeConfig,
        settings: ServerSettings | None = None,
        registry: ToolRegistry | None = None,
    ) -> Dispatcher:
        """Wire the full pipeline from startup configuration."""
        from sshgate.tools.builtin import default_registry

        settings = settings or ServerSettings()
        return cls(
            registry=registry or default_registry(),
            executor=SubprocessExecutor(),
            gate=load_judge_gate(judge_config),
            ssh_options=multiplexing_options() if settings.ssh_multiplex else (),
        )

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def gate(self) -> JudgeGate:
        return self._gate

    async def dispatch(self, tool_name: str, arguments: Mapping[str, Any] | None) -> ToolCallResult:
        """Run one tool call through the pipeline.

        Raises:
            InvalidArgumentError: unknown tool or invalid arguments.
            JudgeRejectedError: the gate denied the call; str(error) is the reason.
            ExecutionError: the program could not be started.
        """
        trace = ToolCallTrace(tool_name=tool_name)
        started = time.monotonic()
        try:
            tool = self._registry.get(tool_name)
            if tool is None:
                raise InvalidArgumentError(f"Unknown tool: {tool_name}", field="tool")

            params = parse_params(tool.params_model, arguments)
            invocation = tool.build(params, self._ssh_options)
            trace.kind = invocation.kind.value
            trace.remote_host = invocation.remote_host
            trace.command_line = invocation.describe()

            verdict = await self._gate.check(tool_name, params.model_dump(mode="json"), invocation)
            trace.allowed = verdict.allowed
            trace.verdict_source = verdict.source
            trace.verdict_reason = verdict.reason
            if not verdict.allowed:
                raise JudgeRejectedError(verdict.reason, tool_name=tool_name)

            outcome = await self._executor.run(invocation)
            trace.exit_code = outcome.exit_code
            trace.signal = outcome.signal
            trace.timed_out = outcome.timed_out

            result = _to_result(tool, invocation, outcome)
            logger.info(
                "%s: %s", tool_name, result.summary,
                extra={
                    "tool_name": tool_name,
                    "remote_host": invocation.remote_host,
                    "exit_code": outcome.exit_code,
                    "timed_out": outcome.timed_out,
                    "duration_ms": result.duration_ms,
                },
            )
            return result
        except SshGateError as e:
            trace.error = str(e)
            raise
        finally:
            trace.duration_ms = round((time.monotonic() - started) * 1000, 3)
            _audit(trace)

    async def aclose(self) -> None:
        """Release the judge provider's network clients."""
        await self._gate.aclose()

    async def call(self, tool_name: str, arguments: Mapping[str, Any] | None) -> ToolCallResult:
        """dispatch() for transports: sshgate errors become error results."""
        try:
            return await self.dispatch(tool_name, arguments)
        except SshGateError as e:
            logger.warning(
                "%s failed: %s", tool_name, e,
                extra={"tool_name": tool_name, "error": type(e).__name__},
            )
            return ToolCallResult.failure(tool_name, str(e))


# ─── Outcome mapping ─────────────────────────────────────────


def summarize_outcome(
    tool: RegisteredTool,
    invocation: InvocationRequest,
    outcome: ExecutionOutcome,
) -> tuple[str, bool]:
    """Human-readable summary of an outcome, and whether it is a connection failure."""
    if outcome.timed_out:
        return f"Command timed out after {invocation.timeout_seconds:g} seconds", False
    if outcome.signal is not None:
        return f"Command terminated by signal {outcome.signal}", False
    if outcome.exit_code == 0:
        return "Command completed successfully", False
    if invocation.remote_host and outcome.exit_code in tool.connection_failure_codes:
        return (
            f"Connection to {invocation.remote_host} failed "
            f"({invocation.program} exit {outcome.exit_code})"
        ), True
    return f"Command exited with status {outcome.exit_code}", False


def _to_result(
    tool: RegisteredTool,
    invocation: InvocationRequest,
    outcome: ExecutionOutcome,
) -> ToolCallResult:
    summary, connection_failed = summarize_outcome(tool, invocation, outcome)
    return ToolCallResult.from_outcome(
        tool.name, outcome, summary, connection_failed=connection_failed
    )


def _audit(trace: ToolCallTrace) -> None:
    record = trace.model_dump(mode="json", exclude={"id", "timestamp"})
    get_audit_logger().info(
        "tool call", extra={"call_id": trace.id, **record},
    )
