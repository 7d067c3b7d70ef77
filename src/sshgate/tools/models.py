"""
sshgate Tool Call Models

Result and audit models for dispatched tool calls. The result is what
the caller sees; the trace is what lands in the audit log.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from sshgate.models import ExecutionOutcome, VerdictSource


class ToolCallResult(BaseModel):
    """Outcome of one tool call as returned to the caller.

    Timeouts, connection failures and non-zero exits are results, not
    errors: is_error is only set when the call was refused or could not be
    started (invalid arguments, judge denial, spawn failure).
    """
    tool_name: str
    status_code: int | None = None
    signal: int | None = None
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    connection_failed: bool = False
    duration_ms: float = 0.0
    summary: str = ""
    is_error: bool = False
    error: str = ""

    @classmethod
    def from_outcome(
        cls,
        tool_name: str,
        outcome: ExecutionOutcome,
        summary: str,
        connection_failed: bool = False,
    ) -> ToolCallResult:
        return cls(
            tool_name=tool_name,
            status_code=outcome.exit_code,
            signal=outcome.signal,
            stdout=outcome.stdout_text.strip(),
            stderr=outcome.stderr_text.strip(),
            timed_out=outcome.timed_out,
            connection_failed=connection_failed,
            duration_ms=round(outcome.duration_seconds * 1000, 3),
            summary=summary,
        )

    @classmethod
    def failure(cls, tool_name: str, error: str) -> ToolCallResult:
        return cls(tool_name=tool_name, is_error=True, error=error, summary=error)

    def structured(self) -> dict[str, Any]:
        """Payload returned to MCP clients."""
        if self.is_error:
            return {"error": self.error}
        payload: dict[str, Any] = {
            "status_code": self.status_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "summary": self.summary,
        }
        if self.timed_out:
            payload["timed_out"] = True
        if self.signal is not None:
            payload["signal"] = self.signal
        return payload


class ToolCallTrace(BaseModel):
    """Audit record for one dispatched tool call.

    Contains the target, the gate decision and the execution outcome so
    every call is reconstructible from the audit log alone.
    """
    id: str = Field(default_factory=lambda: f"tc-{uuid.uuid4().hex[:8]}")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    tool_name: str = ""
    kind: str = ""
    remote_host: str | None = None
    command_line: str = ""
    allowed: bool | None = None
    verdict_source: VerdictSource | None = None
    verdict_reason: str = ""
    exit_code: int | None = None
    signal: int | None = None
    timed_out: bool = False
    duration_ms: float = 0.0
    error: str = ""
