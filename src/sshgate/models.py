"""
sshgate Core Data Models

Shared types of the tool-invocation pipeline: what to spawn
(InvocationRequest), what came back (ExecutionOutcome) and what the
judge decided (JudgeVerdict). This module depends on pydantic only.
"""

from __future__ import annotations

import shlex
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, model_validator


# ─── Enums ───────────────────────────────────────────────────

class OperationKind(str, Enum):
    """The five operations the pipeline knows how to build."""
    LOCAL_RUN = "local-run"
    REMOTE_RUN = "remote-run"
    REMOTE_PRIVILEGED_RUN = "remote-privileged-run"
    FILE_COPY = "file-copy"
    REMOTE_PATCH = "remote-patch"

    @property
    def is_remote(self) -> bool:
        return self is not OperationKind.LOCAL_RUN


class ExitStatus(str, Enum):
    """How a spawned process ended."""
    SUCCESS = "SUCCESS"
    NON_ZERO_EXIT = "NON_ZERO_EXIT"
    SIGNALED = "SIGNALED"
    TIMED_OUT = "TIMED_OUT"


class VerdictSource(str, Enum):
    """Where a JudgeVerdict came from."""
    JUDGE = "judge"
    BYPASS = "bypass"
    FAIL_OPEN = "fail_open"
    FAIL_CLOSED = "fail_closed"


# ─── Invocation ──────────────────────────────────────────────

class InvocationRequest(BaseModel):
    """A concrete process invocation, ready to be spawned.

    argv is (program, *args) and is handed to exec as-is: no element is
    ever interpreted by a local shell. stdin is only set for remote-patch.
    """
    model_config = ConfigDict(frozen=True)

    kind: OperationKind
    program: str = Field(min_length=1)
    args: tuple[str, ...] = ()
    remote_host: str | None = None
    options: tuple[str, ...] = ()
    timeout_seconds: float = Field(default=30.0, ge=0.0)
    stdin: bytes | None = None

    @model_validator(mode="after")
    def _remote_kinds_need_host(self) -> InvocationRequest:
        if self.kind.is_remote and not self.remote_host:
            raise ValueError(f"{self.kind.value} requires a remote host")
        return self

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]

    @property
    def has_deadline(self) -> bool:
        return self.timeout_seconds > 0

    def describe(self) -> str:
        """Shell-quoted rendering of argv, for prompts and logs only."""
        rendered = shlex.join(self.argv)
        if self.stdin is not None:
            rendered += f" < [{len(self.stdin)} bytes on stdin]"
        return rendered


class ExecutionOutcome(BaseModel):
    """Result of running one InvocationRequest.

    A non-zero exit code is reported here, not raised. When timed_out is
    True the exit status is undefined and both exit_code and signal are None.
    """
    model_config = ConfigDict(frozen=True)

    exit_code: int | None = None
    signal: int | None = None
    stdout: bytes = b""
    stderr: bytes = b""
    duration_seconds: float = 0.0
    timed_out: bool = False

    @property
    def status(self) -> ExitStatus:
        if self.timed_out:
            return ExitStatus.TIMED_OUT
        if self.signal is not None:
            return ExitStatus.SIGNALED
        if self.exit_code == 0:
            return ExitStatus.SUCCESS
        return ExitStatus.NON_ZERO_EXIT

    @property
    def succeeded(self) -> bool:
        return self.status == ExitStatus.SUCCESS

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")


# ─── Judge ───────────────────────────────────────────────────

class JudgeVerdict(BaseModel):
    """Allow/deny decision for one pending tool call.

    allowed and reason are validated strictly: a judge answering
    {"allowed": "yes"} has not produced a verdict.
    """
    model_config = ConfigDict(frozen=True)

    allowed: StrictBool
    reason: StrictStr = ""
    source: VerdictSource = VerdictSource.JUDGE
