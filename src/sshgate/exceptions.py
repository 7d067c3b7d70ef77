"""
sshgate Custom Exceptions

Structured exception hierarchy for the tool-invocation pipeline.
All sshgate-specific exceptions inherit from SshGateError.

Exception hierarchy:
    SshGateError
    +-- ConfigurationError        (invalid startup configuration)
    +-- InvalidArgumentError      (bad tool call, raised before any spawn or network call)
    +-- ExecutionError            (process could not be spawned)
    +-- JudgeError                (judge gate failure)
        +-- JudgeUnavailableError (network / timeout / unparseable verdict)
        +-- JudgeRejectedError    (explicit denial, message is the judge's reason)

Timeouts, non-zero exits and connection failures of the spawned clients are
NOT exceptions: they come back as structured results so the caller decides.
"""

from __future__ import annotations


class SshGateError(Exception):
    """Base exception for all sshgate errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(SshGateError):
    """Raised when environment configuration is invalid at startup."""

    def __init__(self, setting: str, message: str, details: dict | None = None):
        super().__init__(
            f"Invalid configuration for {setting}: {message}",
            details={"setting": setting, **(details or {})},
        )
        self.setting = setting


class InvalidArgumentError(SshGateError):
    """Raised when a tool call is missing a required field or has a malformed one.

    Terminal: never retried, nothing has been spawned when this is raised.
    """

    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        super().__init__(message, details={"field": field, **(details or {})})
        self.field = field


class ExecutionError(SshGateError):
    """Raised when the requested program cannot be started at all."""

    def __init__(self, program: str, message: str, details: dict | None = None):
        super().__init__(
            f"Failed to execute '{program}': {message}",
            details={"program": program, **(details or {})},
        )
        self.program = program


class JudgeError(SshGateError):
    """Base exception for judge gate errors."""


class JudgeUnavailableError(JudgeError):
    """Raised by a judge provider when no usable verdict could be obtained.

    The gate resolves it according to the configured fail-mode; it only
    escapes the gate through a fail-closed rejection.
    """

    def __init__(self, provider_name: str, message: str, details: dict | None = None):
        super().__init__(
            message,
            details={"provider_name": provider_name, **(details or {})},
        )
        self.provider_name = provider_name


class JudgeRejectedError(JudgeError):
    """Raised when the judge denies a tool call.

    str(error) is exactly the reason given by the judge so it can be
    surfaced to the caller verbatim.
    """

    def __init__(self, reason: str, tool_name: str = "", details: dict | None = None):
        super().__init__(reason, details={"tool_name": tool_name, **(details or {})})
        self.reason = reason
        self.tool_name = tool_name
