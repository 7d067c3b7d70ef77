"""
sshgate: Judge-Gated Remote Administration over SSH

Exposes five administration tools (local command, remote command,
remote sudo command, file copy, remote patch) whose calls can be
reviewed by an LLM judge before anything runs.

Usage:
    from sshgate import Dispatcher, JudgeConfig

    dispatcher = Dispatcher.from_settings(JudgeConfig.from_env())
    result = await dispatcher.dispatch(
        "run_ssh_command",
        {"command": "uptime", "remote_host": "web-01", "timeout_seconds": 10},
    )
    print(result.summary, result.stdout)
"""

__version__ = "0.3.0"

from sshgate.config import FailMode, JudgeConfig, JudgeService, ServerSettings
from sshgate.exceptions import (
    ConfigurationError,
    ExecutionError,
    InvalidArgumentError,
    JudgeError,
    JudgeRejectedError,
    JudgeUnavailableError,
    SshGateError,
)
from sshgate.execution import ExecutorConfig, SubprocessExecutor
from sshgate.judge import JudgeGate, create_judge, load_judge_gate
from sshgate.models import (
    ExecutionOutcome,
    ExitStatus,
    InvocationRequest,
    JudgeVerdict,
    OperationKind,
    VerdictSource,
)
from sshgate.tools import Dispatcher, ToolCallResult, ToolRegistry

__all__ = [
    "__version__",
    # Pipeline
    "Dispatcher",
    "JudgeGate",
    "SubprocessExecutor",
    "ExecutorConfig",
    "ToolRegistry",
    "create_judge",
    "load_judge_gate",
    # Configuration
    "FailMode",
    "JudgeConfig",
    "JudgeService",
    "ServerSettings",
    # Models
    "ExecutionOutcome",
    "ExitStatus",
    "InvocationRequest",
    "JudgeVerdict",
    "OperationKind",
    "ToolCallResult",
    "VerdictSource",
    # Exceptions
    "ConfigurationError",
    "ExecutionError",
    "InvalidArgumentError",
    "JudgeError",
    "JudgeRejectedError",
    "JudgeUnavailableError",
    "SshGateError",
]
