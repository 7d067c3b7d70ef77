"""sshgate process execution: spawn, drain, deadline, kill."""

from sshgate.execution.executor import ExecutorConfig, SubprocessExecutor

__all__ = ["ExecutorConfig", "SubprocessExecutor"]
