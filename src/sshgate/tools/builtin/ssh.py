"""Remote command tools over ssh.

run_ssh_command refuses sudo; run_ssh_sudo_command runs the command
under sudo. Both go through the same builder.
"""

from __future__ import annotations

from collections.abc import Sequence

from sshgate.invocation.builder import build_remote_run
from sshgate.invocation.params import RunSSHCommandParams, RunSSHSudoCommandParams
from sshgate.models import InvocationRequest, OperationKind
from sshgate.tools.registry import RegisteredTool

# ssh exits 255 when the connection itself failed
SSH_CONNECTION_FAILURE_CODES = frozenset({255})


def _build(params: RunSSHCommandParams, ssh_options: Sequence[str]) -> InvocationRequest:
    return build_remote_run(params, extra_ssh_options=ssh_options)


def _build_privileged(params: RunSSHSudoCommandParams, ssh_options: Sequence[str]) -> InvocationRequest:
    return build_remote_run(params, privileged=True, extra_ssh_options=ssh_options)


SSH_COMMAND_TOOL = RegisteredTool(
    name="run_ssh_command",
    title="Run SSH Command",
    description=(
        "Run a command on a remote POSIX compatible system (Linux, BSD, macOS) and return "
        "the output. This tool does not permit commands to be run with sudo."
    ),
    kind=OperationKind.REMOTE_RUN,
    params_model=RunSSHCommandParams,
    factory=_build,
    connection_failure_codes=SSH_CONNECTION_FAILURE_CODES,
)

SSH_SUDO_COMMAND_TOOL = RegisteredTool(
    name="run_ssh_sudo_command",
    title="Run SSH Sudo Command",
    description=(
        "Run a command on a remote POSIX compatible system (Linux, BSD, macOS) and return "
        "the output. This tool explicitly runs commands with sudo."
    ),
    kind=OperationKind.REMOTE_PRIVILEGED_RUN,
    params_model=RunSSHSudoCommandParams,
    factory=_build_privileged,
    connection_failure_codes=SSH_CONNECTION_FAILURE_CODES,
)
