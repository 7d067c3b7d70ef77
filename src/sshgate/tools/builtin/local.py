"""Local command tool.

Runs a program on the machine hosting sshgate. Meant for troubleshooting
connectivity, not for general work.
"""

from __future__ import annotations

from collections.abc import Sequence

from sshgate.invocation.builder import build_local_run
from sshgate.invocation.params import RunLocalCommandParams
from sshgate.models import InvocationRequest, OperationKind
from sshgate.tools.registry import RegisteredTool


def _build(params: RunLocalCommandParams, ssh_options: Sequence[str]) -> InvocationRequest:
    return build_local_run(params)


LOCAL_COMMAND_TOOL = RegisteredTool(
    name="run_local_command",
    description=(
        "Run a command on the local system and return the output. Use this sparingly; "
        "only when needed to troubleshoot why connecting to the remote system is failing."
    ),
    kind=OperationKind.LOCAL_RUN,
    params_model=RunLocalCommandParams,
    factory=_build,
)
