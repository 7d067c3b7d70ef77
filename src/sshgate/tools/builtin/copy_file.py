"""File copy tool: local file to remote host with rsync over ssh.

An existing destination is kept as <destination>~ before being replaced.
"""

from __future__ import annotations

from collections.abc import Sequence

from sshgate.invocation.builder import build_file_copy
from sshgate.invocation.params import CopyFileParams
from sshgate.models import InvocationRequest, OperationKind
from sshgate.tools.registry import RegisteredTool

# 5: error starting client-server protocol, 10: socket I/O, 12: protocol
# data stream, 35: daemon connection timeout, 255: remote shell failed
RSYNC_CONNECTION_FAILURE_CODES = frozenset({5, 10, 12, 35, 255})


def _build(params: CopyFileParams, ssh_options: Sequence[str]) -> InvocationRequest:
    return build_file_copy(params, extra_ssh_options=ssh_options)


COPY_FILE_TOOL = RegisteredTool(
    name="copy_file",
    description=(
        "Copy a file from the local machine to a remote POSIX compatible system (Linux, BSD, "
        "macOS) using rsync over SSH. Preserves file attributes and creates a backup if the "
        "destination file already exists."
    ),
    kind=OperationKind.FILE_COPY,
    params_model=CopyFileParams,
    factory=_build,
    connection_failure_codes=RSYNC_CONNECTION_FAILURE_CODES,
)
