"""Patch tool: apply a diff to a remote file, the diff streamed over ssh stdin."""

from __future__ import annotations

from collections.abc import Sequence

from sshgate.invocation.builder import build_remote_patch
from sshgate.invocation.params import PatchFileParams
from sshgate.models import InvocationRequest, OperationKind
from sshgate.tools.builtin.ssh import SSH_CONNECTION_FAILURE_CODES
from sshgate.tools.registry import RegisteredTool


def _build(params: PatchFileParams, ssh_options: Sequence[str]) -> InvocationRequest:
    return build_remote_patch(params, extra_ssh_options=ssh_options)


PATCH_FILE_TOOL = RegisteredTool(
    name="patch_file",
    description=(
        "Apply a patch or diff to a file on the remote machine using the patch command. "
        "The patch content is streamed via stdin over SSH. By default, patch will attempt to "
        "automatically detect the correct strip level (-p). Use unified diff format for best results."
    ),
    kind=OperationKind.REMOTE_PATCH,
    params_model=PatchFileParams,
    factory=_build,
    connection_failure_codes=SSH_CONNECTION_FAILURE_CODES,
)
