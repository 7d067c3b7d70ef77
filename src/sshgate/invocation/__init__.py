"""
sshgate Invocation Builder

Turns validated tool parameters into a concrete InvocationRequest:

    run_local_command     → <command> <args...>
    run_ssh_command       → ssh [-o opt]* [-i key] [user@]host '<command args...>'
    run_ssh_sudo_command  → ssh [-o opt]* [-i key] [user@]host 'sudo <command args...>'
    copy_file             → rsync --archive --backup --suffix=~ [-e ssh...] src [user@]host:dst
    patch_file            → ssh ... [user@]host 'patch <remote_file>'  (diff on stdin)
"""

from sshgate.invocation.builder import (
    build_file_copy,
    build_invocation,
    build_local_run,
    build_remote_patch,
    build_remote_run,
    multiplexing_options,
    parse_params,
)
from sshgate.invocation.params import (
    CopyFileParams,
    PatchFileParams,
    RunLocalCommandParams,
    RunSSHCommandParams,
    RunSSHSudoCommandParams,
    SshConnectionParams,
    ToolParams,
)
from sshgate.invocation.paths import expand_tilde

__all__ = [
    "CopyFileParams",
    "PatchFileParams",
    "RunLocalCommandParams",
    "RunSSHCommandParams",
    "RunSSHSudoCommandParams",
    "SshConnectionParams",
    "ToolParams",
    "build_file_copy",
    "build_invocation",
    "build_local_run",
    "build_remote_patch",
    "build_remote_run",
    "expand_tilde",
    "multiplexing_options",
    "parse_params",
]
