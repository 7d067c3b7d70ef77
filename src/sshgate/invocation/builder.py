"""
sshgate Invocation Builder

Maps a validated tool call onto a concrete program + argument vector.
Pure: nothing is spawned, nothing touches the network.

No local shell is involved at any step: every argv element reaches the
spawned process as-is. For the ssh-based kinds the remote command has to
travel as one string that the remote login shell splits again, so it is
assembled with shlex.join. The remote side reconstructs exactly the
requested argument vector and metacharacters stay literal there too.
"""

from __future__ import annotations

import os
import shlex
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from sshgate.exceptions import InvalidArgumentError
from sshgate.invocation.params import (
    CopyFileParams,
    PatchFileParams,
    RunLocalCommandParams,
    RunSSHCommandParams,
    SshConnectionParams,
    ToolParams,
)
from sshgate.invocation.paths import expand_tilde
from sshgate.models import InvocationRequest, OperationKind

SSH_PROGRAM = "ssh"
RSYNC_PROGRAM = "rsync"
REMOTE_PATCH_PROGRAM = "patch"
SUDO_PROGRAM = "sudo"

# -a: archive mode (permissions, times, owner...), -b: keep the replaced file as <name>~
RSYNC_FLAGS = ("--archive", "--backup", "--suffix=~")

_CONTROL_PATH_TEMPLATE = "~/.ssh/control-%h-%p-%r"


def multiplexing_options() -> list[str]:
    """SSH options enabling connection multiplexing.

    ControlMaster=auto reuses (or creates) a master connection per host,
    ControlPersist keeps it open for 10 minutes after the last use.
    """
    return [
        "ControlMaster=auto",
        f"ControlPath={expand_tilde(_CONTROL_PATH_TEMPLATE)}",
        "ControlPersist=10m",
    ]


def parse_params(model: type[ToolParams], arguments: Mapping[str, Any] | None) -> ToolParams:
    """Validate raw tool-call arguments into the tool's parameter model.

    Raises InvalidArgumentError naming every offending field.
    """
    try:
        return model.model_validate(dict(arguments or {}))
    except ValidationError as e:
        problems = []
        fields = []
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"]) or "arguments"
            fields.append(location)
            problems.append(f"{location}: {error['msg']}")
        raise InvalidArgumentError(
            "Invalid arguments: " + "; ".join(problems),
            field=fields[0] if fields else None,
            details={"errors": problems},
        ) from e


# ─── Operation builders ──────────────────────────────────────


def build_local_run(params: RunLocalCommandParams) -> InvocationRequest:
    """local-run: the requested program with its arguments, verbatim."""
    _require(params.command, "command")
    return InvocationRequest(
        kind=OperationKind.LOCAL_RUN,
        program=params.command,
        args=tuple(params.args),
        timeout_seconds=params.timeout_seconds,
    )


def build_remote_run(
    params: RunSSHCommandParams,
    *,
    privileged: bool = False,
    extra_ssh_options: Sequence[str] = (),
) -> InvocationRequest:
    """remote-run and remote-privileged-run share this single path.

    The plain variant refuses an elevation prefix; the privileged one runs
    the command under sudo.
    """
    _require(params.command, "command")
    remote_argv = [params.command, *params.args]

    if privileged:
        if not _is_sudo(params.command):
            remote_argv.insert(0, SUDO_PROGRAM)
    elif any(_is_sudo(token) for token in remote_argv):
        raise InvalidArgumentError(
            "You may not run commands with sudo using this tool; use run_ssh_sudo_command",
            field="command",
        )

    kind = OperationKind.REMOTE_PRIVILEGED_RUN if privileged else OperationKind.REMOTE_RUN
    return InvocationRequest(
        kind=kind,
        program=SSH_PROGRAM,
        args=tuple(_ssh_arguments(params, extra_ssh_options) + [shlex.join(remote_argv)]),
        remote_host=params.remote_host,
        options=tuple(params.options),
        timeout_seconds=params.timeout_seconds,
    )


def build_file_copy(
    params: CopyFileParams,
    *,
    extra_ssh_options: Sequence[str] = (),
) -> InvocationRequest:
    """file-copy: rsync in archive mode, backing up a replaced destination as <destination>~."""
    _require(params.source, "source")
    _require(params.destination, "destination")
    target = _target(params)
    options = _validated_options(params.options, extra_ssh_options)

    args: list[str] = list(RSYNC_FLAGS)
    if params.private_key or options:
        # rsync splits -e itself (honouring quotes); no shell is started locally
        ssh_command = [SSH_PROGRAM]
        for option in options:
            ssh_command += ["-o", option]
        if params.private_key:
            ssh_command += ["-i", expand_tilde(params.private_key)]
        args += ["-e", shlex.join(ssh_command)]

    source = expand_tilde(params.source)
    if source.startswith("-"):
        source = "./" + source
    args += [source, f"{target}:{params.destination}"]

    return InvocationRequest(
        kind=OperationKind.FILE_COPY,
        program=RSYNC_PROGRAM,
        args=tuple(args),
        remote_host=params.remote_host,
        options=tuple(params.options),
        timeout_seconds=params.timeout_seconds,
    )


def build_remote_patch(
    params: PatchFileParams,
    *,
    extra_ssh_options: Sequence[str] = (),
) -> InvocationRequest:
    """remote-patch: run patch on the remote file, feeding the diff on stdin.

    The patch body never appears in argv. patch detects the strip level
    itself when the file to patch is named explicitly.
    """
    _require(params.patch, "patch")
    _require(params.remote_file, "remote_file")
    remote_command = shlex.join([REMOTE_PATCH_PROGRAM, params.remote_file])

    return InvocationRequest(
        kind=OperationKind.REMOTE_PATCH,
        program=SSH_PROGRAM,
        args=tuple(_ssh_arguments(params, extra_ssh_options) + [remote_command]),
        remote_host=params.remote_host,
        options=tuple(params.options),
        timeout_seconds=params.timeout_seconds,
        stdin=params.patch.encode("utf-8"),
    )


def build_invocation(
    kind: OperationKind,
    params: ToolParams,
    *,
    extra_ssh_options: Sequence[str] = (),
) -> InvocationRequest:
    """Build the invocation for any operation kind."""
    if kind == OperationKind.LOCAL_RUN:
        return build_local_run(_expect(params, RunLocalCommandParams))
    if kind == OperationKind.REMOTE_RUN:
        return build_remote_run(
            _expect(params, RunSSHCommandParams), extra_ssh_options=extra_ssh_options
        )
    if kind == OperationKind.REMOTE_PRIVILEGED_RUN:
        return build_remote_run(
            _expect(params, RunSSHCommandParams),
            privileged=True,
            extra_ssh_options=extra_ssh_options,
        )
    if kind == OperationKind.FILE_COPY:
        return build_file_copy(_expect(params, CopyFileParams), extra_ssh_options=extra_ssh_options)
    if kind == OperationKind.REMOTE_PATCH:
        return build_remote_patch(_expect(params, PatchFileParams), extra_ssh_options=extra_ssh_options)
    raise InvalidArgumentError(f"Unsupported operation kind: {kind}")


# ─── Helpers ─────────────────────────────────────────────────


def _ssh_arguments(params: SshConnectionParams, extra_ssh_options: Sequence[str]) -> list[str]:
    """Options, identity file and target, in the order ssh expects them before the command."""
    args: list[str] = []
    for option in _validated_options(params.options, extra_ssh_options):
        args += ["-o", option]
    if params.private_key:
        args += ["-i", expand_tilde(params.private_key)]
    args.append(_target(params))
    return args


def _target(params: SshConnectionParams) -> str:
    host = params.remote_host.strip() if params.remote_host else ""
    _require(host, "remote_host")
    if host.startswith("-") or any(c.isspace() for c in host):
        raise InvalidArgumentError(f"Invalid remote host: {params.remote_host!r}", field="remote_host")

    if params.remote_user:
        user = params.remote_user
        if user.startswith("-") or "@" in user or any(c.isspace() for c in user):
            raise InvalidArgumentError(f"Invalid remote user: {user!r}", field="remote_user")
        return f"{user}@{host}"
    return host


def _validated_options(options: Sequence[str], extra: Sequence[str]) -> list[str]:
    validated = []
    for option in [*options, *extra]:
        key, sep, _ = option.partition("=")
        if not sep or not key.strip() or key.startswith("-") or any(c.isspace() for c in key):
            raise InvalidArgumentError(
                f"Invalid ssh option {option!r}: expected key=value", field="options"
            )
        validated.append(option)
    return validated


def _is_sudo(token: str) -> bool:
    return os.path.basename(token.strip()) == SUDO_PROGRAM


def _require(value: str | None, field: str) -> None:
    if value is None or not str(value).strip():
        raise InvalidArgumentError(f"Missing required field: {field}", field=field)


def _expect(params: ToolParams, model: type[ToolParams]) -> Any:
    if not isinstance(params, model):
        raise InvalidArgumentError(
            f"Expected {model.__name__} parameters, got {type(params).__name__}"
        )
    return params
