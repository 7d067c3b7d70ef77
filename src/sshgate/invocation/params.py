"""
Tool parameter models.

One pydantic model per tool, validated from the raw arguments of a tool
call. Field descriptions double as the JSON schema shown to the caller.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TIMEOUT_SECONDS = 30

_TIMEOUT_DESCRIPTION = (
    "Timeout in seconds for the command execution. Defaults to 30 seconds. "
    "Set to 0 to disable the timeout."
)


class ToolParams(BaseModel):
    """Base for all tool parameter models. Unknown fields are rejected."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    timeout_seconds: int = Field(default=DEFAULT_TIMEOUT_SECONDS, ge=0, description=_TIMEOUT_DESCRIPTION)


class RunLocalCommandParams(ToolParams):
    command: str = Field(
        min_length=1,
        description="The command to run. This must be a single command. Arguments must be passed in the args parameter.",
    )
    args: list[str] = Field(default_factory=list, description="The arguments to pass to the command.")


class SshConnectionParams(ToolParams):
    """Connection parameters shared by every tool that reaches a remote host."""

    remote_host: str = Field(min_length=1, description="The host to connect to.")
    remote_user: str | None = Field(
        default=None,
        description="The user to connect as. Defaults to the user configured for the host in ssh_config.",
    )
    private_key: str | None = Field(
        default=None,
        description="Path to the private key to use for authentication. A leading ~/ is expanded.",
    )
    options: list[str] = Field(
        default_factory=list,
        description=(
            "Additional options to pass to the ssh command. Each option should be a key-value "
            "pair separated by an equal sign (=). The options are passed using the -o flag."
        ),
    )


class RunSSHCommandParams(SshConnectionParams):
    command: str = Field(
        min_length=1,
        description="The command to run. This must be a single command. Arguments must be passed in the args parameter.",
    )
    args: list[str] = Field(default_factory=list, description="The arguments to pass to the command.")


class RunSSHSudoCommandParams(RunSSHCommandParams):
    pass


class CopyFileParams(SshConnectionParams):
    source: str = Field(min_length=1, description="The source file path on the local machine.")
    destination: str = Field(min_length=1, description="The destination file path on the remote machine.")


class PatchFileParams(SshConnectionParams):
    patch: str = Field(min_length=1, description="The patch/diff content to apply (unified diff recommended).")
    remote_file: str = Field(min_length=1, description="The path to the file on the remote machine to patch.")
