"""
sshgate Resources

Read-only data exposed next to the tools. Currently the names of the
public keys in ~/.ssh, so a client can pick an identity before
connecting.
"""

from __future__ import annotations

from pathlib import Path

from sshgate.exceptions import SshGateError
from sshgate.invocation.paths import home_directory

PUBLIC_KEYS_URI = "file:///public_keys"


def ssh_directory() -> Path:
    return Path(home_directory()) / ".ssh"


def list_public_keys(ssh_dir: Path | None = None) -> list[str]:
    """File names of the *.pub files in the ssh directory, sorted.

    Raises SshGateError if the directory cannot be read.
    """
    directory = ssh_dir or ssh_directory()
    try:
        entries = list(directory.iterdir())
    except OSError as e:
        raise SshGateError(
            f"Failed to read directory {directory}: {e.strerror or e}",
            details={"path": str(directory)},
        ) from e
    return sorted(p.name for p in entries if p.suffix == ".pub" and p.is_file())


def public_keys_text(ssh_dir: Path | None = None) -> str:
    """Comma-separated public key file names, as served at file:///public_keys."""
    return ",".join(list_public_keys(ssh_dir))
