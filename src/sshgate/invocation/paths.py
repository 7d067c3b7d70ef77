"""Local path helpers for the invocation builder."""

from __future__ import annotations

import os
from pathlib import Path


def home_directory() -> str:
    """The caller's home directory ($HOME, falling back to the passwd entry)."""
    return os.environ.get("HOME") or str(Path.home())


def expand_tilde(path: str) -> str:
    """Expand a leading ``~`` or ``~/`` to the caller's home directory.

    Only the caller's own home is expanded; ``~user`` forms, absolute and
    relative paths are returned untouched. The remainder of the path is kept
    byte-for-byte, so a trailing slash (meaningful to rsync) survives.
    """
    if path == "~":
        return home_directory()
    if path.startswith("~/"):
        return home_directory().rstrip("/") + path[1:]
    return path
