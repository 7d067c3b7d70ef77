"""
sshgate Built-in Tools

The five administration tools, registered at startup.
"""

from sshgate.tools.registry import ToolRegistry

from sshgate.tools.builtin.local import LOCAL_COMMAND_TOOL
from sshgate.tools.builtin.ssh import SSH_COMMAND_TOOL, SSH_SUDO_COMMAND_TOOL
from sshgate.tools.builtin.copy_file import COPY_FILE_TOOL
from sshgate.tools.builtin.patch_file import PATCH_FILE_TOOL

ALL_BUILTIN_TOOLS = [
    SSH_COMMAND_TOOL,
    SSH_SUDO_COMMAND_TOOL,
    COPY_FILE_TOOL,
    PATCH_FILE_TOOL,
    LOCAL_COMMAND_TOOL,
]


def register_all_builtins(registry: ToolRegistry) -> None:
    """Register all built-in tools with the given registry."""
    for tool in ALL_BUILTIN_TOOLS:
        registry.register(tool)


def default_registry() -> ToolRegistry:
    """A registry holding every built-in tool."""
    registry = ToolRegistry()
    register_all_builtins(registry)
    return registry
