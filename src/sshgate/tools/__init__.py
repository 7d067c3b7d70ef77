"""
sshgate Judge-Gated Tool Dispatch

Every tool call is routed through the pipeline before anything runs:

    MCP client → Dispatcher → Invocation Builder → Judge Gate → Executor

Components:
- ToolRegistry: tools with their parameter models and invocation factories
- Dispatcher: validation, gating, execution and audit for one call
- ToolCallResult: what the caller gets back
- Built-in tools: run_local_command, run_ssh_command, run_ssh_sudo_command,
  copy_file, patch_file
"""

from sshgate.tools.dispatcher import Dispatcher, summarize_outcome
from sshgate.tools.models import ToolCallResult, ToolCallTrace
from sshgate.tools.registry import RegisteredTool, ToolRegistry

__all__ = [
    "Dispatcher",
    "RegisteredTool",
    "ToolCallResult",
    "ToolCallTrace",
    "ToolRegistry",
    "summarize_outcome",
]
