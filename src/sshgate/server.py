"""
sshgate MCP Server

Exposes the dispatcher over the Model Context Protocol (stdio transport).

Tools:
    run_ssh_command        run a command on a remote host (no sudo)
    run_ssh_sudo_command   run a command on a remote host under sudo
    copy_file              rsync a local file to a remote host (backup kept)
    patch_file             apply a diff to a remote file
    run_local_command      run a command locally (troubleshooting)

Resources:
    file:///public_keys    comma-separated *.pub names in ~/.ssh

Usage:
    sshgate serve
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ResourceError
from mcp.types import CallToolResult, TextContent

from sshgate.exceptions import SshGateError
from sshgate.invocation.params import DEFAULT_TIMEOUT_SECONDS
from sshgate.resources import PUBLIC_KEYS_URI, public_keys_text
from sshgate.tools.dispatcher import Dispatcher

logger = logging.getLogger(__name__)

SERVER_NAME = "sshgate"

INSTRUCTIONS = (
    "Administration tools for POSIX hosts reachable over SSH. Commands are passed as a "
    "program plus an argument list and are never interpreted by a local shell. Calls may "
    "be reviewed by a security judge before they run; a rejection carries the judge's reason. "
    "Read file:///public_keys to see which identities are available."
)


def create_server(dispatcher: Dispatcher) -> FastMCP:
    """Create the FastMCP server bound to a dispatcher."""

    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[None]:
        try:
            yield
        finally:
            await dispatcher.aclose()

    mcp = FastMCP(name=SERVER_NAME, instructions=INSTRUCTIONS, lifespan=lifespan)
    registry = dispatcher.registry

    async def _run(tool_name: str, arguments: dict[str, Any]) -> CallToolResult:
        result = await dispatcher.call(
            tool_name, {k: v for k, v in arguments.items() if v is not None}
        )
        # A judge denial reaches the client as its bare reason
        if result.is_error:
            return CallToolResult(
                content=[TextContent(type="text", text=result.error or "")],
                isError=True,
            )
        structured = result.structured()
        return CallToolResult(
            content=[TextContent(type="text", text=json.dumps(structured, indent=2))],
            structuredContent=structured,
        )

    def _description(tool_name: str) -> str:
        tool = registry.get(tool_name)
        return tool.description if tool else ""

    if "run_ssh_command" in registry:
        @mcp.tool(name="run_ssh_command", description=_description("run_ssh_command"))
        async def run_ssh_command(
            command: str,
            remote_host: str,
            args: list[str] | None = None,
            remote_user: str | None = None,
            private_key: str | None = None,
            options: list[str] | None = None,
            timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
        ) -> CallToolResult:
            return await _run("run_ssh_command", {
                "command": command, "args": args, "remote_host": remote_host,
                "remote_user": remote_user, "private_key": private_key,
                "options": options, "timeout_seconds": timeout_seconds,
            })

    if "run_ssh_sudo_command" in registry:
        @mcp.tool(name="run_ssh_sudo_command", description=_description("run_ssh_sudo_command"))
        async def run_ssh_sudo_command(
            command: str,
            remote_host: str,
            args: list[str] | None = None,
            remote_user: str | None = None,
            private_key: str | None = None,
            options: list[str] | None = None,
            timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
        ) -> CallToolResult:
            return await _run("run_ssh_sudo_command", {
                "command": command, "args": args, "remote_host": remote_host,
                "remote_user": remote_user, "private_key": private_key,
                "options": options, "timeout_seconds": timeout_seconds,
            })

    if "copy_file" in registry:
        @mcp.tool(name="copy_file", description=_description("copy_file"))
        async def copy_file(
            source: str,
            destination: str,
            remote_host: str,
            remote_user: str | None = None,
            private_key: str | None = None,
            options: list[str] | None = None,
            timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
        ) -> CallToolResult:
            return await _run("copy_file", {
                "source": source, "destination": destination, "remote_host": remote_host,
                "remote_user": remote_user, "private_key": private_key,
                "options": options, "timeout_seconds": timeout_seconds,
            })

    if "patch_file" in registry:
        @mcp.tool(name="patch_file", description=_description("patch_file"))
        async def patch_file(
            patch: str,
            remote_file: str,
            remote_host: str,
            remote_user: str | None = None,
            private_key: str | None = None,
            options: list[str] | None = None,
            timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
        ) -> CallToolResult:
            return await _run("patch_file", {
                "patch": patch, "remote_file": remote_file, "remote_host": remote_host,
                "remote_user": remote_user, "private_key": private_key,
                "options": options, "timeout_seconds": timeout_seconds,
            })

    if "run_local_command" in registry:
        @mcp.tool(name="run_local_command", description=_description("run_local_command"))
        async def run_local_command(
            command: str,
            args: list[str] | None = None,
            timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
        ) -> CallToolResult:
            return await _run("run_local_command", {
                "command": command, "args": args, "timeout_seconds": timeout_seconds,
            })

    @mcp.resource(
        PUBLIC_KEYS_URI,
        name="public_keys",
        description="List public keys available on the local system",
        mime_type="text/plain",
    )
    def public_keys() -> str:
        try:
            return public_keys_text()
        except SshGateError as e:
            raise ResourceError(str(e)) from e

    logger.debug("MCP server created with %d tools", len(registry))
    return mcp
