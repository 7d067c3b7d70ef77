"""
sshgate Tool Registry

Central registry of the tools exposed to callers. Each tool couples a
parameter model (validation + JSON schema), an operation kind and the
builder turning its parameters into an InvocationRequest.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from sshgate.invocation.params import ToolParams
from sshgate.models import InvocationRequest, OperationKind

InvocationFactory = Callable[[ToolParams, Sequence[str]], InvocationRequest]


class RegisteredTool:
    """A tool registered in the system.

    connection_failure_codes are the exit statuses with which the spawned
    client reports that it never reached the remote host.
    """

    def __init__(
        self,
        name: str,
        description: str,
        kind: OperationKind,
        params_model: type[ToolParams],
        factory: InvocationFactory,
        connection_failure_codes: frozenset[int] = frozenset(),
        title: str = "",
    ):
        self.name = name
        self.description = description
        self.kind = kind
        self.params_model = params_model
        self.factory = factory
        self.connection_failure_codes = connection_failure_codes
        self.title = title or name.replace("_", " ").title()

    @property
    def input_schema(self) -> dict[str, Any]:
        return self.params_model.model_json_schema()

    def build(self, params: ToolParams, ssh_options: Sequence[str] = ()) -> InvocationRequest:
        """Build the invocation for already validated parameters."""
        return self.factory(params, ssh_options)

    def __repr__(self) -> str:
        return f"RegisteredTool(name={self.name!r}, kind={self.kind.value!r})"


class ToolRegistry:
    """Registry of all available tools, filled once at startup."""

    def __init__(self) -> None:
        self._tools: dict[str, RegisteredTool] = {}

    def register(self, tool: RegisteredTool) -> None:
        """Register a tool.

        Raises ValueError if a tool with the same name already exists.
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool

    def get(self, name: str) -> RegisteredTool | None:
        """Look up a registered tool by name."""
        return self._tools.get(name)

    def get_all(self) -> list[RegisteredTool]:
        """Return all registered tools."""
        return list(self._tools.values())

    def names(self) -> list[str]:
        return list(self._tools)

    def get_schemas(self) -> list[dict]:
        """Tool schemas (name, description, JSON input schema) for every tool."""
        return [
            {
                "name": t.name,
                "description": t.description,
                "input_schema": t.input_schema,
            }
            for t in self._tools.values()
        ]

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools
