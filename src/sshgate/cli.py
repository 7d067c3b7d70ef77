"""
sshgate CLI

Command-line interface for sshgate.

Commands:
    sshgate serve                          Start the MCP server on stdio
    sshgate call TOOL --args '{...}'       Run one tool call through the full pipeline
    sshgate tools                          List tools and whether the judge gates them
    sshgate keys                           List public keys in ~/.ssh
    sshgate status                         Show configuration and dependencies

Configuration comes from SSHGATE_* environment variables (see sshgate.config).
"""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any

import click

from sshgate import __version__
from sshgate.config import JudgeConfig, ServerSettings
from sshgate.exceptions import ConfigurationError, SshGateError


def cli() -> None:
    """Main CLI entry point."""
    build_app()()


def build_app() -> click.Group:
    """Click command group for the sshgate CLI."""

    @click.group()
    @click.version_option(version=__version__, prog_name="sshgate")
    def app() -> None:
        """sshgate: judge-gated remote administration tools over SSH"""
        pass

    @app.command()
    def serve() -> None:
        """Start the MCP server on stdio."""
        _serve()

    @app.command()
    @click.argument("tool_name")
    @click.option("--args", "raw_args", default="{}", help="Tool arguments as a JSON object")
    @click.option("--json-output", is_flag=True, help="Output as JSON")
    def call(tool_name: str, raw_args: str, json_output: bool) -> None:
        """Run one tool call through builder, judge gate and executor."""
        try:
            arguments = json.loads(raw_args)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"not valid JSON: {e}", param_hint="--args") from e
        if not isinstance(arguments, dict):
            raise click.BadParameter("must be a JSON object", param_hint="--args")
        sys.exit(asyncio.run(_call(tool_name, arguments, json_output)))

    @app.command()
    def tools() -> None:
        """List available tools and whether calls to them are judged."""
        _tools()

    @app.command()
    def keys() -> None:
        """List public keys available in ~/.ssh."""
        _keys()

    @app.command()
    def status() -> None:
        """Show sshgate configuration and dependencies."""
        _status()

    return app


def _load_config() -> tuple[JudgeConfig, ServerSettings]:
    try:
        return JudgeConfig.from_env(), ServerSettings.from_env()
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)


def _serve() -> None:
    """Configure logging, wire the pipeline and run the stdio server."""
    from sshgate.logging import configure_logging
    from sshgate.server import create_server
    from sshgate.tools.dispatcher import Dispatcher

    judge_config, settings = _load_config()
    configure_logging(
        level=settings.log_level,
        json_output=settings.log_json,
        audit_path=settings.audit_path,
    )
    try:
        dispatcher = Dispatcher.from_settings(judge_config, settings)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    create_server(dispatcher).run(transport="stdio")


async def _call(tool_name: str, arguments: dict[str, Any], json_output: bool) -> int:
    """Dispatch a single call and print the result. Returns the process exit code."""
    from sshgate.tools.dispatcher import Dispatcher

    judge_config, settings = _load_config()
    try:
        dispatcher = Dispatcher.from_settings(judge_config, settings)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        return 2

    try:
        result = await dispatcher.call(tool_name, arguments)
    finally:
        await dispatcher.aclose()

    if json_output:
        click.echo(json.dumps(result.structured(), indent=2))
    elif result.is_error:
        click.echo(f"Error: {result.error}", err=True)
    else:
        if result.stdout:
            click.echo(result.stdout)
        if result.stderr:
            click.echo(result.stderr, err=True)
        click.echo(f"[{result.summary}]", err=True)

    if result.is_error:
        return 2
    return 0 if result.status_code == 0 else 1


def _tools() -> None:
    from sshgate.judge.gate import load_judge_gate
    from sshgate.tools.builtin import default_registry

    judge_config, _ = _load_config()
    gate = load_judge_gate(judge_config)

    _print_header("sshgate Tools")
    for tool in default_registry().get_all():
        gated = "judged" if gate.applies_to(tool.name) else "not judged"
        click.echo(f"  {tool.name:24s} {tool.kind.value:24s} {gated}")


def _keys() -> None:
    from sshgate.resources import list_public_keys

    try:
        public_keys = list_public_keys()
    except SshGateError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not public_keys:
        click.echo("No public keys found.")
    for name in public_keys:
        click.echo(name)


def _status() -> None:
    """Show configuration status."""
    import importlib

    judge_config, settings = _load_config()

    _print_header("sshgate Status")
    click.echo(f"  Version: {__version__}")
    click.echo(f"  Python: {sys.version.split()[0]}")

    click.echo("\n  Judge:")
    if judge_config.enabled:
        assert judge_config.service is not None
        click.echo(f"    {'service':20s} {judge_config.service.value}")
        click.echo(f"    {'model':20s} {judge_config.model or '(provider default)'}")
        click.echo(f"    {'base url':20s} {judge_config.base_url or '(provider default)'}")
        click.echo(f"    {'api key':20s} {_mask(judge_config.api_key)}")
        click.echo(f"    {'timeout':20s} {judge_config.timeout_seconds:g}s")
        click.echo(f"    {'fail mode':20s} {judge_config.fail_mode.value}")
        click.echo(f"    {'judged tools':20s} {', '.join(sorted(judge_config.tools))}")
    else:
        click.echo("    disabled (set SSHGATE_JUDGE_SERVICE to enable)")

    click.echo("\n  Server:")
    click.echo(f"    {'log level':20s} {settings.log_level}")
    click.echo(f"    {'json logs':20s} {settings.log_json}")
    click.echo(f"    {'audit log':20s} {settings.audit_path or 'off'}")
    click.echo(f"    {'ssh multiplexing':20s} {settings.ssh_multiplex}")

    deps = {
        "pydantic": "Models",
        "mcp": "MCP server",
        "anthropic": "Anthropic judge",
        "openai": "OpenAI / Ollama judge",
        "httpx": "Gemini judge",
    }
    click.echo("\n  Dependencies:")
    for pkg, label in deps.items():
        try:
            mod = importlib.import_module(pkg)
            version = getattr(mod, "__version__", "installed")
            click.echo(f"    {label:24s} {pkg:12s} {version}")
        except ImportError:
            click.echo(f"    {label:24s} {pkg:12s} NOT INSTALLED")


def _mask(value: str) -> str:
    if not value:
        return "NOT SET"
    return value[:4] + "..." + value[-4:] if len(value) > 10 else "***"


def _print_header(title: str) -> None:
    """Print a formatted header."""
    click.echo(f"\n  {'=' * 60}")
    click.echo(f"  {title}")
    click.echo(f"  {'=' * 60}\n")


if __name__ == "__main__":
    cli()
