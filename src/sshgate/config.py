"""
sshgate Configuration

Process-wide settings read once from the environment at startup and
never mutated afterwards. Both models are frozen, so they can be shared
by reference between concurrent tool calls without locking.

Judge settings (SSHGATE_JUDGE_*):
    SERVICE          openai | anthropic | ollama | gemini (empty = judge disabled)
    MODEL            model identifier (default: provider's default model)
    API_KEY          credential (required for openai, anthropic, gemini)
    BASE_URL         endpoint override
    TIMEOUT_SECONDS  judge deadline (default 10)
    FAIL_MODE        open | closed (default open)
    TOOLS            comma-separated tool names to judge (default: all tools)

Server settings (SSHGATE_*):
    LOG_LEVEL, LOG_JSON, AUDIT_LOG, SSH_MULTIPLEX
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sshgate.exceptions import ConfigurationError

JUDGE_ENV_PREFIX = "SSHGATE_JUDGE_"

DEFAULT_JUDGE_TOOLS = frozenset({
    "run_local_command",
    "run_ssh_command",
    "run_ssh_sudo_command",
    "copy_file",
    "patch_file",
})

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


class JudgeService(str, Enum):
    """Reasoning services the judge gate can talk to."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"
    GEMINI = "gemini"

    @property
    def requires_api_key(self) -> bool:
        return self is not JudgeService.OLLAMA


class FailMode(str, Enum):
    """What the gate does when the judge cannot produce a verdict."""
    OPEN = "open"
    CLOSED = "closed"


class JudgeConfig(BaseModel):
    """Judge gate configuration.

    The judge is enabled exactly when a service is selected.
    """
    model_config = ConfigDict(frozen=True)

    service: JudgeService | None = None
    model: str = ""
    api_key: str = Field(default="", repr=False)
    base_url: str = ""
    timeout_seconds: float = Field(default=10.0, gt=0.0)
    fail_mode: FailMode = FailMode.OPEN
    tools: frozenset[str] = DEFAULT_JUDGE_TOOLS

    @property
    def enabled(self) -> bool:
        return self.service is not None

    def applies_to(self, tool_name: str) -> bool:
        """True if calls to this tool must be judged."""
        return self.enabled and tool_name in self.tools

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> JudgeConfig:
        """Build the judge configuration from SSHGATE_JUDGE_* variables.

        Raises ConfigurationError for unknown services, fail-modes or
        non-numeric timeouts.
        """
        env = os.environ if environ is None else environ

        def get(name: str, default: str = "") -> str:
            return env.get(JUDGE_ENV_PREFIX + name, default).strip()

        raw_service = get("SERVICE").lower()
        try:
            service = JudgeService(raw_service) if raw_service else None
        except ValueError:
            supported = ", ".join(s.value for s in JudgeService)
            raise ConfigurationError(
                JUDGE_ENV_PREFIX + "SERVICE",
                f"unsupported service {raw_service!r} (supported: {supported})",
            ) from None

        raw_fail_mode = get("FAIL_MODE", "open").lower()
        try:
            fail_mode = FailMode(raw_fail_mode)
        except ValueError:
            raise ConfigurationError(
                JUDGE_ENV_PREFIX + "FAIL_MODE",
                f"expected 'open' or 'closed', got {raw_fail_mode!r}",
            ) from None

        raw_tools = get("TOOLS")
        tools = (
            frozenset(t.strip() for t in raw_tools.split(",") if t.strip())
            if raw_tools
            else DEFAULT_JUDGE_TOOLS
        )

        try:
            return cls(
                service=service,
                model=get("MODEL"),
                api_key=get("API_KEY"),
                base_url=get("BASE_URL"),
                timeout_seconds=get("TIMEOUT_SECONDS", "10"),
                fail_mode=fail_mode,
                tools=tools,
            )
        except ValidationError as e:
            raise ConfigurationError(JUDGE_ENV_PREFIX + "TIMEOUT_SECONDS", str(e)) from e


def default_audit_path() -> Path:
    """Audit log location following the XDG state directory convention."""
    state_home = os.environ.get("XDG_STATE_HOME") or str(Path.home() / ".local" / "state")
    return Path(state_home) / "sshgate" / "tool_calls.jsonl"


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(name, f"expected a boolean, got {value!r}")


class ServerSettings(BaseModel):
    """Settings of the server process around the pipeline."""
    model_config = ConfigDict(frozen=True)

    log_level: str = "INFO"
    log_json: bool = False
    audit_path: Path | None = None
    ssh_multiplex: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ServerSettings:
        env = os.environ if environ is None else environ

        log_level = env.get("SSHGATE_LOG_LEVEL", "INFO").strip().upper()
        if log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ConfigurationError("SSHGATE_LOG_LEVEL", f"unknown level {log_level!r}")

        raw_audit = env.get("SSHGATE_AUDIT_LOG", "").strip()
        if raw_audit.lower() == "off":
            audit_path = None
        elif raw_audit:
            audit_path = Path(raw_audit).expanduser()
        else:
            audit_path = default_audit_path()

        return cls(
            log_level=log_level,
            log_json=_parse_bool("SSHGATE_LOG_JSON", env.get("SSHGATE_LOG_JSON", "")),
            audit_path=audit_path,
            ssh_multiplex=_parse_bool("SSHGATE_SSH_MULTIPLEX", env.get("SSHGATE_SSH_MULTIPLEX", "")),
        )
