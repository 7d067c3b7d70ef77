"""
sshgate Structured Logging

Provides a configured logger for sshgate using stdlib logging with
structured context. Everything goes to stderr: stdout belongs to the
MCP stdio transport.

Usage:
    import logging

    logger = logging.getLogger(__name__)
    logger.info("Tool call finished", extra={"tool_name": "copy_file", "exit_code": 0})

For production, configure JSON output and the tool-call audit log:
    from sshgate.logging import configure_logging
    configure_logging(level="INFO", json_output=True, audit_path="~/.local/state/sshgate/tool_calls.jsonl")
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any

AUDIT_LOGGER_NAME = "sshgate.audit"

# Extra attributes promoted into every log line when present
_EXTRA_KEYS = (
    "call_id", "tool_name", "kind", "remote_host", "command_line", "provider",
    "allowed", "verdict_source", "verdict_reason",
    "exit_code", "signal", "timed_out", "duration_ms", "fail_mode", "error",
)


class SshGateFormatter(logging.Formatter):
    """Structured log formatter for sshgate.

    Outputs either human-readable or JSON format depending on configuration.
    """

    def __init__(self, json_output: bool = False):
        super().__init__()
        self._json_output = json_output

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in _EXTRA_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if self._json_output:
            return json.dumps(log_data, default=str)

        extra_keys = {k: v for k, v in log_data.items()
                      if k not in ("timestamp", "level", "logger", "message", "exception")}
        extra_str = ""
        if extra_keys:
            extra_str = " | " + " ".join(f"{k}={v}" for k, v in extra_keys.items())

        line = f"[{log_data['timestamp']}] {record.levelname:8s} {record.name}: {record.getMessage()}{extra_str}"
        if "exception" in log_data:
            line += "\n" + log_data["exception"]
        return line


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    audit_path: str | Path | None = None,
) -> None:
    """Configure sshgate logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: If True, stderr lines are JSON objects.
        audit_path: If given, tool-call audit records are additionally
            written as JSON lines to this file, rotated daily.
    """
    root_logger = logging.getLogger("sshgate")
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(SshGateFormatter(json_output=json_output))
    root_logger.addHandler(handler)
    root_logger.propagate = False

    audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)
    for existing in list(audit_logger.handlers):
        audit_logger.removeHandler(existing)
        existing.close()
    audit_logger.setLevel(logging.INFO)
    audit_logger.propagate = False

    if audit_path is not None:
        path = Path(audit_path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            path, when="midnight", backupCount=7, encoding="utf-8", utc=True,
        )
        file_handler.setFormatter(SshGateFormatter(json_output=True))
        audit_logger.addHandler(file_handler)


def get_logger(name: str = "sshgate") -> logging.Logger:
    """Get an sshgate logger instance."""
    return logging.getLogger(name)


def get_audit_logger() -> logging.Logger:
    """Logger receiving one record per dispatched tool call."""
    return logging.getLogger(AUDIT_LOGGER_NAME)


# Auto-configure with sensible defaults on import
configure_logging()
