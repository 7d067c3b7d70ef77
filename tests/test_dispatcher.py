"""Tests for the dispatcher pipeline.

Covers:
- happy path through the real executor
- argument errors and judge denials never spawn anything
- fail-open / fail-closed end to end
- outcome summaries (timeout, connection failure, exit status, signal)
- call() error conversion and audit records
"""

import shutil
from unittest.mock import MagicMock, patch

import pytest

from sshgate.config import FailMode, JudgeConfig, ServerSettings
from sshgate.exceptions import InvalidArgumentError, JudgeRejectedError
from sshgate.invocation.builder import multiplexing_options
from sshgate.judge.gate import JudgeGate
from sshgate.models import ExecutionOutcome, VerdictSource
from sshgate.tools.dispatcher import Dispatcher

from conftest import SpyExecutor, StubJudge, make_judge_config

SSH_ARGS = {"command": "uptime", "remote_host": "web-01"}


def gated(judge, fail_mode=FailMode.OPEN, **config):
    return JudgeGate(make_judge_config(fail_mode, **config), judge)


# ─── Happy path ────────────────────────────────────────────


class TestDispatch:
    @pytest.mark.asyncio
    async def test_local_command_runs(self, registry):
        dispatcher = Dispatcher(registry)
        result = await dispatcher.dispatch("run_local_command", {"command": "echo", "args": ["hello world"]})
        assert result.is_error is False
        assert result.status_code == 0
        assert result.stdout == "hello world"
        assert result.summary == "Command completed successfully"

    @pytest.mark.asyncio
    async def test_metacharacters_are_literal_end_to_end(self, registry):
        dispatcher = Dispatcher(registry)
        result = await dispatcher.dispatch("run_local_command", {"command": "echo", "args": ["$(id)", "&&", "ls"]})
        assert result.stdout == "$(id) && ls"

    @pytest.mark.asyncio
    async def test_output_trimmed(self, registry):
        executor = SpyExecutor(ExecutionOutcome(exit_code=0, stdout=b"\n  up 3 days  \n", stderr=b" \n"))
        result = await Dispatcher(registry, executor).dispatch("run_ssh_command", SSH_ARGS)
        assert result.stdout == "up 3 days"
        assert result.stderr == ""

    @pytest.mark.asyncio
    async def test_structured_payload(self, registry):
        executor = SpyExecutor(ExecutionOutcome(exit_code=0, stdout=b"ok"))
        result = await Dispatcher(registry, executor).dispatch("run_ssh_command", SSH_ARGS)
        assert result.structured() == {
            "status_code": 0,
            "stdout": "ok",
            "stderr": "",
            "summary": "Command completed successfully",
        }

    @pytest.mark.asyncio
    async def test_ssh_options_appended(self, registry, spy_executor, fake_home):
        dispatcher = Dispatcher(registry, spy_executor, ssh_options=multiplexing_options())
        await dispatcher.dispatch("run_ssh_command", SSH_ARGS)
        assert "ControlMaster=auto" in spy_executor.invocations[0].args

    @pytest.mark.asyncio
    async def test_patch_goes_to_stdin(self, registry, spy_executor):
        await Dispatcher(registry, spy_executor).dispatch(
            "patch_file", {"patch": "--- a\n+++ b\n", "remote_file": "/etc/motd", "remote_host": "h"},
        )
        assert spy_executor.invocations[0].stdin == b"--- a\n+++ b\n"

    @pytest.mark.asyncio
    async def test_aclose_releases_judge(self, registry):
        judge = StubJudge()
        await Dispatcher(registry, gate=gated(judge)).aclose()
        assert judge.closed is True


# ─── Refusals never spawn ──────────────────────────────────


class TestRefusals:
    @pytest.mark.asyncio
    async def test_unknown_tool(self, registry, spy_executor):
        with pytest.raises(InvalidArgumentError, match="Unknown tool"):
            await Dispatcher(registry, spy_executor).dispatch("format_disk", {})
        assert spy_executor.invocations == []

    @pytest.mark.asyncio
    async def test_missing_field(self, registry, spy_executor):
        with pytest.raises(InvalidArgumentError) as exc_info:
            await Dispatcher(registry, spy_executor).dispatch("copy_file", {"source": "a", "remote_host": "h"})
        assert exc_info.value.field == "destination"
        assert spy_executor.invocations == []

    @pytest.mark.asyncio
    async def test_sudo_through_plain_tool(self, registry, spy_executor):
        with pytest.raises(InvalidArgumentError):
            await Dispatcher(registry, spy_executor).dispatch(
                "run_ssh_command", {"command": "sudo", "args": ["reboot"], "remote_host": "h"},
            )
        assert spy_executor.invocations == []

    @pytest.mark.asyncio
    async def test_invalid_arguments_never_reach_judge(self, registry, spy_executor):
        judge = StubJudge()
        with pytest.raises(InvalidArgumentError):
            await Dispatcher(registry, spy_executor, gated(judge)).dispatch("run_ssh_command", {"command": "ls"})
        assert judge.prompts == []

    @pytest.mark.asyncio
    async def test_denial_message_is_reason(self, registry, spy_executor):
        gate = gated(StubJudge('{"allowed": false, "reason": "blocked"}'))
        with pytest.raises(JudgeRejectedError) as exc_info:
            await Dispatcher(registry, spy_executor, gate).dispatch("run_ssh_command", SSH_ARGS)
        assert str(exc_info.value) == "blocked"
        assert exc_info.value.tool_name == "run_ssh_command"
        assert spy_executor.invocations == []

    @pytest.mark.asyncio
    async def test_fail_closed_rejects_without_spawn(self, registry, spy_executor):
        gate = gated(StubJudge(delay=5), FailMode.CLOSED, timeout_seconds=0.2)
        with pytest.raises(JudgeRejectedError) as exc_info:
            await Dispatcher(registry, spy_executor, gate).dispatch("run_ssh_command", SSH_ARGS)
        assert str(exc_info.value).startswith("Judge unavailable: ")
        assert spy_executor.invocations == []

    @pytest.mark.asyncio
    async def test_fail_open_executes(self, registry, spy_executor):
        gate = gated(StubJudge("no idea"), FailMode.OPEN)
        result = await Dispatcher(registry, spy_executor, gate).dispatch("run_ssh_command", SSH_ARGS)
        assert result.status_code == 0
        assert len(spy_executor.invocations) == 1

    @pytest.mark.asyncio
    async def test_judge_sees_resolved_command(self, registry, spy_executor):
        judge = StubJudge()
        await Dispatcher(registry, spy_executor, gated(judge)).dispatch("run_ssh_sudo_command", SSH_ARGS)
        assert "ssh web-01 'sudo uptime'" in judge.prompts[0]


# ─── Outcome summaries ─────────────────────────────────────


class TestSummaries:
    @pytest.mark.asyncio
    async def test_timeout(self, registry):
        executor = SpyExecutor(ExecutionOutcome(timed_out=True, stdout=b"partial"))
        result = await Dispatcher(registry, executor).dispatch(
            "run_ssh_command", {**SSH_ARGS, "timeout_seconds": 5},
        )
        assert result.timed_out is True
        assert result.summary == "Command timed out after 5 seconds"
        assert result.stdout == "partial"
        assert result.structured()["timed_out"] is True

    @pytest.mark.asyncio
    async def test_ssh_connection_failure(self, registry):
        executor = SpyExecutor(ExecutionOutcome(exit_code=255, stderr=b"ssh: connect to host web-01 port 22: Connection refused"))
        result = await Dispatcher(registry, executor).dispatch("run_ssh_command", SSH_ARGS)
        assert result.connection_failed is True
        assert result.summary == "Connection to web-01 failed (ssh exit 255)"

    @pytest.mark.asyncio
    async def test_rsync_connection_failure(self, registry):
        executor = SpyExecutor(ExecutionOutcome(exit_code=12))
        result = await Dispatcher(registry, executor).dispatch(
            "copy_file", {"source": "a", "destination": "/tmp/a", "remote_host": "db-02"},
        )
        assert result.summary == "Connection to db-02 failed (rsync exit 12)"

    @pytest.mark.asyncio
    async def test_local_255_is_plain_exit(self, registry):
        executor = SpyExecutor(ExecutionOutcome(exit_code=255))
        result = await Dispatcher(registry, executor).dispatch("run_local_command", {"command": "false"})
        assert result.connection_failed is False
        assert result.summary == "Command exited with status 255"

    @pytest.mark.asyncio
    async def test_non_zero_exit(self, registry):
        executor = SpyExecutor(ExecutionOutcome(exit_code=2, stderr=b"No such file\n"))
        result = await Dispatcher(registry, executor).dispatch("run_ssh_command", SSH_ARGS)
        assert result.is_error is False
        assert result.status_code == 2
        assert result.summary == "Command exited with status 2"

    @pytest.mark.asyncio
    async def test_signal(self, registry):
        executor = SpyExecutor(ExecutionOutcome(signal=15))
        result = await Dispatcher(registry, executor).dispatch("run_ssh_command", SSH_ARGS)
        assert result.summary == "Command terminated by signal 15"
        assert result.structured()["signal"] == 15

    @pytest.mark.asyncio
    @pytest.mark.skipif(shutil.which("ssh") is None, reason="ssh client not installed")
    async def test_real_unreachable_host(self, registry, fake_home):
        result = await Dispatcher(registry).dispatch("run_ssh_command", {
            "command": "true",
            "remote_host": "127.0.0.1",
            "options": ["Port=1", "BatchMode=yes", "ConnectTimeout=3", "StrictHostKeyChecking=no"],
            "timeout_seconds": 15,
        })
        assert result.status_code == 255
        assert result.summary == "Connection to 127.0.0.1 failed (ssh exit 255)"


# ─── call() and audit ──────────────────────────────────────


class TestCall:
    @pytest.mark.asyncio
    async def test_errors_become_results(self, registry):
        result = await Dispatcher(registry).call("nope", {})
        assert result.is_error is True
        assert result.error == "Unknown tool: nope"
        assert result.structured() == {"error": "Unknown tool: nope"}

    @pytest.mark.asyncio
    async def test_denial_becomes_result(self, registry, spy_executor):
        gate = gated(StubJudge('{"allowed": false, "reason": "touches /etc/shadow"}'))
        result = await Dispatcher(registry, spy_executor, gate).call("run_ssh_command", SSH_ARGS)
        assert result.is_error is True
        assert result.error == "touches /etc/shadow"

    @pytest.mark.asyncio
    async def test_spawn_failure_becomes_result(self, registry):
        result = await Dispatcher(registry).call("run_local_command", {"command": "/nonexistent/sshgate-x"})
        assert result.is_error is True
        assert "Failed to execute '/nonexistent/sshgate-x'" in result.error


class TestAudit:
    @pytest.mark.asyncio
    async def test_one_record_per_call(self, registry, spy_executor):
        audit = MagicMock()
        with patch("sshgate.tools.dispatcher.get_audit_logger", return_value=audit):
            await Dispatcher(registry, spy_executor).dispatch("run_ssh_command", SSH_ARGS)

        assert audit.info.call_count == 1
        extra = audit.info.call_args.kwargs["extra"]
        assert extra["tool_name"] == "run_ssh_command"
        assert extra["kind"] == "remote-run"
        assert extra["remote_host"] == "web-01"
        assert extra["allowed"] is True
        assert extra["verdict_source"] == VerdictSource.BYPASS.value
        assert extra["exit_code"] == 0
        assert extra["call_id"].startswith("tc-")

    @pytest.mark.asyncio
    async def test_denied_call_audited(self, registry, spy_executor):
        audit = MagicMock()
        gate = gated(StubJudge('{"allowed": false, "reason": "blocked"}'))
        with patch("sshgate.tools.dispatcher.get_audit_logger", return_value=audit):
            with pytest.raises(JudgeRejectedError):
                await Dispatcher(registry, spy_executor, gate).dispatch("run_ssh_command", SSH_ARGS)

        extra = audit.info.call_args.kwargs["extra"]
        assert extra["allowed"] is False
        assert extra["verdict_reason"] == "blocked"
        assert extra["error"] == "blocked"


class TestFromSettings:
    def test_disabled_judge(self):
        dispatcher = Dispatcher.from_settings(JudgeConfig(), ServerSettings())
        assert dispatcher.gate.enabled is False
        assert "run_ssh_command" in dispatcher.registry
        assert len(dispatcher.registry) == 5
