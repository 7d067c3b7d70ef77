"""Tests for the judge gate.

Covers:
- bypass for disabled judge and ungated tools (no judge request)
- verdict pass-through
- fail-open / fail-closed on timeout, malformed answers and an
  unreachable endpoint
- load_judge_gate startup behavior
"""

from unittest.mock import patch

import pytest

from sshgate.config import FailMode, JudgeConfig, JudgeService
from sshgate.exceptions import ConfigurationError
from sshgate.judge.base import JudgeProviderConfig
from sshgate.judge.gate import JudgeGate, load_judge_gate
from sshgate.judge.ollama import OllamaJudge
from sshgate.judge.openai import OpenAIJudge
from sshgate.models import VerdictSource

from conftest import StubJudge, make_judge_config

PARAMS = {"command": "ls", "remote_host": "web-01"}

# ─── Bypass ────────────────────────────────────────────────


class TestBypass:
    @pytest.mark.asyncio
    async def test_disabled_gate_allows(self):
        verdict = await JudgeGate.disabled().check("run_ssh_command", PARAMS)
        assert verdict.allowed is True
        assert verdict.source == VerdictSource.BYPASS

    @pytest.mark.asyncio
    async def test_ungated_tool_skips_judge(self):
        judge = StubJudge(answer='{"allowed": false, "reason": "never asked"}')
        gate = JudgeGate(make_judge_config(tools=frozenset({"run_ssh_sudo_command"})), judge)

        verdict = await gate.check("run_ssh_command", PARAMS)

        assert verdict.allowed is True
        assert verdict.source == VerdictSource.BYPASS
        assert judge.prompts == []

    def test_applies_to(self):
        gate = JudgeGate(make_judge_config(tools=frozenset({"copy_file"})), StubJudge())
        assert gate.applies_to("copy_file") is True
        assert gate.applies_to("patch_file") is False

    def test_service_without_provider_is_disabled(self):
        gate = JudgeGate(make_judge_config())
        assert gate.enabled is False


# ─── Verdicts ──────────────────────────────────────────────


class TestVerdicts:
    @pytest.mark.asyncio
    async def test_allow(self):
        gate = JudgeGate(make_judge_config(), StubJudge('{"allowed": true, "reason": "read-only"}'))
        verdict = await gate.check("run_ssh_command", PARAMS)
        assert verdict.allowed is True
        assert verdict.source == VerdictSource.JUDGE

    @pytest.mark.asyncio
    async def test_deny_keeps_reason(self):
        gate = JudgeGate(make_judge_config(), StubJudge('{"allowed": false, "reason": "blocked"}'))
        verdict = await gate.check("run_ssh_command", PARAMS)
        assert verdict.allowed is False
        assert verdict.reason == "blocked"

    @pytest.mark.asyncio
    async def test_explicit_denial_is_not_subject_to_fail_mode(self):
        gate = JudgeGate(
            make_judge_config(fail_mode=FailMode.OPEN),
            StubJudge('{"allowed": false, "reason": "blocked"}'),
        )
        verdict = await gate.check("run_ssh_command", PARAMS)
        assert verdict.allowed is False

    @pytest.mark.asyncio
    async def test_single_request_per_check(self):
        judge = StubJudge()
        gate = JudgeGate(make_judge_config(), judge)
        await gate.check("run_ssh_command", PARAMS)
        assert len(judge.prompts) == 1
        assert "Tool: run_ssh_command" in judge.prompts[0]


# ─── Fail modes ────────────────────────────────────────────


class TestFailModes:
    @pytest.mark.asyncio
    async def test_timeout_fail_open_allows(self):
        gate = JudgeGate(make_judge_config(FailMode.OPEN, timeout_seconds=0.2), StubJudge(delay=5))
        with patch("sshgate.judge.gate.logger") as mock_logger:
            verdict = await gate.check("run_ssh_command", PARAMS)
        assert verdict.allowed is True
        assert verdict.source == VerdictSource.FAIL_OPEN
        assert mock_logger.warning.called

    @pytest.mark.asyncio
    async def test_timeout_fail_closed_denies(self):
        gate = JudgeGate(make_judge_config(FailMode.CLOSED, timeout_seconds=0.2), StubJudge(delay=5))
        verdict = await gate.check("run_ssh_command", PARAMS)
        assert verdict.allowed is False
        assert verdict.source == VerdictSource.FAIL_CLOSED
        assert verdict.reason.startswith("Judge unavailable: ")
        assert "timeout" in verdict.reason

    @pytest.mark.asyncio
    @pytest.mark.parametrize("answer", ["not json", '{"reason": "missing decision"}', '{"allowed": "no"}'])
    async def test_malformed_answer_fail_closed(self, answer):
        gate = JudgeGate(make_judge_config(FailMode.CLOSED), StubJudge(answer))
        verdict = await gate.check("run_ssh_command", PARAMS)
        assert verdict.allowed is False
        assert verdict.reason.startswith("Judge unavailable: ")

    @pytest.mark.asyncio
    async def test_malformed_answer_fail_open(self):
        gate = JudgeGate(make_judge_config(FailMode.OPEN), StubJudge("not json"))
        verdict = await gate.check("run_ssh_command", PARAMS)
        assert verdict.allowed is True
        assert verdict.source == VerdictSource.FAIL_OPEN

    @pytest.mark.asyncio
    async def test_provider_error_fail_closed(self):
        gate = JudgeGate(make_judge_config(FailMode.CLOSED), StubJudge(error=OSError("network down")))
        verdict = await gate.check("run_ssh_command", PARAMS)
        assert verdict.allowed is False
        assert "network down" in verdict.reason

    @pytest.mark.asyncio
    @pytest.mark.parametrize("fail_mode,allowed", [(FailMode.OPEN, True), (FailMode.CLOSED, False)])
    async def test_unreachable_endpoint(self, fail_mode, allowed):
        judge = OllamaJudge(JudgeProviderConfig(base_url="http://127.0.0.1:1/v1", timeout_seconds=3))
        gate = JudgeGate(
            make_judge_config(fail_mode, service=JudgeService.OLLAMA, timeout_seconds=5),
            judge,
        )
        verdict = await gate.check("run_ssh_command", PARAMS)
        assert verdict.allowed is allowed
        if not allowed:
            assert verdict.reason.startswith("Judge unavailable: ")


# ─── load_judge_gate ───────────────────────────────────────


class TestLoadJudgeGate:
    def test_no_service_disabled(self):
        gate = load_judge_gate(JudgeConfig())
        assert gate.enabled is False

    def test_valid_config_enabled(self):
        gate = load_judge_gate(JudgeConfig(service=JudgeService.OPENAI, api_key="sk-test"))
        assert gate.enabled is True
        assert isinstance(gate.provider, OpenAIJudge)

    def test_missing_key_fail_open_disables(self):
        with patch("sshgate.judge.gate.logger") as mock_logger:
            gate = load_judge_gate(JudgeConfig(service=JudgeService.ANTHROPIC, fail_mode=FailMode.OPEN))
        assert gate.enabled is False
        assert mock_logger.warning.called

    def test_missing_key_fail_closed_raises(self):
        with pytest.raises(ConfigurationError):
            load_judge_gate(JudgeConfig(service=JudgeService.GEMINI, fail_mode=FailMode.CLOSED))


class TestClose:
    @pytest.mark.asyncio
    async def test_closes_provider(self):
        judge = StubJudge()
        gate = JudgeGate(make_judge_config(), provider=judge)
        await gate.aclose()
        assert judge.closed is True

    @pytest.mark.asyncio
    async def test_disabled_gate_close_is_noop(self):
        await JudgeGate.disabled().aclose()
