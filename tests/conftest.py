"""Shared test fixtures for the sshgate test suite."""

from __future__ import annotations

import asyncio

import pytest

from sshgate.config import FailMode, JudgeConfig, JudgeService
from sshgate.judge.base import JudgeProvider
from sshgate.models import ExecutionOutcome, InvocationRequest
from sshgate.tools.builtin import default_registry


class StubJudge(JudgeProvider):
    """Judge provider answering with canned text (or raising / hanging)."""

    DEFAULT_MODEL = "stub-model"

    def __init__(self, answer: str = '{"allowed": true, "reason": "ok"}', error: Exception | None = None,
                 delay: float = 0.0):
        super().__init__()
        self.answer = answer
        self.error = error
        self.delay = delay
        self.prompts: list[str] = []
        self.closed = False

    async def aclose(self) -> None:
        self.closed = True

    async def _complete(self, system: str, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.answer


class SpyExecutor:
    """Executor double recording every invocation it is asked to run."""

    def __init__(self, outcome: ExecutionOutcome | None = None):
        self.outcome = outcome or ExecutionOutcome(exit_code=0, stdout=b"ok\n")
        self.invocations: list[InvocationRequest] = []

    async def run(self, request: InvocationRequest) -> ExecutionOutcome:
        self.invocations.append(request)
        return self.outcome


def make_judge_config(fail_mode: FailMode = FailMode.OPEN, **overrides) -> JudgeConfig:
    values = {
        "service": JudgeService.OPENAI,
        "api_key": "sk-test",
        "timeout_seconds": 2.0,
        "fail_mode": fail_mode,
    }
    values.update(overrides)
    return JudgeConfig(**values)


@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def spy_executor():
    return SpyExecutor()


@pytest.fixture
def fake_home(tmp_path, monkeypatch):
    """Point $HOME at an empty temporary directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home
