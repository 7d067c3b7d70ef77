"""
sshgate Timeout-Bounded Executor

Spawns an InvocationRequest and collects its outcome:
- argv handed to exec directly, never to a shell
- stdout and stderr collected concurrently by the subprocess protocol, so
  a child filling one pipe cannot deadlock against the other
- optional stdin payload written then closed (EOF)
- deadline enforcement on process exit + process-group kill

Process exit and pipe closure are tracked separately. A descendant that
left the process group (setsid, daemonizing) may keep stdout open long
after the command itself exited; the exit status is still reported as
soon as the command ends, and the pipes get a bounded drain period
before they are closed on our side.

The child is started in its own session. On timeout the whole process
group gets SIGTERM, then SIGKILL after a grace period, which also takes
down grandchildren the command may have started (ssh ProxyCommand,
shell pipelines on the local side, ...).

A non-zero exit or a timeout is a normal outcome here, not an exception.
Only a program that cannot be started at all raises ExecutionError.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import time

from pydantic import BaseModel, Field

from sshgate.exceptions import ExecutionError
from sshgate.models import ExecutionOutcome, InvocationRequest

logger = logging.getLogger(__name__)

_STDIN, _STDOUT, _STDERR = 0, 1, 2


class ExecutorConfig(BaseModel):
    """Tunables of the executor (not exposed to tool callers)."""

    kill_grace_seconds: float = Field(default=1.0, gt=0.0, le=30.0)
    drain_timeout_seconds: float = Field(default=2.0, gt=0.0, le=60.0)


class _CollectingProtocol(asyncio.SubprocessProtocol):
    """Buffers stdout/stderr and resolves one future on exit, another on pipe EOF."""

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self.stdout = bytearray()
        self.stderr = bytearray()
        self.exited: asyncio.Future[None] = loop.create_future()
        self.pipes_closed: asyncio.Future[None] = loop.create_future()
        self._open_pipes = {_STDOUT, _STDERR}

    def pipe_data_received(self, fd: int, data: bytes) -> None:
        if fd == _STDOUT:
            self.stdout.extend(data)
        elif fd == _STDERR:
            self.stderr.extend(data)

    def pipe_connection_lost(self, fd: int, exc: Exception | None) -> None:
        if fd == _STDIN:
            if exc is not None:
                logger.debug("Child closed stdin before the payload was fully written: %s", exc)
            return
        self._open_pipes.discard(fd)
        if not self._open_pipes and not self.pipes_closed.done():
            self.pipes_closed.set_result(None)

    def process_exited(self) -> None:
        if not self.exited.done():
            self.exited.set_result(None)


class SubprocessExecutor:
    """Runs invocations as child processes with an optional deadline.

    Stateless between calls; one instance can serve any number of
    concurrent invocations.
    """

    def __init__(self, config: ExecutorConfig | None = None):
        self._config = config or ExecutorConfig()

    @property
    def config(self) -> ExecutorConfig:
        return self._config

    async def run(self, request: InvocationRequest) -> ExecutionOutcome:
        """Spawn the request and wait for it, bounded by its deadline.

        timeout_seconds == 0 waits without bound. On expiry the outcome has
        timed_out=True and carries whatever output was captured so far.
        Cancelling the calling task kills the process group and re-raises.
        """
        loop = asyncio.get_running_loop()
        started = time.monotonic()

        try:
            transport, protocol = await loop.subprocess_exec(
                lambda: _CollectingProtocol(loop),
                request.program,
                *request.args,
                stdin=asyncio.subprocess.PIPE if request.stdin is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            raise ExecutionError(request.program, e.strerror or str(e)) from e

        pid = transport.get_pid()
        logger.debug(
            "Spawned %s (pid %d)", request.program, pid,
            extra={"kind": request.kind.value, "remote_host": request.remote_host},
        )

        timed_out = False
        try:
            if request.stdin is not None:
                _feed(transport, request.stdin)

            if request.has_deadline:
                try:
                    await asyncio.wait_for(asyncio.shield(protocol.exited), timeout=request.timeout_seconds)
                except TimeoutError:
                    timed_out = True
                    logger.warning(
                        "Command exceeded %ss deadline, killing process group",
                        request.timeout_seconds,
                        extra={"kind": request.kind.value, "remote_host": request.remote_host},
                    )
                    await self._terminate(pid, protocol)
            else:
                await protocol.exited

            await self._join(protocol)
        except asyncio.CancelledError:
            _signal_group(pid, signal.SIGKILL)
            raise
        finally:
            transport.close()

        duration = time.monotonic() - started
        stdout = bytes(protocol.stdout)
        stderr = bytes(protocol.stderr)

        if timed_out:
            return ExecutionOutcome(
                stdout=stdout,
                stderr=stderr,
                duration_seconds=duration,
                timed_out=True,
            )

        returncode = transport.get_returncode()
        if returncode is not None and returncode < 0:
            return ExecutionOutcome(
                signal=-returncode,
                stdout=stdout,
                stderr=stderr,
                duration_seconds=duration,
            )
        return ExecutionOutcome(
            exit_code=returncode,
            stdout=stdout,
            stderr=stderr,
            duration_seconds=duration,
        )

    async def _terminate(self, pid: int, protocol: _CollectingProtocol) -> None:
        """SIGTERM the group, SIGKILL it after the grace period. Every wait is bounded."""
        grace = self._config.kill_grace_seconds

        _signal_group(pid, signal.SIGTERM)
        try:
            await asyncio.wait_for(asyncio.shield(protocol.exited), timeout=grace)
        except TimeoutError:
            pass

        # Descendants may ignore SIGTERM even after the leader exited
        _signal_group(pid, signal.SIGKILL)
        try:
            await asyncio.wait_for(asyncio.shield(protocol.exited), timeout=grace)
        except TimeoutError:
            logger.error("Process %d did not exit after SIGKILL", pid)

    async def _join(self, protocol: _CollectingProtocol) -> None:
        """Wait for EOF on both pipes, giving up after the drain timeout.

        A descendant that escaped the group kill can keep a pipe open
        indefinitely; it must not hold the call hostage. The caller closes
        the transport afterwards, which releases our end of the pipes.
        """
        try:
            await asyncio.wait_for(
                asyncio.shield(protocol.pipes_closed), timeout=self._config.drain_timeout_seconds
            )
        except TimeoutError:
            logger.warning("Output pipes still open after process exit; closing them")


# ─── Helpers ─────────────────────────────────────────────────


def _feed(transport: asyncio.SubprocessTransport, payload: bytes) -> None:
    """Queue the payload on stdin and close it; the pipe transport flushes before EOF."""
    pipe = transport.get_pipe_transport(_STDIN)
    if pipe is None:
        return
    pipe.write(payload)
    pipe.close()


def _signal_group(pid: int, sig: signal.Signals) -> None:
    try:
        os.killpg(pid, sig)
    except ProcessLookupError:
        pass
    except PermissionError:
        # Group leader's pid was reused by a foreign process group
        logger.warning("Not permitted to signal process group %d", pid)
