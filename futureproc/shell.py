"""
Shell: admission-controlled launcher for FutureProcess handles.

A Shell owns a concurrency limit, the processes currently running, a FIFO of
processes waiting for a slot, and the Reactor servicing the running ones'
pipes. Independent Shell instances share nothing.

Example:
    with Shell(ShellConfig(process_limit=2)) as shell:
        jobs = [shell.start_process(f"gzip -k {p}") for p in paths]
        for job in jobs:
            result = job.get_result().wait(60)
            if result.get_exit_code() != 0:
                lg.error("gzip failed", extra={"stderr": result.read_from_buffer(2)})
"""

from __future__ import annotations

import collections
import subprocess
import threading
import time
from collections.abc import Callable, Sequence
from typing import IO, Any

from .config import ShellConfig
from .deadline import poll_until
from .exceptions import (
    PipeError,
    ProcessAbortedError,
    ProcessSpawnError,
    ValidationError,
)
from .log import Logger, LoggerFactory, create_lg, derive_lg
from .process import FutureProcess, ProcessStatus
from .reactor import Channel, Reactor
from .spawner import Command, Spawner


def _validate_limit(limit: Any) -> int | None:
    if limit is None:
        return None
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise ValidationError(
            "process limit must be a non-negative integer or None", limit=limit
        )
    return limit


def _validate_command(command: Any) -> None:
    if isinstance(command, str):
        if not command.strip():
            raise ValidationError("empty command")
        args: Sequence[str] = (command,)
    elif isinstance(command, Sequence) and command and all(
        isinstance(arg, str) for arg in command
    ):
        args = command
    else:
        raise ValidationError(
            "command must be a string or a sequence of strings", command=command
        )
    if any("\0" in arg for arg in args):
        raise ValidationError("command contains a NUL byte", command=command)


class Shell:
    """
    Launches processes, bounding how many run at once.

    All queue and reactor state is mutated under one re-entrant lock, so a
    Shell may be shared between threads. Promise callbacks run on whichever
    thread settles them, with the lock held.
    """

    def __init__(
        self,
        config: ShellConfig | None = None,
        lg: Logger | None = None,
        spawner: Spawner | None = None,
    ) -> None:
        """
        Initialize the shell.

        Args:
            config: Limits and polling behaviour (defaults to ShellConfig())
            lg: Logger; when omitted the shared "/futureproc" logger is used,
                set to config.log_level
            spawner: Process factory (tests substitute fakes)
        """
        self._config = config or ShellConfig()
        if lg is None:
            # "/futureproc" is shared by every Shell; the newest level applies
            lg = create_lg("/futureproc", self._config.log_level)
            LoggerFactory.set_level(lg, self._config.log_level)
        self._lg = lg
        self._queue_lg = derive_lg(self._lg, "shell")
        self._limit = self._config.process_limit
        self._running: dict[int, FutureProcess] = {}
        self._queued: collections.deque[FutureProcess] = collections.deque()
        self._lock = threading.RLock()
        self._spawner = spawner or Spawner(derive_lg(self._lg, "spawner"))
        self._reactor = Reactor(
            derive_lg(self._lg, "reactor"), self._config.read_chunk_size
        )
        self._closed = False

    def __enter__(self) -> Shell:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"<Shell limit={self._limit} running={len(self._running)} "
            f"queued={len(self._queued)}>"
        )

    @property
    def config(self) -> ShellConfig:
        return self._config

    @property
    def process_limit(self) -> int | None:
        return self._limit

    @property
    def running_count(self) -> int:
        return len(self._running)

    @property
    def queued_count(self) -> int:
        return len(self._queued)

    @property
    def running(self) -> list[FutureProcess]:
        with self._lock:
            return list(self._running.values())

    @property
    def queued(self) -> list[FutureProcess]:
        with self._lock:
            return list(self._queued)

    def start_process(self, command: Command) -> FutureProcess:
        """
        Launch a process now, or queue it if the limit is reached.

        Never blocks. A spawn failure aborts only the returned handle, with a
        ProcessSpawnError as reason.

        Args:
            command: Shell command string or argument sequence

        Raises:
            ValidationError: For an empty or malformed command, or a closed shell
        """
        _validate_command(command)
        with self._lock:
            if self._closed:
                raise ValidationError("shell is closed")

            process = FutureProcess(self, command)
            if self._has_capacity():
                self._launch(process)
            else:
                self._queued.append(process)
                self._queue_lg.debug(
                    "queued process",
                    extra={"command": command, "queued": len(self._queued)},
                )
            return process

    def set_process_limit(self, limit: int | None) -> None:
        """
        Set the concurrency limit for future admissions (None = unlimited).

        Running processes are never preempted; a raised limit admits queued
        processes on the next poll.

        Raises:
            ValidationError: For negative or non-integer limits
        """
        limit = _validate_limit(limit)
        with self._lock:
            self._limit = limit
        self._queue_lg.debug("process limit set", extra={"limit": limit})

    def poll(self, max_wait: float = 0.0) -> None:
        """Run one reactor slice, then admit queued processes into free slots."""
        with self._lock:
            if self._closed:
                return
            self._reactor.poll(max_wait)
            self._promote()

    def abort_all(self, reason: Any = None) -> None:
        """Abort every queued and running process (queued first)."""
        with self._lock:
            for process in list(self._queued):
                self._abort(process, reason)
            for process in list(self._running.values()):
                self._abort(process, reason)

    def close(self) -> None:
        """
        Abort all live processes and reap every child.

        Children that outlive ShellConfig.shutdown_grace after the abort
        signal are killed.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self.abort_all()

            deadline = time.monotonic() + self._config.shutdown_grace
            for channel in self._reactor.channels:
                remaining = max(0.0, deadline - time.monotonic())
                try:
                    self._reactor.reap_blocking(channel, remaining)
                except subprocess.TimeoutExpired:
                    self._lg.warning(
                        "killing process after shutdown grace",
                        extra={"pid": channel.pid},
                    )
                    self._spawner.kill(channel.popen)
                    self._reactor.reap_blocking(channel)
            self._reactor.close()
            self._lg.debug("shell closed")

    # Internal API used by FutureProcess / FutureResult

    def _wait_for(self, condition: Callable[[], bool], timeout: float | None) -> bool:
        return poll_until(self, condition, timeout, self._config.poll_slice)

    def _detach_pipe(self, process: FutureProcess, index: int) -> IO[bytes]:
        with self._lock:
            channel = process._channel
            assert channel is not None
            return self._reactor.detach(channel, index)

    def _has_capacity(self) -> bool:
        return self._limit is None or len(self._running) < self._limit

    def _promote(self) -> None:
        while self._queued and self._has_capacity():
            process = self._queued.popleft()
            self._queue_lg.debug(
                "promoting queued process",
                extra={"command": process.command, "queued": len(self._queued)},
            )
            self._launch(process)

    def _launch(self, process: FutureProcess) -> None:
        try:
            popen = self._spawner.spawn(process.command)
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            error = ProcessSpawnError(
                "failed to spawn process", command=process.command, error=str(e)
            )
            error.__cause__ = e
            self._lg.warning("failed to spawn process", extra={"exception": e})
            self._settle_aborted(process, error)
            return

        channel = Channel(
            popen,
            process.buffers,
            on_exit=lambda code: self._handle_exit(process, code),
            on_error=lambda error: self._handle_pipe_error(process, error),
        )
        process._mark_running(popen, channel)
        self._running[popen.pid] = process
        self._reactor.register(channel)
        process.promise().resolve(process)

    def _handle_exit(self, process: FutureProcess, code: int) -> None:
        self._running.pop(process._pid, None)
        if process._mark_exited(code):
            self._queue_lg.debug(
                "process exited", extra={"pid": process._pid, "code": code}
            )
            result = process.get_result()
            result.promise().resolve(result)
        self._promote()

    def _handle_pipe_error(self, process: FutureProcess, error: PipeError) -> None:
        self._abort(process, error)

    def _abort(self, process: FutureProcess, reason: Any) -> None:
        with self._lock:
            status = process.status
            if status.is_terminal:
                return
            if reason is None:
                reason = ProcessAbortedError(process)

            if status is ProcessStatus.QUEUED:
                self._queued.remove(process)
            else:
                self._running.pop(process._pid, None)
                assert process._popen is not None
                self._spawner.signal(process._popen, self._config.abort_signal)

            self._lg.info(
                "aborted process",
                extra={"pid": process._pid, "status": status.value, "reason": reason},
            )
            self._settle_aborted(process, reason)
            self._promote()

    def _settle_aborted(self, process: FutureProcess, reason: Any) -> None:
        process._mark_aborted(reason)
        process.promise().reject(reason)
        process.get_result().promise().reject(reason)
