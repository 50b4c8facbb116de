"""
FutureProcess: the handle returned by Shell.start_process().

A FutureProcess moves one way through

    QUEUED -> RUNNING -> EXITED
    QUEUED -> ABORTED
    RUNNING -> ABORTED

and never leaves EXITED or ABORTED. Its promise fulfills with the handle
once the child has actually started; its FutureResult settles once the child
is finished.
"""

from __future__ import annotations

import enum
import subprocess
from typing import IO, TYPE_CHECKING, Any

from .buffer import STDERR, STDIN, STDOUT, PipeBuffer
from .exceptions import ProcessTimeoutError, ValidationError, abort_exception
from .promise import Callback, Promise
from .result import FutureResult

if TYPE_CHECKING:
    from .reactor import Channel
    from .shell import Shell
    from .spawner import Command


class ProcessStatus(enum.Enum):
    """Lifecycle state of a FutureProcess."""

    QUEUED = "queued"
    RUNNING = "running"
    EXITED = "exited"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessStatus.EXITED, ProcessStatus.ABORTED)


def _check_index(index: Any, allowed: tuple[int, ...], operation: str) -> None:
    if isinstance(index, bool) or index not in allowed:
        raise ValidationError(
            f"invalid pipe index for {operation}", index=index, allowed=allowed
        )


class FutureProcess:
    """
    Handle to a process that may be queued, running, or finished.

    Created by Shell.start_process(); not meant to be instantiated directly.
    """

    def __init__(self, shell: Shell, command: Command) -> None:
        self._shell = shell
        self._command = command
        self._status = ProcessStatus.QUEUED
        self._popen: subprocess.Popen | None = None
        self._channel: Channel | None = None
        self._pid: int | None = None
        self._exit_code: int | None = None
        self._abort_reason: Any = None
        self._buffers = (PipeBuffer(STDIN), PipeBuffer(STDOUT), PipeBuffer(STDERR))
        self._promise = Promise()
        self._result = FutureResult(self)

    def __repr__(self) -> str:
        return (
            f"<FutureProcess {self._status.value} pid={self._pid} "
            f"command={self._command!r}>"
        )

    @property
    def command(self) -> Command:
        return self._command

    @property
    def shell(self) -> Shell:
        return self._shell

    @property
    def status(self) -> ProcessStatus:
        """Current status without polling."""
        return self._status

    @property
    def exit_code(self) -> int | None:
        return self._exit_code

    @property
    def abort_reason(self) -> Any:
        return self._abort_reason

    @property
    def buffers(self) -> tuple[PipeBuffer, PipeBuffer, PipeBuffer]:
        return self._buffers

    def get_status(self, poll: bool = True) -> ProcessStatus:
        """
        Return the current status.

        Args:
            poll: Run one zero-wait reactor slice first so a child that just
                exited is observed
        """
        if poll:
            self._shell.poll(0)
        return self._status

    def get_pid(self) -> int:
        """
        Return the OS process id.

        Raises:
            ValidationError: If the process has not been started
        """
        if self._pid is None:
            raise ValidationError(
                "process has no pid", status=self._status.value
            )
        return self._pid

    def get_pipe(self, index: int) -> IO[bytes]:
        """
        Take the raw stream for stdin (0), stdout (1) or stderr (2).

        The descriptor is detached from the reactor and returned in blocking
        mode. Output buffered before detachment stays readable through
        read_from_buffer(); queued stdin bytes are written first and further
        buffered writes are refused.

        Raises:
            ValidationError: For any other index, or before the process started
        """
        _check_index(index, (STDIN, STDOUT, STDERR), "get_pipe")
        if self._popen is None:
            raise ValidationError(
                "process has no pipes", status=self._status.value, index=index
            )
        return self._shell._detach_pipe(self, index)

    def write_to_buffer(self, index: int, data: bytes | str) -> None:
        """
        Queue bytes for the child's stdin; the reactor flushes them.

        Strings are encoded as UTF-8. Writes to a queued process are held
        until it starts. Once the child closed its stdin, or the process
        exited or was aborted, writes are discarded.

        Raises:
            ValidationError: If index is not 0, or stdin was taken raw
        """
        _check_index(index, (STDIN,), "write_to_buffer")
        if isinstance(data, str):
            data = data.encode()
        if self._channel is not None and STDIN in self._channel.detached:
            raise ValidationError("stdin has been taken as a raw pipe")
        if self._status.is_terminal or (
            self._channel is not None and not self._channel.stdin_open
        ):
            return
        self._buffers[STDIN].append(data)

    def read_from_buffer(self, index: int) -> bytes:
        """
        Drain everything collected from stdout (1) or stderr (2) so far.

        Never blocks; returns b"" when nothing new has arrived.

        Raises:
            ValidationError: For any other index
        """
        _check_index(index, (STDOUT, STDERR), "read_from_buffer")
        return self._buffers[index].drain()

    def wait(self, timeout: float | None = None) -> FutureProcess:
        """
        Block until the process has started (or was aborted before it could).

        Args:
            timeout: Seconds to wait; None waits indefinitely, 0 only looks at
                state that is already available

        Returns:
            self

        Raises:
            ProcessTimeoutError: If still queued at the deadline; the process
                stays queued
            The abort reason: If aborted before it started
        """
        if not self._shell._wait_for(lambda: not self._promise.is_pending(), timeout):
            raise ProcessTimeoutError(
                f"process not started within {timeout}s",
                command=self._command,
                status=self._status.value,
            )
        if self._promise.is_rejected():
            raise abort_exception(self._promise.value, self)
        return self

    def abort(self, reason: Any = None) -> None:
        """
        Abort the process; only the first call on a live process has effect.

        A queued process is dropped from the queue, a running one is
        signalled. Status and both promises are settled before returning;
        reaping of the child happens on later polls.

        Args:
            reason: Opaque value delivered to rejection callbacks and raised by
                wait(); defaults to a ProcessAbortedError
        """
        self._shell._abort(self, reason)

    def promise(self) -> Promise:
        """Promise fulfilled with this handle once the child is running."""
        return self._promise

    def then(
        self, on_fulfilled: Callback | None = None, on_rejected: Callback | None = None
    ) -> Promise:
        return self._promise.then(on_fulfilled, on_rejected)

    def get_result(self) -> FutureResult:
        return self._result

    # Transitions, driven by the owning Shell

    def _mark_running(self, popen: subprocess.Popen, channel: Channel) -> None:
        self._popen = popen
        self._channel = channel
        self._pid = popen.pid
        self._status = ProcessStatus.RUNNING

    def _mark_exited(self, exit_code: int) -> bool:
        if self._status is not ProcessStatus.RUNNING:
            return False
        self._exit_code = exit_code
        self._status = ProcessStatus.EXITED
        return True

    def _mark_aborted(self, reason: Any) -> None:
        self._abort_reason = reason
        self._status = ProcessStatus.ABORTED
