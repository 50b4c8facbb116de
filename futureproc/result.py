"""
FutureResult: the terminal view of a FutureProcess.

Created together with its process so get_result() always succeeds; its
promise settles only after the process promise, once the child has exited
(fulfilled) or the process was aborted (rejected with the abort reason).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .buffer import STDERR, STDOUT
from .exceptions import ProcessTimeoutError, ValidationError, abort_exception
from .promise import Callback, Promise

if TYPE_CHECKING:
    from .process import FutureProcess


class FutureResult:
    """Exit code and cumulative output of a finished process."""

    def __init__(self, process: FutureProcess) -> None:
        self._process = process
        self._promise = Promise()

    def __repr__(self) -> str:
        return f"<FutureResult {self._promise.state.value} process={self._process!r}>"

    @property
    def process(self) -> FutureProcess:
        return self._process

    def wait(self, timeout: float | None = None) -> FutureResult:
        """
        Block until the owning process has exited or was aborted.

        Args:
            timeout: Seconds to wait; None waits indefinitely

        Returns:
            self

        Raises:
            ProcessTimeoutError: If the process is still queued or running at
                the deadline; it is not aborted
            The abort reason: If the process was aborted
        """
        if not self._settle(timeout):
            raise ProcessTimeoutError(
                f"process not finished within {timeout}s",
                command=self._process.command,
                status=self._process.status.value,
            )
        if self._promise.is_rejected():
            raise abort_exception(self._promise.value, self._process)
        return self

    def get_exit_code(self) -> int:
        """
        Return the exit status, waiting for the process to finish first.

        Children killed by a signal report the negated signal number.

        Raises:
            The abort reason: If the process was aborted
        """
        self.wait()
        code = self._process.exit_code
        assert code is not None
        return code

    def read_from_buffer(self, index: int) -> bytes:
        """
        Drain the cumulative stdout (1) or stderr (2) output.

        Waits for the process to finish first. Shares its buffers with the
        process handle, so each byte is returned by exactly one read. After an
        abort the content is unspecified.

        Raises:
            ValidationError: For any other index
        """
        if isinstance(index, bool) or index not in (STDOUT, STDERR):
            raise ValidationError(
                "invalid pipe index for read_from_buffer",
                index=index,
                allowed=(STDOUT, STDERR),
            )
        self._settle(None)
        return self._process.buffers[index].drain()

    def promise(self) -> Promise:
        """Promise fulfilled with this result on exit, rejected on abort."""
        return self._promise

    def then(
        self, on_fulfilled: Callback | None = None, on_rejected: Callback | None = None
    ) -> Promise:
        return self._promise.then(on_fulfilled, on_rejected)

    def _settle(self, timeout: float | None) -> bool:
        return self._process.shell._wait_for(
            lambda: not self._promise.is_pending(), timeout
        )
