"""
Exception hierarchy for futureproc.

All errors raised by the process queue, reactor, and handles derive from
FutureProcError so callers can catch every library failure with a single
except clause. Abort reasons are the exception: a caller-supplied reason is
never wrapped when it already is an exception instance.
"""

from typing import Any


class FutureProcError(Exception):
    """
    Base exception for all futureproc errors.

    Example:
        try:
            shell.start_process("make").get_result().wait(10)
        except FutureProcError as e:
            lg.error("build failed", extra={"exception": e})
    """

    def __init__(self, message: str, **context: Any) -> None:
        """
        Initialize the exception with a message and optional context.

        Args:
            message: Human-readable error message
            **context: Additional context information (stored in self.context)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """String representation with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class ValidationError(FutureProcError):
    """
    Raised for an invalid argument or an operation invalid in the current state.

    Examples:
        - Pipe index outside {0, 1, 2}
        - Buffered write to stdout/stderr, buffered read from stdin
        - get_pid() while the process is still queued
        - Negative process limit
    """

    pass


class ConfigError(FutureProcError):
    """Raised when a ShellConfig value cannot be loaded or is invalid."""

    pass


class PipeError(FutureProcError):
    """
    Raised (or used as abort reason) when a pipe fails with something other
    than end-of-file. Fatal only to the process that owns the pipe.
    """

    pass


class ProcessSpawnError(FutureProcError):
    """Used as abort reason when the OS refuses to create the child process."""

    pass


class ProcessTimeoutError(FutureProcError, TimeoutError):
    """
    Raised by wait() when its deadline elapses first.

    The process keeps running (or queued) and may be waited on again.
    """

    pass


class ProcessAbortedError(FutureProcError):
    """
    Default abort reason, and the wrapper raised by wait() when the abort
    reason supplied by the caller is not an exception.

    Attributes:
        process: The aborted FutureProcess (may be None)
        reason: The exact caller-supplied reason (self when used as default)
    """

    def __init__(
        self,
        process: Any = None,
        reason: Any = None,
        message: str = "process aborted",
        **context: Any,
    ) -> None:
        super().__init__(message, **context)
        self.process = process
        self.reason = self if reason is None else reason


def abort_exception(reason: Any, process: Any = None) -> BaseException:
    """Exception to raise for an abort reason: the reason itself when possible."""
    if isinstance(reason, BaseException):
        return reason
    return ProcessAbortedError(process, reason=reason)
