"""
Child process creation.

The Spawner starts an OS process with its three standard streams piped to
the parent and switches every parent-side descriptor to non-blocking mode so
the reactor can service it without ever stalling.
"""

from __future__ import annotations

import os
import signal
import subprocess
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .log import Logger

Command = str | Sequence[str]


class Spawner:
    """
    Creates child processes with piped stdin/stdout/stderr.

    A string command runs through the system shell; a sequence is executed
    directly. Subclasses may override _popen() to substitute the process
    factory (tests use this to drive pipes without real children).
    """

    def __init__(self, lg: Logger | None = None) -> None:
        self._lg = lg

    def spawn(self, command: Command) -> subprocess.Popen:
        """
        Start a process with non-blocking parent-side pipes.

        Args:
            command: Shell command string or argument sequence

        Returns:
            The Popen object; stdin/stdout/stderr are raw unbuffered files

        Raises:
            OSError: If the OS refuses to create the process
        """
        proc = self._popen(command)
        for f in (proc.stdin, proc.stdout, proc.stderr):
            os.set_blocking(f.fileno(), False)

        if self._lg:
            self._lg.debug(
                "spawned process", extra={"pid": proc.pid, "command": command}
            )
        return proc

    def _popen(self, command: Command) -> subprocess.Popen:
        return subprocess.Popen(
            command,
            shell=isinstance(command, str),
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            bufsize=0,
            close_fds=True,
        )

    def signal(self, proc: subprocess.Popen, sig: int = signal.SIGTERM) -> bool:
        """
        Send a signal unless the child is already gone.

        Returns:
            True if the signal was delivered
        """
        if proc.returncode is not None:
            return False
        try:
            proc.send_signal(sig)
        except ProcessLookupError:
            return False

        if self._lg:
            self._lg.debug(
                "signalled process",
                extra={"pid": proc.pid, "signal": signal.Signals(sig).name},
            )
        return True

    def kill(self, proc: subprocess.Popen) -> bool:
        """Send SIGKILL unless the child is already gone."""
        return self.signal(proc, signal.SIGKILL)
