"""
Non-blocking I/O multiplexer for running child processes.

The reactor has no thread of its own. Every blocking entry point (wait,
polling status) calls Reactor.poll() in a loop with a shrinking budget; each
call performs one bounded slice of work:

1. Register stdin for write-readiness where bytes are queued
2. Wait (at most max_wait) for readiness on all managed descriptors
3. Read whatever stdout/stderr hold into their PipeBuffers, write as much of
   the stdin queue as the pipe accepts
4. Reap children whose output reached EOF and whose exit status is available

Children therefore never block on a full pipe as long as somebody keeps
polling, and the caller never blocks on an empty one.
"""

from __future__ import annotations

import os
import selectors
import subprocess
import time
from collections.abc import Callable
from typing import IO, TYPE_CHECKING

from .buffer import PIPE_NAMES, STDERR, STDIN, STDOUT, PipeBuffer
from .exceptions import PipeError

if TYPE_CHECKING:
    from .log import Logger


class Channel:
    """
    Reactor registration for one running child.

    Attributes:
        popen: The child process
        buffers: PipeBuffers indexed 0=stdin queue, 1=stdout, 2=stderr
        on_exit: Called with the return code once the child is reaped
        on_error: Called with a PipeError when a pipe fails
    """

    def __init__(
        self,
        popen: subprocess.Popen,
        buffers: tuple[PipeBuffer, PipeBuffer, PipeBuffer],
        on_exit: Callable[[int], None],
        on_error: Callable[[PipeError], None],
    ) -> None:
        self.popen = popen
        self.pid = popen.pid
        self.buffers = buffers
        self.on_exit = on_exit
        self.on_error = on_error
        self.files: dict[int, IO[bytes]] = {
            STDIN: popen.stdin,
            STDOUT: popen.stdout,
            STDERR: popen.stderr,
        }
        # output descriptors the reactor still reads (not at EOF, not detached)
        self.reading = {STDOUT, STDERR}
        self.detached: set[int] = set()
        self.stdin_open = True
        self.started = time.monotonic()
        self.returncode: int | None = None

    def __repr__(self) -> str:
        return f"<Channel pid={self.pid} reading={sorted(self.reading)}>"

    def fileno(self, index: int) -> int:
        return self.files[index].fileno()

    @property
    def output_done(self) -> bool:
        return not self.reading


class Reactor:
    """
    Services the pipes of every registered child cooperatively.

    Not thread-safe on its own; the owning Shell serializes access.
    """

    def __init__(
        self,
        lg: Logger | None = None,
        read_chunk_size: int = 65536,
    ) -> None:
        self._lg = lg
        self._chunk = read_chunk_size
        self._selector = selectors.DefaultSelector()
        self._channels: dict[int, Channel] = {}
        # pipe failures found during a slice, reported once the slice is done
        self._failures: list[tuple[Channel, PipeError]] = []
        self._closed = False

    def __len__(self) -> int:
        return len(self._channels)

    @property
    def channels(self) -> list[Channel]:
        return list(self._channels.values())

    def register(self, channel: Channel) -> None:
        """Start servicing a freshly spawned child."""
        self._channels[channel.pid] = channel
        for index in (STDOUT, STDERR):
            self._selector.register(
                channel.fileno(index), selectors.EVENT_READ, (channel, index)
            )

    def poll(self, max_wait: float = 0.0) -> int:
        """
        Perform one bounded slice of I/O work.

        Args:
            max_wait: Longest time to wait for readiness, in seconds (0 = do
                not wait)

        Returns:
            Number of descriptors serviced
        """
        max_wait = max(0.0, max_wait)
        self._sync_stdin_interest()

        handled = 0
        if self._selector.get_map():
            for key, _ in self._selector.select(max_wait):
                channel, index = key.data
                if not self._registered(channel, index):
                    # unregistered or closed since select() returned
                    continue
                if index == STDIN:
                    self._write(channel)
                else:
                    self._read(channel, index)
                handled += 1
        elif max_wait > 0:
            # nothing to watch; children may still be waiting to be reaped
            time.sleep(max_wait)

        self._report_failures()
        self._reap()
        if self._lg and handled:
            self._lg.trace2(
                "reactor slice", extra={"handled": handled, "active": len(self)}
            )
        return handled

    def detach(self, channel: Channel, index: int) -> IO[bytes]:
        """
        Hand a descriptor over to the caller.

        The reactor stops servicing it and the file is switched back to
        blocking mode. For stdin, bytes still queued are written first.
        """
        f = channel.files[index]
        if index in channel.detached:
            return f

        self._unregister(channel, index)
        channel.detached.add(index)
        channel.reading.discard(index)
        if f.closed:
            return f

        os.set_blocking(f.fileno(), True)
        if index == STDIN and channel.stdin_open:
            self._flush_blocking(channel)
        return f

    def close_channel(self, channel: Channel, returncode: int) -> None:
        """Stop servicing a reaped child and release its descriptors."""
        for index in (STDIN, STDOUT, STDERR):
            self._unregister(channel, index)
            if index not in channel.detached:
                channel.files[index].close()
        channel.stdin_open = False
        channel.returncode = returncode
        self._channels.pop(channel.pid, None)

    def close(self) -> None:
        """Release the selector; registered children are left untouched."""
        if not self._closed:
            self._selector.close()
            self._closed = True

    def _registered(self, channel: Channel, index: int) -> bool:
        f = channel.files[index]
        if f.closed:
            return False
        key = self._selector.get_map().get(f.fileno())
        return key is not None and key.data[0] is channel

    def _unregister(self, channel: Channel, index: int) -> None:
        if self._registered(channel, index):
            self._selector.unregister(channel.fileno(index))

    def _sync_stdin_interest(self) -> None:
        for channel in self._channels.values():
            if (
                channel.stdin_open
                and STDIN not in channel.detached
                and len(channel.buffers[STDIN])
                and not self._registered(channel, STDIN)
            ):
                self._selector.register(
                    channel.fileno(STDIN), selectors.EVENT_WRITE, (channel, STDIN)
                )

    def _read(self, channel: Channel, index: int) -> None:
        try:
            data = os.read(channel.fileno(index), self._chunk)
        except BlockingIOError:
            return
        except OSError as e:
            self._fail(channel, index, e)
            return

        if data:
            channel.buffers[index].append(data)
            return

        # EOF
        self._unregister(channel, index)
        channel.reading.discard(index)
        if self._lg:
            self._lg.trace(
                "pipe closed", extra={"pid": channel.pid, "pipe": PIPE_NAMES[index]}
            )

    def _write(self, channel: Channel) -> None:
        buffer = channel.buffers[STDIN]
        pending = buffer.peek(self._chunk)
        if not pending:
            self._unregister(channel, STDIN)
            return

        try:
            written = os.write(channel.fileno(STDIN), pending)
        except BlockingIOError:
            return
        except BrokenPipeError:
            # the child closed its end; nothing queued can be delivered
            self._close_stdin(channel)
            return
        except OSError as e:
            self._fail(channel, STDIN, e)
            return

        buffer.consume(written)
        if not len(buffer):
            self._unregister(channel, STDIN)

    def _flush_blocking(self, channel: Channel) -> None:
        buffer = channel.buffers[STDIN]
        data = buffer.drain()
        view = memoryview(data)
        try:
            while view:
                written = os.write(channel.fileno(STDIN), view)
                view = view[written:]
        except BrokenPipeError:
            channel.stdin_open = False

    def _close_stdin(self, channel: Channel) -> None:
        self._unregister(channel, STDIN)
        channel.buffers[STDIN].clear()
        channel.stdin_open = False
        channel.files[STDIN].close()
        if self._lg:
            self._lg.debug("child closed stdin", extra={"pid": channel.pid})

    def _fail(self, channel: Channel, index: int, e: OSError) -> None:
        self._unregister(channel, index)
        channel.reading.discard(index)
        if index == STDIN:
            channel.stdin_open = False
            channel.buffers[STDIN].clear()

        error = PipeError(
            "pipe failed", pid=channel.pid, pipe=PIPE_NAMES[index], errno=e.errno
        )
        error.__cause__ = e
        if self._lg:
            self._lg.warning("pipe failed", extra={"pid": channel.pid, "exception": e})
        self._failures.append((channel, error))

    def _report_failures(self) -> None:
        failures, self._failures = self._failures, []
        for channel, error in failures:
            channel.on_error(error)

    def _reap(self) -> None:
        for channel in list(self._channels.values()):
            if channel.pid not in self._channels or not channel.output_done:
                continue
            returncode = channel.popen.poll()
            if returncode is None:
                continue

            self.close_channel(channel, returncode)
            if self._lg:
                self._lg.debug(
                    "reaped process",
                    extra={
                        "pid": channel.pid,
                        "code": returncode,
                        "after": time.monotonic() - channel.started,
                    },
                )
            channel.on_exit(returncode)

    def reap_blocking(self, channel: Channel, timeout: float | None = None) -> int:
        """
        Wait for one child to exit, discarding any further output.

        Used at shutdown after the child has been signalled.

        Raises:
            subprocess.TimeoutExpired: If the child outlives timeout
        """
        for index in (STDOUT, STDERR):
            self._unregister(channel, index)
            channel.reading.discard(index)
        returncode = channel.popen.wait(timeout)
        self.close_channel(channel, returncode)
        channel.on_exit(returncode)
        return returncode
