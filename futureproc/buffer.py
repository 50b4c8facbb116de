"""
Per-descriptor byte buffers shared between the reactor and process handles.
"""

import threading

STDIN = 0
STDOUT = 1
STDERR = 2

PIPE_NAMES = {STDIN: "stdin", STDOUT: "stdout", STDERR: "stderr"}


class PipeBuffer:
    """
    Append-only byte accumulator with draining reads.

    For stdout/stderr the reactor appends what the child produced and callers
    drain it. For stdin callers append pending bytes and the reactor consumes
    whatever prefix the pipe accepted.
    """

    def __init__(self, fd_index: int) -> None:
        self.fd_index = fd_index
        self._data = bytearray()
        self._lock = threading.Lock()
        self._total = 0

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"<PipeBuffer {PIPE_NAMES.get(self.fd_index, self.fd_index)} len={len(self._data)}>"

    @property
    def total(self) -> int:
        """Number of bytes ever appended."""
        return self._total

    def append(self, data: bytes) -> None:
        if not data:
            return
        with self._lock:
            self._data += data
            self._total += len(data)

    def drain(self) -> bytes:
        """Return everything buffered and leave the buffer empty."""
        with self._lock:
            data = bytes(self._data)
            self._data.clear()
        return data

    def peek(self, size: int) -> bytes:
        """Return up to size leading bytes without consuming them."""
        with self._lock:
            return bytes(self._data[:size])

    def consume(self, size: int) -> None:
        """Discard the first size bytes (after a partial pipe write)."""
        with self._lock:
            del self._data[:size]

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
