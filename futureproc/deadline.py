"""
Monotonic deadlines and the cooperative polling loop behind every wait().
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Protocol


class Poller(Protocol):
    def poll(self, max_wait: float = 0.0) -> None: ...


class Deadline:
    """
    Monotonic deadline; a timeout of None never expires.

    Example:
        >>> d = Deadline(0.5)
        >>> d.remaining() <= 0.5
        True
    """

    def __init__(self, timeout: float | None) -> None:
        if timeout is not None and timeout < 0:
            timeout = 0.0
        self.timeout = timeout
        self.start = time.monotonic()
        self._end = None if timeout is None else self.start + timeout

    def remaining(self) -> float | None:
        """Seconds left (never negative), or None without a deadline."""
        if self._end is None:
            return None
        return max(0.0, self._end - time.monotonic())

    def expired(self) -> bool:
        return self._end is not None and time.monotonic() >= self._end

    def elapsed(self) -> float:
        return time.monotonic() - self.start


def poll_until(
    poller: Poller,
    condition: Callable[[], bool],
    timeout: float | None,
    poll_slice: float = 0.05,
) -> bool:
    """
    Drive poller until condition holds or the deadline passes.

    Each iteration hands the poller the remaining budget, capped at
    poll_slice, so a timeout of 0 performs a single zero-wait poll.

    Args:
        poller: Object with a poll(max_wait) method (a Shell)
        condition: Checked after every poll
        timeout: Seconds to wait, or None to wait indefinitely
        poll_slice: Upper bound on one poll's wait

    Returns:
        True if condition became true, False on timeout
    """
    if condition():
        return True

    deadline = Deadline(timeout)
    while True:
        remaining = deadline.remaining()
        budget = poll_slice if remaining is None else min(remaining, poll_slice)
        poller.poll(budget)
        if condition():
            return True
        if deadline.expired():
            return False
