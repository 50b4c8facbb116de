"""
Settle-once promise.

A Promise starts PENDING and transitions exactly once to FULFILLED(value) or
REJECTED(reason). Subscribers registered with then() run synchronously: at
settlement time in subscription order, or immediately when the promise has
already settled. Cancellation travels as an ordinary rejection value; the
reason object is delivered to every subscriber unchanged.

Example:
    >>> p = Promise()
    >>> doubled = p.then(lambda v: v * 2)
    >>> p.resolve(21)
    True
    >>> doubled.value
    42
"""

from __future__ import annotations

import enum
import threading
from collections.abc import Callable
from typing import Any

Callback = Callable[[Any], Any]


class PromiseState(enum.Enum):
    """Settlement state of a Promise."""

    PENDING = "pending"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"


class Promise:
    """
    Generic settle-once future with late subscription.

    then() returns a derived promise settled with the callback's return value,
    or rejected with the exception the callback raised. Without a matching
    callback the derived promise adopts this promise's outcome.
    """

    def __init__(self) -> None:
        self._state = PromiseState.PENDING
        self._value: Any = None
        self._handlers: list[tuple[Callback | None, Callback | None, Promise]] = []
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        if self._state is PromiseState.PENDING:
            return "<Promise pending>"
        return f"<Promise {self._state.value}: {self._value!r}>"

    @classmethod
    def resolved(cls, value: Any = None) -> Promise:
        """Create a promise already fulfilled with value."""
        p = cls()
        p.resolve(value)
        return p

    @classmethod
    def rejected(cls, reason: Any) -> Promise:
        """Create a promise already rejected with reason."""
        p = cls()
        p.reject(reason)
        return p

    @property
    def state(self) -> PromiseState:
        return self._state

    @property
    def value(self) -> Any:
        """Fulfillment value or rejection reason (None while pending)."""
        return self._value

    def is_pending(self) -> bool:
        return self._state is PromiseState.PENDING

    def is_fulfilled(self) -> bool:
        return self._state is PromiseState.FULFILLED

    def is_rejected(self) -> bool:
        return self._state is PromiseState.REJECTED

    def resolve(self, value: Any = None) -> bool:
        """
        Fulfill the promise.

        Returns:
            True if this call settled the promise, False if it was already settled
        """
        return self._settle(PromiseState.FULFILLED, value)

    def reject(self, reason: Any) -> bool:
        """
        Reject the promise with an opaque reason.

        Returns:
            True if this call settled the promise, False if it was already settled
        """
        return self._settle(PromiseState.REJECTED, reason)

    def then(
        self,
        on_fulfilled: Callback | None = None,
        on_rejected: Callback | None = None,
    ) -> Promise:
        """
        Subscribe to settlement.

        Args:
            on_fulfilled: Called with the value once fulfilled
            on_rejected: Called with the reason once rejected

        Returns:
            Derived promise settled by the outcome of the invoked callback
        """
        derived = Promise()
        with self._lock:
            if self._state is PromiseState.PENDING:
                self._handlers.append((on_fulfilled, on_rejected, derived))
                return derived
        self._dispatch(on_fulfilled, on_rejected, derived)
        return derived

    def otherwise(self, on_rejected: Callback) -> Promise:
        """Shortcut for then(None, on_rejected)."""
        return self.then(None, on_rejected)

    def _settle(self, state: PromiseState, value: Any) -> bool:
        with self._lock:
            if self._state is not PromiseState.PENDING:
                return False
            self._state = state
            self._value = value
            handlers, self._handlers = self._handlers, []

        # Subscribers added from inside a callback see a settled promise and
        # run immediately, so the snapshot is never mutated while iterating.
        for on_fulfilled, on_rejected, derived in handlers:
            self._dispatch(on_fulfilled, on_rejected, derived)
        return True

    def _dispatch(
        self,
        on_fulfilled: Callback | None,
        on_rejected: Callback | None,
        derived: Promise,
    ) -> None:
        fulfilled = self._state is PromiseState.FULFILLED
        callback = on_fulfilled if fulfilled else on_rejected
        if callback is None:
            derived._settle(self._state, self._value)
            return

        try:
            result = callback(self._value)
        except Exception as e:
            derived.reject(e)
            return

        if isinstance(result, Promise):
            result.then(derived.resolve, derived.reject)
        else:
            derived.resolve(result)
