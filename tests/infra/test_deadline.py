"""Tests for Deadline and the poll_until loop."""

import time

import pytest

from futureproc.deadline import Deadline, poll_until


class RecordingPoller:
    def __init__(self, ready_after: int | None = None):
        self.calls: list[float] = []
        self.ready_after = ready_after

    def poll(self, max_wait: float = 0.0) -> None:
        self.calls.append(max_wait)
        time.sleep(max_wait)

    def ready(self) -> bool:
        return self.ready_after is not None and len(self.calls) >= self.ready_after


@pytest.mark.unit
class TestDeadline:
    def test_no_timeout_never_expires(self):
        d = Deadline(None)
        assert d.remaining() is None
        assert not d.expired()

    def test_zero_timeout_is_expired_immediately(self):
        d = Deadline(0)
        assert d.remaining() == 0.0
        assert d.expired()

    def test_negative_timeout_treated_as_zero(self):
        assert Deadline(-1).expired()

    def test_remaining_shrinks(self):
        d = Deadline(10)
        first = d.remaining()
        time.sleep(0.01)
        assert d.remaining() < first
        assert d.elapsed() >= 0.01


@pytest.mark.unit
class TestPollUntil:
    def test_true_condition_skips_polling(self):
        poller = RecordingPoller()
        assert poll_until(poller, lambda: True, 0) is True
        assert poller.calls == []

    def test_zero_timeout_polls_once_without_waiting(self):
        poller = RecordingPoller()
        assert poll_until(poller, poller.ready, 0) is False
        assert poller.calls == [0.0]

    def test_stops_when_condition_holds(self):
        poller = RecordingPoller(ready_after=3)
        assert poll_until(poller, poller.ready, 5, poll_slice=0.001) is True
        assert len(poller.calls) == 3

    def test_budget_capped_by_slice_and_remaining(self):
        poller = RecordingPoller()
        start = time.monotonic()
        assert poll_until(poller, poller.ready, 0.05, poll_slice=0.02) is False
        assert time.monotonic() - start >= 0.05
        assert all(budget <= 0.02 for budget in poller.calls)

    def test_no_timeout_uses_full_slice(self):
        poller = RecordingPoller(ready_after=2)
        poll_until(poller, poller.ready, None, poll_slice=0.003)
        assert poller.calls == [0.003, 0.003]
