"""
Tests for the settle-once Promise.

Covers:
- Single settlement (resolve/reject after settlement are no-ops)
- Subscription order and late subscription
- Derived promises (callback results, raised exceptions, adoption)
- Re-entrant subscription from inside a callback
"""

import pytest

from futureproc.promise import Promise, PromiseState


@pytest.mark.unit
class TestSettlement:
    def test_starts_pending(self):
        p = Promise()
        assert p.state is PromiseState.PENDING
        assert p.is_pending()
        assert p.value is None

    def test_resolve_settles_once(self):
        p = Promise()
        assert p.resolve("first") is True
        assert p.resolve("second") is False
        assert p.reject(RuntimeError()) is False
        assert p.is_fulfilled()
        assert p.value == "first"

    def test_reject_settles_once(self):
        reason = object()
        p = Promise()
        assert p.reject(reason) is True
        assert p.resolve("late") is False
        assert p.is_rejected()
        assert p.value is reason

    def test_factory_constructors(self):
        assert Promise.resolved(3).value == 3
        assert Promise.rejected("no").is_rejected()

    def test_repr_reflects_state(self):
        p = Promise()
        assert "pending" in repr(p)
        p.resolve(1)
        assert "fulfilled" in repr(p)


@pytest.mark.unit
class TestSubscription:
    def test_pending_callbacks_fire_in_subscription_order(self):
        p = Promise()
        seen = []
        p.then(lambda v: seen.append(("a", v)))
        p.then(lambda v: seen.append(("b", v)))
        p.then(lambda v: seen.append(("c", v)))
        assert seen == []

        p.resolve(7)
        assert seen == [("a", 7), ("b", 7), ("c", 7)]

    def test_late_subscription_fires_before_then_returns(self):
        p = Promise.resolved("done")
        seen = []
        p.then(seen.append)
        assert seen == ["done"]

    def test_rejection_reaches_only_rejection_callback(self):
        reason = ValueError("boom")
        p = Promise()
        fulfilled, rejected = [], []
        p.then(fulfilled.append, rejected.append)
        p.reject(reason)
        assert fulfilled == []
        assert rejected == [reason]
        assert rejected[0] is reason

    def test_otherwise_is_rejection_shortcut(self):
        p = Promise.rejected("why")
        seen = []
        p.otherwise(seen.append)
        assert seen == ["why"]

    def test_then_from_inside_callback_runs_immediately(self):
        p = Promise()
        seen = []

        def outer(value):
            seen.append("outer")
            p.then(lambda v: seen.append("inner"))
            seen.append("after-inner")

        p.then(outer)
        p.then(lambda v: seen.append("second"))
        p.resolve(None)

        assert seen == ["outer", "inner", "after-inner", "second"]

    def test_each_callback_fires_exactly_once(self):
        p = Promise()
        calls = []
        p.then(lambda v: calls.append(v))
        p.resolve(1)
        p.resolve(2)
        p.reject(3)
        assert calls == [1]


@pytest.mark.unit
class TestDerivedPromises:
    def test_callback_result_fulfills_derived(self):
        p = Promise()
        derived = p.then(lambda v: v * 2)
        p.resolve(21)
        assert derived.value == 42

    def test_callback_exception_rejects_derived(self):
        error = RuntimeError("callback failed")

        def raise_it(_):
            raise error

        derived = Promise.resolved(1).then(raise_it)
        assert derived.is_rejected()
        assert derived.value is error

    def test_missing_callback_passes_outcome_through(self):
        reason = object()
        derived = Promise.rejected(reason).then(lambda v: "unused")
        assert derived.is_rejected()
        assert derived.value is reason

        passed = Promise.resolved("v").then(None, lambda r: "unused")
        assert passed.value == "v"

    def test_rejection_handler_recovers(self):
        derived = Promise.rejected("bad").then(None, lambda r: f"handled {r}")
        assert derived.is_fulfilled()
        assert derived.value == "handled bad"

    def test_returned_promise_is_adopted(self):
        inner = Promise()
        derived = Promise.resolved(None).then(lambda _: inner)
        assert derived.is_pending()
        inner.resolve("late")
        assert derived.value == "late"
