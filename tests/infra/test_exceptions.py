"""Tests for the exception hierarchy."""

import pytest

from futureproc.exceptions import (
    ConfigError,
    FutureProcError,
    PipeError,
    ProcessAbortedError,
    ProcessSpawnError,
    ProcessTimeoutError,
    ValidationError,
    abort_exception,
)


@pytest.mark.unit
class TestHierarchy:
    @pytest.mark.parametrize(
        "cls",
        [ValidationError, ConfigError, PipeError, ProcessSpawnError, ProcessTimeoutError],
    )
    def test_all_derive_from_base(self, cls):
        assert issubclass(cls, FutureProcError)

    def test_timeout_is_builtin_timeout(self):
        with pytest.raises(TimeoutError):
            raise ProcessTimeoutError("too slow")

    def test_str_includes_context(self):
        e = ValidationError("invalid pipe index", index=5)
        assert str(e) == "invalid pipe index (index=5)"
        assert e.context == {"index": 5}

    def test_str_without_context(self):
        assert str(PipeError("pipe failed")) == "pipe failed"


@pytest.mark.unit
class TestAbortReasons:
    def test_default_aborted_error_is_its_own_reason(self):
        e = ProcessAbortedError("proc")
        assert e.reason is e
        assert e.process == "proc"

    def test_exception_reason_raised_as_is(self):
        reason = KeyError("stop")
        assert abort_exception(reason) is reason

    def test_plain_reason_is_wrapped_by_identity(self):
        reason = {"why": "user cancelled"}
        e = abort_exception(reason, process="proc")
        assert isinstance(e, ProcessAbortedError)
        assert e.reason is reason
        assert e.process == "proc"
