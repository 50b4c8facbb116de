"""
Tests for the logging package.

Covers level resolution, LogConfig construction, structured extra rendering,
custom trace levels and derived view loggers.
"""

import logging

import pytest

from futureproc.log import (
    InvalidLogLevelError,
    LogConfig,
    Logger,
    LoggerFactory,
    create_lg,
    derive_lg,
    resolve_level,
)
from futureproc.log.formatters import LogFormatter


@pytest.mark.unit
class TestResolveLevel:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("debug", logging.DEBUG),
            ("WARNING", logging.WARNING),
            ("trace", 5),
            ("trace2", 4),
            ("15", 15),
            (30, 30),
            (False, False),
            ("false", False),
        ],
    )
    def test_resolves(self, value, expected):
        assert resolve_level(value) == expected

    def test_invalid(self):
        with pytest.raises(InvalidLogLevelError):
            resolve_level("verbose")


@pytest.mark.unit
class TestLogConfig:
    def test_from_params(self):
        cfg = LogConfig.from_params("debug", location=True, micros=True, colors=False)
        assert cfg.level == logging.DEBUG
        assert cfg.location == 1
        assert cfg.micros is True
        assert cfg.colors is False


@pytest.mark.unit
class TestLogger:
    def test_extra_fields_rendered(self, test_logger, log_stream):
        test_logger.info("spawned process", extra={"pid": 4242, "command": "ls"})
        line = log_stream.getvalue()
        assert "spawned process" in line
        assert "[command:ls]" in line
        assert "[pid:4242]" in line
        assert "[/test]" in line

    def test_elapsed_field_formatted_as_duration(self, test_logger, log_stream):
        test_logger.info("reaped", extra={"after": 1.5})
        assert "[after:1.500s]" in log_stream.getvalue()

    def test_exception_field_shows_type(self, test_logger, log_stream):
        test_logger.warning("failed", extra={"exception": OSError("bad fd")})
        assert "[exception:OSError: bad fd]" in log_stream.getvalue()

    def test_trace_levels(self, test_logger, log_stream):
        test_logger.trace("slice")
        test_logger.trace2("deeper")
        out = log_stream.getvalue()
        assert "[T] slice" in out
        assert "[T] deeper" in out

    def test_percent_in_extra_is_safe(self, test_logger, log_stream):
        test_logger.info("cmd", extra={"command": "date +%s"})
        assert "[command:date +%s]" in log_stream.getvalue()

    def test_disabled_logger_emits_nothing(self, log_stream):
        lg = LoggerFactory.create("/test/off", LogConfig.from_params(False))
        for handler in lg.handlers:
            handler.setStream(log_stream)
        lg.error("never")
        assert lg.disabled
        assert log_stream.getvalue() == ""

    def test_colored_output_contains_escape_codes(self):
        formatter = LogFormatter(LogConfig.from_params("info", colors=True))
        record = Logger("/test/c").makeRecord(
            "/test/c", logging.INFO, __file__, 1, "hello", (), None
        )
        assert "\x1b[" in formatter.format(record)


@pytest.mark.unit
class TestFactory:
    def test_create_reuses_existing(self):
        first = create_lg("/test/app", "info")
        assert create_lg("/test/app", "debug") is first

    def test_derive_builds_hierarchical_names(self):
        root = create_lg("/test/app", "info")
        assert derive_lg(root, "reactor").name == "/test/app/reactor"
        assert derive_lg(root, ["shell", "queue"]).name == "/test/app/shell/queue"

    def test_derived_logger_uses_root_handlers(self, test_logger, log_stream):
        child = derive_lg(test_logger, "reactor")
        assert child.handlers == []
        child.debug("reaped process", extra={"pid": 1})
        assert "[/test/reactor]" in log_stream.getvalue()

    def test_derived_logger_inherits_level(self):
        root = create_lg("/test/quiet", "warning")
        child = derive_lg(root, "x")
        assert child.level == logging.WARNING
        assert not child.isEnabledFor(logging.INFO)

    def test_set_level_updates_root_handlers_and_views(self):
        root = create_lg("/test/levels", "warning")
        child = derive_lg(root, "reactor")

        LoggerFactory.set_level(root, "debug")

        assert root.level == child.level == logging.DEBUG
        assert all(h.level == logging.DEBUG for h in root.handlers)
        assert root.config.level == logging.DEBUG
        assert child.isEnabledFor(logging.DEBUG)

    def test_set_level_false_disables(self):
        root = create_lg("/test/off2", "info")
        child = derive_lg(root, "shell")

        LoggerFactory.set_level(root, False)

        assert root.disabled and child.disabled
        assert not root.isEnabledFor(logging.CRITICAL)

    def test_set_level_leaves_other_loggers_alone(self):
        root = create_lg("/test/a", "warning")
        other = create_lg("/test/ab", "warning")

        LoggerFactory.set_level(root, "debug")

        assert other.level == logging.WARNING
