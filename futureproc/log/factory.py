"""
Factory for creating root loggers and derived view loggers.
"""

import dataclasses
import logging
import sys
from typing import Any, cast

from .config import LogConfig, resolve_level
from .formatters import LogFormatter
from .logger import Logger


class LoggerFactory:
    """Factory for creating and configuring loggers."""

    @staticmethod
    def create(
        name: str,
        config: LogConfig,
        logger_class: type[Logger] = Logger,
        extra: dict[str, Any] | None = None,
    ) -> Logger:
        """
        Create a logger with a console handler, or return the existing one.

        Args:
            name: Logger name, e.g. "/futureproc"
            config: Logger configuration
            logger_class: Logger class to use
            extra: Pre-populated extra fields to include in all log records

        Example:
            >>> lg = LoggerFactory.create("/futureproc", LogConfig.from_params("debug"))
            >>> lg.debug("spawned process", extra={"pid": 4242})
            [12:34:56,789] [D] spawned process    [pid:4242] [1234] [/futureproc]
        """
        existing = LoggerFactory._check_existing_logger(name)
        if existing is not None:
            return existing

        lg = logger_class(name, config, extra)
        handler = logging.StreamHandler(sys.stderr)
        if config.level is not False:
            handler.setLevel(config.level)
        handler.setFormatter(LogFormatter(config))
        lg.addHandler(handler)
        lg.propagate = False
        lg.parent = logging.root

        logging.root.manager.loggerDict[name] = lg
        lg.trace2("created logger", extra={"level": logging.getLevelName(lg.level)})
        return lg

    @staticmethod
    def derive(parent: Logger, tags: str | list[str]) -> Logger:
        """
        Derive a "view" logger that delegates to the root's handlers.

        Examples:
            >>> lg = LoggerFactory.create("/futureproc", config)
            >>> LoggerFactory.derive(lg, "reactor").name
            '/futureproc/reactor'
            >>> LoggerFactory.derive(lg, ["shell", "queue"]).name
            '/futureproc/shell/queue'

        Args:
            parent: Parent logger instance
            tags: Single tag or list of tags forming the name suffix

        Returns:
            Derived logger sharing the parent's level, config and extra fields
        """
        if isinstance(tags, str):
            tags = [tags]

        prefix = parent.name if parent.name.endswith("/") else parent.name + "/"
        name = prefix + "/".join(tags)

        existing = LoggerFactory._check_existing_logger(name)
        if existing is not None:
            return existing

        root = parent._root_logger if parent._root_logger else parent
        lg = parent.__class__(name, parent.config, dict(parent._extra))
        lg.setLevel(parent.level)
        lg.disabled = parent.disabled
        lg._root_logger = root
        lg.parent = parent
        lg.propagate = False

        logging.root.manager.loggerDict[name] = lg
        lg.trace2("derived logger", extra={"root": root.name})
        return lg

    @staticmethod
    def set_level(lg: Logger, level: str | int | bool) -> None:
        """
        Apply a new level to a root logger, its handlers and its view loggers.

        Example:
            >>> lg = create_lg("/futureproc", "warning")
            >>> LoggerFactory.set_level(lg, "debug")
            >>> derive_lg(lg, "reactor").level
            10
        """
        resolved = resolve_level(level)
        disabled = resolved is False
        numeric = logging.CRITICAL + 1 if disabled else resolved

        prefix = lg.name if lg.name.endswith("/") else lg.name + "/"
        views = [
            existing
            for name, existing in logging.root.manager.loggerDict.items()
            if name.startswith(prefix) and isinstance(existing, Logger)
        ]
        for target in [lg, *views]:
            target.setLevel(numeric)
            target.disabled = disabled
        for handler in lg.handlers:
            handler.setLevel(numeric)
        lg._config = dataclasses.replace(lg.config, level=resolved)

    @staticmethod
    def _check_existing_logger(name: str) -> Logger | None:
        existing = logging.root.manager.loggerDict.get(name)
        if isinstance(existing, Logger):
            return cast(Logger, existing)
        return None
