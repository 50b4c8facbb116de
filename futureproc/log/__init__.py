"""
Logging for futureproc.

Extends Python's standard logging with:
- TRACE and TRACE2 levels below DEBUG
- Structured extra fields rendered as [key:value]
- Colored console output
- Hierarchical view loggers ("/futureproc/shell", "/futureproc/reactor")

Example:
    >>> from futureproc.log import create_lg, derive_lg
    >>> lg = create_lg("/myapp", "debug")
    >>> reactor_lg = derive_lg(lg, "reactor")
"""

import logging

from .config import LogConfig, resolve_level
from .constants import LogConstants
from .exceptions import InvalidLogLevelError, LogError
from .factory import LoggerFactory
from .formatters import LogFormatter
from .logger import Logger

logging.addLevelName(LogConstants.CUSTOM_LEVELS["TRACE"], "TRACE")
logging.addLevelName(LogConstants.CUSTOM_LEVELS["TRACE2"], "TRACE2")


def create_lg(
    name: str,
    level: str | int | bool = "info",
    location: bool | int = 0,
    micros: bool = False,
    colors: bool = True,
) -> Logger:
    """
    Create a logger with the specified configuration.

    Args:
        name: Logger name
        level: Log level (string, numeric, or False to disable)
        location: Number of stack levels to show in location info
        micros: Whether to show microsecond precision
        colors: Whether to emit ANSI colors

    Returns:
        Configured logger (an existing logger with that name is reused)
    """
    config = LogConfig.from_params(level, location, micros, colors)
    return LoggerFactory.create(name, config)


def derive_lg(lg: Logger, tags: str | list[str]) -> Logger:
    """
    Derive a view logger from a parent logger.

    Args:
        lg: Parent logger instance
        tags: Single tag or list of tags

    Returns:
        Derived logger instance
    """
    return LoggerFactory.derive(lg, tags)


__all__ = [
    "Logger",
    "LoggerFactory",
    "LogConfig",
    "LogConstants",
    "LogFormatter",
    "LogError",
    "InvalidLogLevelError",
    "resolve_level",
    "create_lg",
    "derive_lg",
]
