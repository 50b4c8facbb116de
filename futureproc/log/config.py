"""
Immutable logger configuration.

LogConfig is shared by a root logger, its formatter, and every view logger
derived from it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .constants import LogConstants
from .exceptions import InvalidLogLevelError


def resolve_level(level: str | int | bool) -> int | bool:
    """
    Resolve a log level from a name, a numeric value, or False.

    Args:
        level: Level name ("debug", "trace", ...), numeric value, numeric
            string, or False / "false" to disable logging

    Returns:
        Numeric log level, or False when logging is disabled

    Raises:
        InvalidLogLevelError: If the level cannot be resolved
    """
    if isinstance(level, bool):
        return logging.INFO if level else False
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        name = level.strip().lower()
        if name.isnumeric():
            return int(name)
        if name in LogConstants.LEVEL_NAMES:
            return LogConstants.LEVEL_NAMES[name]
    raise InvalidLogLevelError(level)


@dataclass(frozen=True)
class LogConfig:
    """
    Immutable configuration for root loggers.

    Attributes:
        level: Numeric level, or False to disable logging
        location: Number of caller frames rendered as [file:line] (0 = off)
        micros: Append microseconds to timestamps
        colors: Emit ANSI colors
    """

    level: int | bool = logging.INFO
    location: int = 0
    micros: bool = False
    colors: bool = True

    @classmethod
    def from_params(
        cls,
        level: str | int | bool,
        location: bool | int = 0,
        micros: bool = False,
        colors: bool = True,
    ) -> LogConfig:
        """
        Create LogConfig from individual parameters.

        Args:
            level: Log level (string name, numeric value, or False to disable)
            location: Location display depth (bool or int)
            micros: Whether to show microsecond precision
            colors: Whether to enable colored output
        """
        resolved_location = (
            1 if location is True else (0 if location is False else int(location))
        )
        return cls(
            level=resolve_level(level),
            location=resolved_location,
            micros=micros,
            colors=colors,
        )

