"""
Log formatter rendering structured extra fields.

Records produced by futureproc's Logger carry their extra fields under the
``__infra__extra`` attribute; they are rendered after the message as
``[key:value]`` pairs, followed by the process id and logger name:

    [12:34:56,789] [D] spawned process              [pid:4242] [1234] [/futureproc/shell]
"""

import logging
import os
from typing import Any

from ..delta import delta_str
from .colors import ColorManager
from .config import LogConfig
from .constants import LogConstants

EXTRA_ATTR = "__infra__extra"


def _render_value(key: str, value: Any) -> str:
    if key == "after" and isinstance(value, float):
        return delta_str(value)
    if isinstance(value, BaseException):
        return f"{value.__class__.__name__}: {value}"
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


def _iter_extra(record: logging.LogRecord) -> list[tuple[str, str]]:
    extra = getattr(record, EXTRA_ATTR, None)
    if not extra:
        return []
    # "after" (elapsed time) always leads
    keys = sorted(extra, key=lambda k: (k != "after", k))
    return [(k, _render_value(k, extra[k]).replace("%", "%%")) for k in keys]


class PreFormatter(logging.Formatter):
    """Standard formatter with optional microsecond timestamps."""

    def __init__(self, fmt: str, micros: bool) -> None:
        self._micros = micros
        super().__init__(fmt)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        s = super().formatTime(record)
        if self._micros:
            micros = int((record.created % 1) * 1000000) % 1000
            s += f".{micros:03d}"
        return s


class LogFormatter(logging.Formatter):
    """
    Formatter with colored levels, aligned extra fields, and optional
    caller locations.
    """

    def __init__(self, config: LogConfig):
        """
        Initialize the log formatter.

        Args:
            config: Logger configuration
        """
        super().__init__()
        self._config = config
        self._pre_formatter = PreFormatter(LogConstants.DEFAULT_FORMAT, config.micros)

    def format(self, record: logging.LogRecord) -> str:
        fmt = self._build_format(record)
        self._pre_formatter._fmt = fmt
        self._pre_formatter._style._fmt = fmt
        return self._pre_formatter.format(record)

    def _padding(self, record: logging.LogRecord) -> str:
        # "[" + timestamp + "] [" + level + "] " + message
        timestamp_len = 16 if self._config.micros else 12
        width = 1 + timestamp_len + 4 + 1 + 2 + len(record.getMessage())
        rule = (
            LogConstants.MICRO_RULE_WIDTH
            if self._config.micros
            else LogConstants.DEFAULT_RULE_WIDTH
        )
        return " " * max(1, rule - width)

    def _build_format(self, record: logging.LogRecord) -> str:
        fields = _iter_extra(record)
        if not self._config.colors:
            fmt = LogConstants.DEFAULT_FORMAT + self._padding(record)
            fmt += " ".join(f"[{k}:{v}]" for k, v in fields)
            fmt += (" " if fields else "") + "[%(process)d] [%(name)s]"
            return fmt + self._render_location(record)

        col = ColorManager.get_color_for_level(record.levelno)
        bold = ColorManager.create_bold_color(col)
        col += "m"
        reset = ColorManager.RESET

        fmt = f"{col}[%(asctime)s] [{bold}%(levelname).1s{reset}{col}] {bold}%(message)s"
        fmt += reset + self._padding(record)
        fmt += " ".join(f"{col}{k}[{bold}{v}{reset}{col}]" for k, v in fields)

        gray = ColorManager.create_gray_level(9) + "m"
        fmt += (" " if fields else "") + f"{gray}[%(process)d] [%(name)s]"
        return fmt + self._render_location(record) + reset

    def _render_location(self, record: logging.LogRecord) -> str:
        if not self._config.location:
            return ""
        path = "./" + os.path.relpath(record.pathname, os.getcwd())
        return f" [{path}:{record.lineno}]"
