"""
Configuration for a Shell.

ShellConfig is an immutable set of tuning knobs for admission, polling, and
shutdown. It can be built from keyword arguments, a dictionary section, a
YAML file, and FUTUREPROC_* environment variable overrides:

    # etc/futureproc.yaml
    shell:
      process_limit: 4
      poll_slice: 0.02
      abort_signal: SIGKILL
      logging:
        level: debug

    >>> cfg = ShellConfig.from_yaml("etc/futureproc.yaml", section="shell")
    >>> cfg = cfg.with_env_overrides()   # FUTUREPROC_PROCESS_LIMIT=8 wins
"""

from __future__ import annotations

import dataclasses
import os
import signal
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError
from .log import InvalidLogLevelError, resolve_level

ENV_PREFIX = "FUTUREPROC_"

# Refuse to parse absurdly large config files
MAX_CONFIG_SIZE_BYTES = 1024 * 1024

_UNLIMITED = ("", "none", "null", "unlimited", "inf")


def _parse_limit(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, str):
        if value.strip().lower() in _UNLIMITED:
            return None
        value = value.strip()
    try:
        limit = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError("invalid process_limit", value=value) from e
    if isinstance(value, bool) or limit < 0:
        raise ConfigError("invalid process_limit", value=value)
    return limit


def _parse_seconds(name: str, value: Any, allow_zero: bool = True) -> float:
    try:
        secs = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid {name}", value=value) from e
    if secs < 0 or (secs == 0 and not allow_zero) or secs != secs:
        raise ConfigError(f"invalid {name}", value=value)
    return secs


def _parse_signal(value: Any) -> signal.Signals:
    if isinstance(value, signal.Signals):
        return value
    try:
        if isinstance(value, str) and not value.strip().isdigit():
            name = value.strip().upper()
            if not name.startswith("SIG"):
                name = "SIG" + name
            return signal.Signals[name]
        return signal.Signals(int(value))
    except (KeyError, ValueError, TypeError) as e:
        raise ConfigError("invalid abort_signal", value=value) from e


def _parse_chunk(value: Any) -> int:
    try:
        size = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError("invalid read_chunk_size", value=value) from e
    if size <= 0:
        raise ConfigError("invalid read_chunk_size", value=value)
    return size


@dataclass(frozen=True)
class ShellConfig:
    """
    Immutable Shell configuration.

    Attributes:
        process_limit: Maximum number of concurrently running processes
            (None = unlimited)
        poll_slice: Longest single reactor slice inside a blocking wait
        read_chunk_size: Maximum bytes read from one descriptor per slice
        abort_signal: Signal sent to a running process on abort
        shutdown_grace: Seconds to wait for aborted children on close()
            before escalating to SIGKILL
        log_level: Level of the default logger
    """

    process_limit: int | None = None
    poll_slice: float = 0.05
    read_chunk_size: int = 65536
    abort_signal: signal.Signals = signal.SIGTERM
    shutdown_grace: float = 1.0
    log_level: str | int | bool = "warning"

    def __post_init__(self) -> None:
        object.__setattr__(self, "process_limit", _parse_limit(self.process_limit))
        object.__setattr__(
            self, "poll_slice", _parse_seconds("poll_slice", self.poll_slice, False)
        )
        object.__setattr__(
            self, "read_chunk_size", _parse_chunk(self.read_chunk_size)
        )
        object.__setattr__(self, "abort_signal", _parse_signal(self.abort_signal))
        object.__setattr__(
            self,
            "shutdown_grace",
            _parse_seconds("shutdown_grace", self.shutdown_grace),
        )
        try:
            resolve_level(self.log_level)
        except InvalidLogLevelError as e:
            raise ConfigError("invalid log_level", value=self.log_level) from e

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in dataclasses.fields(cls)]

    @classmethod
    def from_dict(cls, config_dict: dict, section: str | None = None) -> ShellConfig:
        """
        Create a ShellConfig from a dictionary.

        Unknown keys are ignored; a nested "logging" mapping supplies
        log_level through its "level" key.

        Args:
            config_dict: Configuration mapping
            section: Optional dotted path to the relevant sub-mapping

        Raises:
            ConfigError: If the section is not a mapping or a value is invalid
        """
        current: Any = config_dict
        if section:
            for part in section.split("."):
                if not isinstance(current, dict) or part not in current:
                    raise ConfigError("config section not found", section=section)
                current = current[part]
        if not isinstance(current, dict):
            raise ConfigError("config section is not a mapping", section=section)

        values = {k: v for k, v in current.items() if k in cls.field_names()}
        logging_section = current.get("logging")
        if isinstance(logging_section, dict) and "level" in logging_section:
            values.setdefault("log_level", logging_section["level"])
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: str | Path, section: str | None = None) -> ShellConfig:
        """
        Load a ShellConfig from a YAML file.

        Args:
            path: YAML file path
            section: Optional dotted path inside the document

        Raises:
            ConfigError: If the file is missing, too large, or not valid YAML
        """
        path = Path(path)
        try:
            size = path.stat().st_size
        except OSError as e:
            raise ConfigError("cannot read config file", path=str(path)) from e
        if size > MAX_CONFIG_SIZE_BYTES:
            raise ConfigError("config file too large", path=str(path), size=size)

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError("invalid YAML", path=str(path)) from e

        return cls.from_dict(data or {}, section)

    def with_env_overrides(
        self, environ: dict[str, str] | None = None, prefix: str = ENV_PREFIX
    ) -> ShellConfig:
        """
        Return a copy with FUTUREPROC_<FIELD> environment variables applied.

        Example:
            FUTUREPROC_PROCESS_LIMIT=4 FUTUREPROC_ABORT_SIGNAL=SIGKILL
        """
        env = os.environ if environ is None else environ
        overrides = {}
        for name in self.field_names():
            key = prefix + name.upper()
            if key in env:
                overrides[name] = env[key]
        if not overrides:
            return self
        return dataclasses.replace(self, **overrides)

    @classmethod
    def from_env(
        cls, base: ShellConfig | None = None, environ: dict[str, str] | None = None
    ) -> ShellConfig:
        """Build a ShellConfig from defaults (or base) plus environment overrides."""
        return (base or cls()).with_env_overrides(environ)
