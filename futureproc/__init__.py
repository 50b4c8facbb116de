"""
futureproc: asynchronous child processes with bounded concurrency.

Launch OS processes through a Shell, which admits at most a configured
number at once and queues the rest. Every running child's pipes are drained
and filled by a cooperative non-blocking reactor, so children never stall on
a full pipe. Completion is observed through promises or blocking waits with
explicit timeouts.

Example:
    >>> from futureproc import Shell
    >>> shell = Shell()
    >>> result = shell.start_process("echo hello").get_result().wait(5)
    >>> result.get_exit_code(), result.read_from_buffer(1)
    (0, b'hello\\n')
"""

from importlib.metadata import PackageNotFoundError, version

from .buffer import STDERR, STDIN, STDOUT, PipeBuffer
from .config import ShellConfig
from .deadline import Deadline, poll_until
from .delta import delta_str
from .exceptions import (
    ConfigError,
    FutureProcError,
    PipeError,
    ProcessAbortedError,
    ProcessSpawnError,
    ProcessTimeoutError,
    ValidationError,
)
from .process import FutureProcess, ProcessStatus
from .promise import Promise, PromiseState
from .reactor import Channel, Reactor
from .result import FutureResult
from .shell import Shell
from .spawner import Spawner

try:
    __version__ = version("futureproc")
except PackageNotFoundError:
    # Package not installed (development checkout)
    __version__ = "0.1.0-dev"

__all__ = [
    "__version__",
    # Core
    "Shell",
    "ShellConfig",
    "FutureProcess",
    "FutureResult",
    "ProcessStatus",
    "Promise",
    "PromiseState",
    # I/O
    "Reactor",
    "Channel",
    "Spawner",
    "PipeBuffer",
    "STDIN",
    "STDOUT",
    "STDERR",
    # Time
    "Deadline",
    "poll_until",
    "delta_str",
    # Exceptions
    "FutureProcError",
    "ValidationError",
    "ConfigError",
    "PipeError",
    "ProcessSpawnError",
    "ProcessTimeoutError",
    "ProcessAbortedError",
]
