"""
Duration formatting for log output.

Example Usage:
    >>> delta_str(3661.5)
    '1h1m1s'

    >>> delta_str(0.25)
    '250ms'

    >>> delta_str(0.0000012)
    '1μs'
"""

import math

SECONDS_PER_DAY = 86400
SECONDS_PER_HOUR = 3600
SECONDS_PER_MINUTE = 60
MILLISECONDS_PER_SECOND = 1000
MICROSECONDS_PER_SECOND = 1_000_000


class InvalidDurationError(ValueError):
    """Raised when an invalid duration value is provided."""

    pass


def _validate(secs: float) -> None:
    if isinstance(secs, bool) or not isinstance(secs, (int, float)):
        raise InvalidDurationError(
            f"Duration must be a number, got {type(secs).__name__}"
        )
    if math.isnan(secs) or math.isinf(secs):
        raise InvalidDurationError(f"Duration must be finite, got {secs}")
    if secs < 0:
        raise InvalidDurationError(f"Duration cannot be negative, got {secs}")


def _split(secs: float) -> tuple[int, int, int, float]:
    """Split seconds into (days, hours, minutes, seconds)."""
    days, rest = divmod(secs, SECONDS_PER_DAY)
    hours, rest = divmod(rest, SECONDS_PER_HOUR)
    minutes, rest = divmod(rest, SECONDS_PER_MINUTE)
    return int(days), int(hours), int(minutes), rest


def _sub_second(secs: float) -> str:
    if secs < 0.001:
        return f"{int(secs * MICROSECONDS_PER_SECOND)}μs"
    msecs = secs * MILLISECONDS_PER_SECOND
    if msecs < 10:
        return f"{msecs:.3f}".rstrip("0").rstrip(".") + "ms"
    rounded = round(msecs)
    return "1s" if rounded >= 1000 else f"{rounded}ms"


def delta_str(secs: float) -> str:
    """
    Convert a duration in seconds to a compact human-readable string.

    Sub-second durations are rendered in ms/μs, durations under ten seconds
    keep millisecond precision, longer ones are truncated to whole seconds.

    Args:
        secs: Duration in seconds (non-negative, finite)

    Returns:
        Formatted duration such as '2.500s', '1m5s' or '3d4h'

    Raises:
        InvalidDurationError: If secs is not a finite non-negative number
    """
    _validate(secs)
    if secs == 0:
        return "0s"
    if secs < 1:
        return _sub_second(secs)

    days, hours, minutes, rest = _split(secs)
    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")

    if parts:
        if int(rest):
            parts.append(f"{int(rest)}s")
        return "".join(parts)

    if rest < 10:
        return f"{rest:.3f}s"
    return f"{int(rest)}s"
