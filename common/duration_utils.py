"""
Duration parsing and formatting helpers.

Durations are carried around as float seconds. The text forms follow the
compact unit-suffixed notation used in config files and reports, e.g.
``"250ms"``, ``"1.5s"``, ``"1m30s"`` and ``"2h0m0s"``.
"""

import re
from typing import Union

from common.errors import ConfigurationError

NANOS_PER_MICRO = 1_000
NANOS_PER_MILLI = 1_000_000
NANOS_PER_SECOND = 1_000_000_000
NANOS_PER_MINUTE = 60 * NANOS_PER_SECOND
NANOS_PER_HOUR = 60 * NANOS_PER_MINUTE

_UNIT_NANOS = {
    "ns": 1,
    "us": NANOS_PER_MICRO,
    "µs": NANOS_PER_MICRO,
    "μs": NANOS_PER_MICRO,
    "ms": NANOS_PER_MILLI,
    "s": NANOS_PER_SECOND,
    "m": NANOS_PER_MINUTE,
    "h": NANOS_PER_HOUR,
}

_COMPONENT_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(value: Union[str, int, float]) -> float:
    """Parse a duration into seconds.

    Args:
        value: Number of seconds, or a string such as ``"30s"``, ``"1m30s"``,
            ``"250ms"`` or ``"1.5h"``. Plain numeric strings are seconds.

    Returns:
        Duration in seconds

    Raises:
        ConfigurationError: If the value cannot be parsed
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        raise ConfigurationError(f"Invalid duration: {value!r}")

    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass

    sign = 1.0
    if text[:1] in ("-", "+"):
        if text[0] == "-":
            sign = -1.0
        text = text[1:]

    if not text:
        raise ConfigurationError(f"Invalid duration: {value!r}")

    total_nanos = 0.0
    pos = 0
    while pos < len(text):
        match = _COMPONENT_RE.match(text, pos)
        if not match:
            raise ConfigurationError(f"Invalid duration: {value!r}")
        number, unit = match.groups()
        total_nanos += float(number) * _UNIT_NANOS[unit]
        pos = match.end()

    return sign * total_nanos / NANOS_PER_SECOND


def _with_fraction(value: int, unit: int) -> str:
    whole, frac = divmod(value, unit)
    if not frac:
        return str(whole)
    width = len(str(unit)) - 1
    return f"{whole}.{str(frac).zfill(width).rstrip('0')}"


def format_duration(seconds: float) -> str:
    """Format seconds as a unit-suffixed string.

    Sub-second values use the largest fitting unit of ns, µs or ms. Longer
    values are written as hours, minutes and seconds with the leading zero
    components left out (``"5s"``, ``"1m30s"``, ``"2h0m0.5s"``).
    """
    nanos = round(seconds * NANOS_PER_SECOND)
    if nanos == 0:
        return "0s"

    sign = "-" if nanos < 0 else ""
    nanos = abs(nanos)

    if nanos < NANOS_PER_MICRO:
        return f"{sign}{nanos}ns"
    if nanos < NANOS_PER_MILLI:
        return f"{sign}{_with_fraction(nanos, NANOS_PER_MICRO)}µs"
    if nanos < NANOS_PER_SECOND:
        return f"{sign}{_with_fraction(nanos, NANOS_PER_MILLI)}ms"

    hours, rest = divmod(nanos, NANOS_PER_HOUR)
    minutes, rest = divmod(rest, NANOS_PER_MINUTE)
    secs = f"{_with_fraction(rest, NANOS_PER_SECOND)}s"

    if hours:
        return f"{sign}{hours}h{minutes}m{secs}"
    if minutes:
        return f"{sign}{minutes}m{secs}"
    return f"{sign}{secs}"
