"""Library for parsing and formatting durations such as `5m` or `1h30m`."""

import re

from .exceptions import InputException

__all__ = [
    "parse_duration",
    "format_duration",
]

_UNITS = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ms|s|m|h)")
_NUMBER_RE = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def parse_duration(value: str) -> float:
    """Parse a duration string into seconds.

    Accepts a sequence of numbers each with a unit suffix (`ms`, `s`, `m`, `h`)
    e.g. `90s`, `1.5h` or `1h30m`. A bare number is a number of seconds.
    """
    text = value.strip()
    if not text:
        raise InputException("invalid duration: empty value")
    if _NUMBER_RE.fullmatch(text):
        return float(text)
    seconds = 0.0
    pos = 0
    for match in _PART_RE.finditer(text):
        if match.start() != pos:
            break
        seconds += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()
    if pos != len(text):
        raise InputException(f"invalid duration: '{value}'")
    return seconds


def format_duration(seconds: float) -> str:
    """Format a duration in a short human readable form."""
    if seconds < 60:
        return f"{seconds:.0f}s"
    if seconds < 3600:
        return f"{seconds / 60:.0f}m"
    return f"{seconds / 3600:.1f}h"
