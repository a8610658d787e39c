"""WebVTT timestamp parsing and formatting in integer microseconds."""

from __future__ import annotations

MICROS_PER_MILLI = 1_000
MICROS_PER_SECOND = 1_000_000
MICROS_PER_MINUTE = 60 * MICROS_PER_SECOND
MICROS_PER_HOUR = 60 * MICROS_PER_MINUTE


def _parse_digits(part: str, timestamp: str) -> int:
    """Parses one ASCII-digit component, rejecting signs and separators."""
    if not part or not (part.isascii() and part.isdigit()):
        raise ValueError(f"Invalid WebVTT timestamp: {timestamp!r}")
    return int(part)


def parse_timestamp_us(timestamp: str) -> int:
    """Parses ``[[HH:]MM:]SS[.mmm]`` into microseconds.

    The integer part accumulates base-60 over its colon-separated components, so
    ``SS``, ``MM:SS`` and ``HH:MM:SS`` are all accepted. The fractional part is
    added as a millisecond count.

    Raises:
        ValueError: If any component is not a non-negative decimal integer.
    """
    whole, dot, fraction = timestamp.partition(".")
    value = 0
    for subpart in whole.split(":"):
        value = value * 60 + _parse_digits(subpart, timestamp)
    value *= 1000
    if dot:
        value += _parse_digits(fraction, timestamp)
    return value * MICROS_PER_MILLI


def format_timestamp_us(time_us: int) -> str:
    """Formats microseconds as ``HHH:MM:SS.mmm`` (hours padded to three digits)."""
    hours = time_us // MICROS_PER_HOUR
    minutes = (time_us % MICROS_PER_HOUR) // MICROS_PER_MINUTE
    seconds = (time_us % MICROS_PER_MINUTE) // MICROS_PER_SECOND
    millis = (time_us % MICROS_PER_SECOND) // MICROS_PER_MILLI
    return f"{hours:03d}:{minutes:02d}:{seconds:02d}.{millis:03d}"
