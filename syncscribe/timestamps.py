"""Conversion between numeric times and caption timestamp text."""

import math
import re

from .exceptions import MalformedTimestampError

SRT_SEPARATOR = ","
VTT_SEPARATOR = "."

_TIMESTAMP_PATTERN = re.compile(r"^(\d+):(\d+):(\d+)[,.](\d+)$")

def format_milliseconds(total_ms: int, separator: str = SRT_SEPARATOR) -> str:
    """
    Formats an integer millisecond count as HH:MM:SS<sep>mmm.

    Negative values are clamped to zero. Hours are not wrapped at 24.
    """
    if total_ms < 0:
        total_ms = 0
    milliseconds = total_ms % 1000
    total_seconds = total_ms // 1000
    secs = total_seconds % 60
    total_minutes = total_seconds // 60
    mins = total_minutes % 60
    hrs = total_minutes // 60
    return f"{hrs:02d}:{mins:02d}:{secs:02d}{separator}{milliseconds:03d}"

def format_timestamp(seconds: float, separator: str = SRT_SEPARATOR) -> str:
    """
    Formats seconds into caption time format HH:MM:SS<sep>mmm.

    Args:
        seconds: Time in seconds, possibly fractional.
        separator: ',' for SRT, '.' for WebVTT.

    Returns:
        Formatted time string. Sub-millisecond precision is truncated, not rounded.
    """
    if seconds < 0:
        seconds = 0.0 # Ensure non-negative time
    return format_milliseconds(int(math.floor(seconds * 1000)), separator)

def parse_timestamp(text: str) -> int:
    """
    Parses HH:MM:SS,mmm (or HH:MM:SS.mmm) into total milliseconds.

    Raises:
        MalformedTimestampError: If the text does not have that shape.
    """
    match = _TIMESTAMP_PATTERN.match(text.strip()) if isinstance(text, str) else None
    if not match:
        raise MalformedTimestampError(f"Malformed timestamp: {text!r}")
    hours, minutes, seconds, millis = (int(group) for group in match.groups())
    return ((hours * 3600) + (minutes * 60) + seconds) * 1000 + millis

def separator_of(text: str) -> str:
    """Returns the millisecond separator used by a timestamp token."""
    return VTT_SEPARATOR if VTT_SEPARATOR in text else SRT_SEPARATOR
