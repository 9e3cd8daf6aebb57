"""Shifts every timestamp of an existing subtitle track by a constant offset."""

import logging
import os
from typing import Optional

from .exceptions import MalformedTimestampError
from .timestamps import format_milliseconds, parse_timestamp, separator_of

logger = logging.getLogger(__name__)

TIMING_ARROW = " --> "

def _shift_token(token: str, offset_ms: int) -> str:
    return format_milliseconds(parse_timestamp(token) + offset_ms, separator_of(token))

def shift_timing(track_text: str, offset_seconds: float) -> str:
    """
    Applies offset_seconds to both timestamps of every timing line.

    A timing line is any line containing " --> "; every other line is passed
    through untouched. Shifted times are clamped at zero, so shifting back past
    the start of the track loses information.

    Raises:
        MalformedTimestampError: If a timing line holds an unparseable timestamp.
            Nothing is returned in that case.
    """
    offset_ms = round(offset_seconds * 1000)
    shifted_lines = []
    for line_number, line in enumerate(track_text.split("\n"), start=1):
        # CRLF input keeps its "\r" on every line, timing lines included
        ending = "\r" if line.endswith("\r") else ""
        content = line[:-1] if ending else line
        if TIMING_ARROW not in content:
            shifted_lines.append(line)
            continue

        start_token, _, remainder = content.partition(TIMING_ARROW)
        end_fields = remainder.split()
        end_token = end_fields[0] if end_fields else ""
        try:
            new_start = _shift_token(start_token, offset_ms)
            new_end = _shift_token(end_token, offset_ms)
        except MalformedTimestampError as e:
            raise MalformedTimestampError(f"Line {line_number}: {e}") from e
        shifted_lines.append(f"{new_start}{TIMING_ARROW}{new_end}{ending}")
    return "\n".join(shifted_lines)

def default_shifted_path(input_path: str, offset_seconds: float) -> str:
    """Builds '<stem>.shifted+3s.srt' style names next to the input."""
    stem, ext = os.path.splitext(input_path)
    sign = "+" if offset_seconds > 0 else ""
    return f"{stem}.shifted{sign}{offset_seconds:g}s{ext}"

def shift_file(input_path: str, offset_seconds: float, output_path: Optional[str] = None) -> str:
    """
    Reads a subtitle file, shifts it and writes the result.

    Returns:
        The path of the shifted file.

    Raises:
        FileNotFoundError: If the input file does not exist.
        MalformedTimestampError: If any timing line cannot be parsed; no output is written.
    """
    if not os.path.isfile(input_path):
        raise FileNotFoundError(f"Subtitle file not found: {input_path}")

    output_path = output_path or default_shifted_path(input_path, offset_seconds)
    direction = "forward" if offset_seconds > 0 else "backward"
    logger.info(f"Shifting subtitles {direction} by {abs(offset_seconds)} seconds: {input_path}")

    # newline='' keeps the file's own line endings on both sides
    with open(input_path, 'r', encoding='utf-8', newline='') as f:
        content = f.read()
    shifted = shift_timing(content, offset_seconds)
    with open(output_path, 'w', encoding='utf-8', newline='') as f:
        f.write(shifted)

    logger.info(f"Shifted subtitles written to: {output_path}")
    return output_path
