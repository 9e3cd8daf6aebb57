"""Splits caption text into at most two display lines."""

import math
from typing import List

DEFAULT_MAX_WIDTH = 42
MAX_LINES = 2

def wrap_text(text: str, max_width: int = DEFAULT_MAX_WIDTH) -> List[str]:
    """
    Wraps text into one or two lines of roughly max_width characters.

    Words are packed greedily. A word longer than max_width gets a line of its
    own and is never broken. When greedy packing needs more than two lines the
    words are split in half by count instead, so the width limit may be exceeded.
    """
    if len(text) <= max_width:
        return [text]

    words = text.split()
    lines: List[str] = []
    current_line = ""
    for word in words:
        if len(f"{current_line} {word}".strip()) > max_width:
            if current_line:
                lines.append(current_line)
                current_line = word
            else:
                # Oversized word on an empty line
                lines.append(word)
                current_line = ""
        else:
            current_line = f"{current_line} {word}" if current_line else word
    if current_line:
        lines.append(current_line)

    if len(lines) > MAX_LINES:
        half = math.ceil(len(words) / 2)
        return [" ".join(words[:half]), " ".join(words[half:])]
    return lines or [text]
