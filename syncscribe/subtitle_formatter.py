"""Handles formatting timed segments into subtitle tracks (SRT and WebVTT)."""

import logging
import os
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from .models import CaptionBlock, CaptionFormat, CaptionTrack, Segment
from .exceptions import ConfigurationError, FormattingError
from .line_wrapper import DEFAULT_MAX_WIDTH, wrap_text
from .timestamps import SRT_SEPARATOR, VTT_SEPARATOR, format_timestamp
from .utils import ensure_dir_exists

logger = logging.getLogger(__name__)

class SubtitleFormatter(ABC):
    """Abstract base class for subtitle formatters."""

    caption_format: CaptionFormat
    separator: str
    header: Optional[str] = None

    def __init__(self, max_line_width: int = DEFAULT_MAX_WIDTH):
        self.max_line_width = max_line_width

    @property
    def extension(self) -> str:
        return self.caption_format.value

    def build_track(self, segments: Sequence[Segment]) -> CaptionTrack:
        """
        Builds a caption track with one block per segment, in input order.

        Segment timing is trusted as given: overlapping or out-of-order
        segments are neither reordered nor rejected.

        Args:
            segments: The timed segments to caption.

        Returns:
            A CaptionTrack whose block indexes run densely from 1.
        """
        blocks = []
        for position, segment in enumerate(segments):
            blocks.append(
                CaptionBlock(
                    index=position + 1,
                    start_timestamp=format_timestamp(segment.start_time, self.separator),
                    end_timestamp=format_timestamp(segment.end_time, self.separator),
                    lines=wrap_text(segment.text, self.max_line_width),
                )
            )
        return CaptionTrack(format=self.caption_format, blocks=blocks, header=self.header)

    def render(self, segments: Sequence[Segment]) -> str:
        """Builds the track and serializes it to text."""
        return self.build_track(segments).render()

    def write(self, segments: Sequence[Segment], output_path: str) -> str:
        """
        Formats segments and writes them to a subtitle file.

        Args:
            segments: The timed segments to caption.
            output_path: Path to save the subtitle file.

        Returns:
            The path written.

        Raises:
            FormattingError: If file writing fails.
            FileSystemError: If the output directory cannot be created.
        """
        logger.info(f"Formatting {len(segments)} segments to {self.caption_format.name}: {output_path}")
        content = self.render(segments)

        output_dir = os.path.dirname(output_path)
        if output_dir:
            ensure_dir_exists(output_dir)

        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            logger.error(f"Failed to write subtitle file to {output_path}: {e}", exc_info=True)
            raise FormattingError(f"Could not write subtitle file {output_path}: {e}") from e

        logger.info(f"Successfully wrote {len(segments)} subtitle blocks to {output_path}")
        return output_path

    @abstractmethod
    def describe(self) -> str:
        """Human-readable name of the format, used in log messages."""
        pass


class SRTFormatter(SubtitleFormatter):
    """Formats subtitles into the SRT (SubRip Text) format."""

    caption_format = CaptionFormat.SRT
    separator = SRT_SEPARATOR

    def describe(self) -> str:
        return "SubRip (.srt)"


class VTTFormatter(SubtitleFormatter):
    """Formats subtitles into the WebVTT (Web Video Text Tracks) format."""

    caption_format = CaptionFormat.VTT
    separator = VTT_SEPARATOR
    header = "WEBVTT"

    def describe(self) -> str:
        return "WebVTT (.vtt)"


def get_formatter(output_format: str, max_line_width: int = DEFAULT_MAX_WIDTH) -> SubtitleFormatter:
    """
    Returns the formatter for an output format name ('srt' or 'vtt').

    Raises:
        ConfigurationError: For unsupported formats.
    """
    name = (output_format or "").lower().lstrip(".")
    if name == CaptionFormat.SRT.value:
        return SRTFormatter(max_line_width=max_line_width)
    if name == CaptionFormat.VTT.value:
        return VTTFormatter(max_line_width=max_line_width)
    raise ConfigurationError(f"Unsupported output format '{output_format}'. Choose 'srt' or 'vtt'.")
