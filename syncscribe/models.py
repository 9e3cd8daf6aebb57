"""Data models for SyncScribe."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

class CaptionFormat(Enum):
    """Supported subtitle serializations. The value doubles as file extension."""
    SRT = "srt"
    VTT = "vtt"

@dataclass
class Segment:
    """Represents a single timed chunk of text."""
    start_time: float
    end_time: float
    text: str
    sequence_id: Optional[int] = None

@dataclass
class TranscriptionResult:
    """Holds the structured output from the ASR process."""
    language: Optional[str]
    segments: List[Segment] = field(default_factory=list)
    duration: Optional[float] = None
    text: Optional[str] = None
    original_audio_path: Optional[str] = None # Keep track of source if needed

@dataclass(frozen=True)
class CaptionBlock:
    """One indexed, timed caption with its wrapped display lines."""
    index: int
    start_timestamp: str
    end_timestamp: str
    lines: List[str]

    def render(self) -> str:
        return "\n".join([
            str(self.index),
            f"{self.start_timestamp} --> {self.end_timestamp}",
            *self.lines,
        ]) + "\n\n"

@dataclass
class CaptionTrack:
    """An ordered sequence of caption blocks in one output format."""
    format: CaptionFormat
    blocks: List[CaptionBlock] = field(default_factory=list)
    header: Optional[str] = None

    def render(self) -> str:
        body = "".join(block.render() for block in self.blocks)
        if self.header is not None:
            return f"{self.header}\n\n{body}"
        return body

@dataclass
class AudioTrack:
    """Describes one audio stream found in a media container."""
    index: int
    stream_index: Optional[int] = None
    codec: Optional[str] = None
    language: Optional[str] = None
    channels: Optional[int] = None
    sample_rate: Optional[str] = None
    bit_rate: Optional[str] = None
    duration: Optional[float] = None
    title: Optional[str] = None

    def describe(self) -> str:
        channels = f"{self.channels}ch" if self.channels else ""
        details = ", ".join(part for part in (self.language or "unknown", self.codec or "", channels) if part)
        return f"Track {self.index}: {details}"
