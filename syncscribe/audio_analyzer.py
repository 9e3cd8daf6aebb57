"""Inspects media containers for audio tracks using ffprobe."""

import ffmpeg
import logging
import os
from typing import Callable, List, Optional

from .models import AudioTrack
from .exceptions import AudioExtractionError
from .languages import detect_language_from_title, normalize_track_language

logger = logging.getLogger(__name__)

LANGUAGE_TAG_KEYS = ('language', 'lang', 'LANGUAGE', 'LANG')

class AudioAnalyzer:
    """Lists the audio streams of a video file."""

    def __init__(self, ffprobe_path: Optional[str] = None):
        self.ffprobe_cmd = ffprobe_path or 'ffprobe'

    def analyze(self, video_path: str) -> List[AudioTrack]:
        """
        Probes a media file and returns its audio tracks.

        Raises:
            FileNotFoundError: If the media file does not exist.
            AudioExtractionError: If ffprobe cannot read the file.
        """
        logger.info(f"Analyzing media file: {video_path}")
        if not os.path.exists(video_path):
            raise FileNotFoundError(f"Input media file not found: {video_path}")

        try:
            probe_data = ffmpeg.probe(video_path, cmd=self.ffprobe_cmd)
        except ffmpeg.Error as e:
            stderr_output = e.stderr.decode('utf-8', errors='replace') if e.stderr else "No stderr output"
            logger.error(f"ffprobe failed for {video_path}: {stderr_output}")
            raise AudioExtractionError(f"Failed to read media metadata: {stderr_output}") from e

        tracks = self.parse_streams(probe_data)
        logger.info(f"Found {len(tracks)} audio track(s) in {os.path.basename(video_path)}")
        return tracks

    def parse_streams(self, probe_data: dict) -> List[AudioTrack]:
        """Builds AudioTrack entries from raw ffprobe JSON."""
        format_duration = probe_data.get('format', {}).get('duration')
        audio_streams = [s for s in probe_data.get('streams', []) if s.get('codec_type') == 'audio']

        tracks = []
        for idx, stream in enumerate(audio_streams):
            tags = stream.get('tags') or {}
            duration = stream.get('duration') or format_duration
            tracks.append(
                AudioTrack(
                    index=idx,
                    stream_index=stream.get('index'),
                    codec=stream.get('codec_name'),
                    language=self._parse_language(tags),
                    channels=stream.get('channels'),
                    sample_rate=stream.get('sample_rate'),
                    bit_rate=stream.get('bit_rate'),
                    duration=float(duration) if duration is not None else None,
                    title=tags.get('title'),
                )
            )
        return tracks

    def _parse_language(self, tags: dict) -> Optional[str]:
        for key in LANGUAGE_TAG_KEYS:
            if tags.get(key):
                return normalize_track_language(tags[key])
        return detect_language_from_title(tags.get('title'))


def select_track(
    tracks: List[AudioTrack],
    track_number: Optional[int] = None,
    auto: bool = False,
    chooser: Optional[Callable[[List[AudioTrack]], AudioTrack]] = None,
) -> AudioTrack:
    """
    Picks the audio track to transcribe.

    An explicit track_number wins. Otherwise a single track, or auto mode,
    selects the first track; with several tracks the chooser callback decides.

    Raises:
        AudioExtractionError: If there are no tracks or the requested one is missing.
    """
    if not tracks:
        raise AudioExtractionError("No audio tracks found in media file")

    if track_number is not None:
        for track in tracks:
            if track.index == track_number:
                return track
        available = ", ".join(str(t.index) for t in tracks)
        raise AudioExtractionError(f"Audio track {track_number} not found. Available tracks: {available}")

    if len(tracks) == 1 or auto or chooser is None:
        if len(tracks) > 1:
            logger.info(f"Multiple audio tracks found; using the first one ({tracks[0].describe()})")
        return tracks[0]

    return chooser(tracks)
