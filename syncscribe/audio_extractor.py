"""Handles audio extraction from video files using ffmpeg."""

import ffmpeg
import os
import logging
from .exceptions import AudioExtractionError
from typing import Optional
from .utils import ensure_dir_exists, file_size_mb, remove_file_quietly

logger = logging.getLogger(__name__)

# Speech APIs work best with 16kHz mono input
SAMPLE_RATE = 16000
CHANNELS = 1

AUDIO_CODECS = {
    'mp3': {'acodec': 'libmp3lame', 'audio_bitrate': '64k'},
    'wav': {'acodec': 'pcm_s16le'},
}

class AudioExtractor:
    """Extracts a single audio track from video files."""

    def __init__(self, ffmpeg_path: Optional[str] = None, audio_format: str = 'mp3'):
        """
        Initializes the AudioExtractor.

        Args:
            ffmpeg_path: Optional path to the ffmpeg executable.
                         If None, assumes ffmpeg is in the system PATH.
            audio_format: 'mp3' (small uploads) or 'wav' (lossless).
        """
        if audio_format not in AUDIO_CODECS:
            raise ValueError(f"Unsupported audio format '{audio_format}'. Choose one of: {', '.join(AUDIO_CODECS)}")
        self.ffmpeg_cmd = ffmpeg_path or 'ffmpeg'
        self.audio_format = audio_format
        logger.info(f"Using ffmpeg command: {self.ffmpeg_cmd} (output format: {self.audio_format})")

    def output_path_for(self, video_filepath: str, output_audio_dir: str, output_filename: Optional[str] = None) -> str:
        if output_filename is None:
            base_name = os.path.splitext(os.path.basename(video_filepath))[0]
        else:
            base_name = os.path.splitext(output_filename)[0]
        return os.path.join(output_audio_dir, f"{base_name}.{self.audio_format}")

    def extract_audio(
        self,
        video_filepath: str,
        output_audio_dir: str,
        output_filename: Optional[str] = None,
        track_index: int = 0,
    ) -> str:
        """
        Extracts one audio stream from a video file.

        Args:
            video_filepath: Path to the input video file.
            output_audio_dir: Directory to save the extracted audio file.
            output_filename: Optional base name for the output audio file.
                             If None, uses the video filename.
            track_index: Zero-based index among the file's audio streams.

        Returns:
            The full path to the extracted audio file.

        Raises:
            FileNotFoundError: If the input video file does not exist.
            AudioExtractionError: If ffmpeg fails to extract the audio.
            FileSystemError: If the output directory cannot be created/accessed.
        """
        logger.info(f"Starting audio extraction for: {video_filepath} (track {track_index})")
        if not os.path.exists(video_filepath):
            raise FileNotFoundError(f"Input video file not found: {video_filepath}")

        ensure_dir_exists(output_audio_dir)
        output_audio_path = self.output_path_for(video_filepath, output_audio_dir, output_filename)
        if os.path.exists(output_audio_path):
            logger.warning(f"Output audio file already exists, overwriting: {output_audio_path}")

        stream = ffmpeg.input(video_filepath)[f'a:{track_index}']
        job = (
            ffmpeg
            .output(stream, output_audio_path, ar=SAMPLE_RATE, ac=CHANNELS, **AUDIO_CODECS[self.audio_format])
            .overwrite_output()
        )
        try:
            job.run(cmd=self.ffmpeg_cmd, capture_stdout=True, capture_stderr=True)
        except ffmpeg.Error as e:
            stderr_output = e.stderr.decode('utf-8', errors='replace') if e.stderr else ""
            logger.debug(f"ffmpeg stderr for {video_filepath}:\n{stderr_output}")
            remove_file_quietly(output_audio_path)
            raise AudioExtractionError(
                f"ffmpeg could not extract audio track {track_index} from {video_filepath}: {last_ffmpeg_line(stderr_output)}"
            ) from e
        except OSError as e:
            raise AudioExtractionError(f"Could not run '{self.ffmpeg_cmd}': {e}") from e

        logger.info(f"Extracted audio track {track_index} to: {output_audio_path} ({file_size_mb(output_audio_path):.2f} MB)")
        return output_audio_path


def last_ffmpeg_line(stderr_output: str) -> str:
    """The last non-empty stderr line, which is where ffmpeg states the failure."""
    lines = [line.strip() for line in stderr_output.splitlines() if line.strip()]
    return lines[-1] if lines else "no error output"
