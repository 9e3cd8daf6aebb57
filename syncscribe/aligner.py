"""Corrects subtitle timing drift with the external ffsubsync tool."""

import logging
import os
import subprocess
from typing import Optional

from .exceptions import AlignmentError

logger = logging.getLogger(__name__)

class SubtitleAligner:
    """Runs ffsubsync to align a subtitle file to a media file's audio."""

    def __init__(self, ffsubsync_path: Optional[str] = None):
        self.ffsubsync_cmd = ffsubsync_path or 'ffsubsync'

    def is_available(self) -> bool:
        """Checks that the ffsubsync executable can be launched."""
        try:
            result = subprocess.run(
                [self.ffsubsync_cmd, '--help'],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=False,
            )
        except OSError:
            return False
        return result.returncode in (0, 1)

    @staticmethod
    def default_output_path(subtitle_path: str) -> str:
        stem, ext = os.path.splitext(subtitle_path)
        return f"{stem}.synced{ext}"

    def sync(self, subtitle_path: str, media_path: str, output_path: Optional[str] = None) -> str:
        """
        Aligns subtitle_path against media_path.

        Returns:
            The path of the synchronized subtitle file.

        Raises:
            FileNotFoundError: If either input file is missing.
            AlignmentError: If ffsubsync is missing or exits with an error.
        """
        for path in (subtitle_path, media_path):
            if not os.path.exists(path):
                raise FileNotFoundError(f"File not found: {path}")

        output_path = output_path or self.default_output_path(subtitle_path)
        command = [self.ffsubsync_cmd, media_path, '-i', subtitle_path, '-o', output_path]
        logger.info(f"Running: {' '.join(command)}")

        try:
            result = subprocess.run(command, stdout=subprocess.PIPE, stderr=subprocess.PIPE, check=False)
        except OSError as e:
            raise AlignmentError(
                f"Could not run '{self.ffsubsync_cmd}': {e}. Install it with 'pip install ffsubsync'."
            ) from e

        if result.returncode != 0:
            stderr_output = result.stderr.decode('utf-8', errors='replace').strip()
            logger.error(f"ffsubsync failed for {subtitle_path}: {stderr_output}")
            raise AlignmentError(f"ffsubsync exited with code {result.returncode}: {stderr_output}")

        logger.info(f"Synchronized subtitles saved to: {output_path}")
        return output_path
