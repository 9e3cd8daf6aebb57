"""Orchestrates the subtitle generation pipeline."""

import logging
import os
import time
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .aligner import SubtitleAligner
from .audio_analyzer import AudioAnalyzer, select_track
from .audio_extractor import AudioExtractor
from .transcriber import Transcriber
from .translator import Translator
from .subtitle_formatter import get_formatter
from .models import AudioTrack, Segment, TranscriptionResult
from .exceptions import SyncScribeError, FileSystemError
from .languages import to_iso639_1
from .utils import ensure_dir_exists, remove_file_quietly

logger = logging.getLogger(__name__)

TrackChooser = Callable[[List[AudioTrack]], AudioTrack]

class SubtitleGenerator:
    """
    Manages the end-to-end process of generating subtitles for a video file.
    """

    def __init__(
        self,
        config: dict,
        audio_analyzer: AudioAnalyzer,
        audio_extractor: AudioExtractor,
        transcriber: Transcriber,
        translator: Optional[Translator] = None,
        aligner: Optional[SubtitleAligner] = None,
    ):
        """
        Initializes the SubtitleGenerator.

        Args:
            config: A dictionary containing configuration settings.
            audio_analyzer: Lists the audio tracks of the input.
            audio_extractor: An instance of AudioExtractor.
            transcriber: An instance of Transcriber.
            translator: Optional Translator, required only when translating.
            aligner: Optional SubtitleAligner, used when sync is enabled.
        """
        self.config = config
        self.audio_analyzer = audio_analyzer
        self.audio_extractor = audio_extractor
        self.transcriber = transcriber
        self.translator = translator
        self.aligner = aligner

        # Validate essential config paths
        self.temp_dir = config.get('temp_dir')
        if not self.temp_dir:
            raise SyncScribeError("Configuration missing 'temp_dir'.")
        try:
            # Ensure temp dir exists and is writable early on
             ensure_dir_exists(self.temp_dir)
             test_file = os.path.join(self.temp_dir, f".syncscribe_write_test_{int(time.time())}")
             with open(test_file, "w") as f: f.write("test")
             os.remove(test_file)
        except (FileSystemError, OSError, ValueError) as e:
             raise SyncScribeError(f"Temporary directory '{self.temp_dir}' is invalid or not writable: {e}") from e

        self.subtitle_formatter = get_formatter(
            config.get('output_format', 'srt'),
            max_line_width=config.get('max_line_width', 42),
        )
        self.sync_enabled = bool(config.get('sync_enabled', False))

    def output_paths(
        self,
        video_path: str,
        output_path: Optional[str] = None,
        target_languages: Sequence[str] = (),
        output_dir: Optional[str] = None,
    ) -> Tuple[str, Dict[str, str]]:
        """
        Determines the source-language subtitle path and one path per translation.

        output_dir always names a directory, created when missing. output_path
        may be a file path or an existing directory. Without either, the
        subtitles are written next to the video.
        """
        if output_path and output_dir:
            raise SyncScribeError("Give either an output file or an output directory, not both.")

        ext = self.subtitle_formatter.extension
        base_name = os.path.splitext(os.path.basename(video_path))[0]
        if output_dir:
            ensure_dir_exists(output_dir)
            source_path = os.path.join(output_dir, f"{base_name}.{ext}")
        elif output_path is None:
            source_path = os.path.join(os.path.dirname(video_path), f"{base_name}.{ext}")
        elif os.path.isdir(output_path):
            source_path = os.path.join(output_path, f"{base_name}.{ext}")
        else:
            source_path = output_path

        stem, source_ext = os.path.splitext(source_path)
        source_ext = source_ext or f".{ext}"
        translated = {lang: f"{stem}.{lang}{source_ext}" for lang in target_languages}
        return source_path, translated

    def _temp_audio_name(self, video_path: str, track_index: int) -> str:
        base_name = os.path.splitext(os.path.basename(video_path))[0]
        return f"{base_name}_track{track_index}_{int(time.time() * 1000)}" # Add timestamp for uniqueness

    def _write_track(self, segments: List[Segment], output_path: str, video_path: str) -> str:
        if not segments:
            logger.warning(f"No segments to write; {output_path} will contain an empty track.")
        self.subtitle_formatter.write(segments, output_path)
        if self.sync_enabled:
            self._align(output_path, video_path)
        return output_path

    def _align(self, subtitle_path: str, video_path: str) -> None:
        if self.aligner is None:
            raise SyncScribeError("Subtitle sync is enabled but no aligner is configured.")
        logger.info(f"Syncing {os.path.basename(subtitle_path)} to the video audio...")
        synced_path = self.aligner.sync(subtitle_path, video_path)
        os.replace(synced_path, subtitle_path)
        logger.info(f"Subtitles synced and saved: {subtitle_path}")

    def generate(
        self,
        video_path: str,
        output_path: Optional[str] = None,
        language: Optional[str] = None,
        track_number: Optional[int] = None,
        auto: bool = False,
        target_languages: Sequence[str] = (),
        chooser: Optional[TrackChooser] = None,
        output_dir: Optional[str] = None,
    ) -> List[str]:
        """
        Executes the full subtitle generation pipeline for a single video.

        Args:
            video_path: Path to the input video file.
            output_path: Subtitle file path or directory; defaults to the video's directory.
            language: Forced source language; otherwise the track tag or auto-detection is used.
            track_number: Audio track to transcribe.
            auto: Use the first audio track without asking when several exist.
            target_languages: Language codes to translate into.
            chooser: Callback picking a track when several exist and auto is off.
            output_dir: Directory for the subtitle files, created when missing.

        Returns:
            The subtitle file paths written, source language first.

        Raises:
            SyncScribeError: For any configuration or processing errors in the pipeline.
            FileNotFoundError: If the input video is not found.
        """
        start_time = time.time()
        logger.info(f"--- Starting SyncScribe process for: {video_path} ---")
        if not os.path.isfile(video_path):
            raise FileNotFoundError(f"Input video file not found: {video_path}")
        if target_languages and self.translator is None:
            raise SyncScribeError("Translation requested but no translator is configured.")

        source_path, translated_paths = self.output_paths(video_path, output_path, target_languages, output_dir)
        extracted_audio_path = None # Keep track of created temp file
        written: List[str] = []

        try:
            # 1. Pick the audio track
            logger.info("Step 1: Analyzing audio tracks...")
            tracks = self.audio_analyzer.analyze(video_path)
            selected = select_track(tracks, track_number=track_number, auto=auto, chooser=chooser)
            logger.info(f"Using {selected.describe()}")

            # 2. Extract Audio
            logger.info("Step 2: Extracting Audio...")
            extracted_audio_path = self.audio_extractor.extract_audio(
                video_path,
                self.temp_dir,
                self._temp_audio_name(video_path, selected.index),
                track_index=selected.index,
            )

            # 3. Transcribe
            logger.info("Step 3: Transcribing Audio (this may take a while)...")
            result: TranscriptionResult = self.transcriber.transcribe(
                extracted_audio_path,
                language=language or selected.language,
            )
            logger.info(f"Transcription complete. Found {len(result.segments)} segments.")
            if result.duration:
                estimate = self.transcriber.cost_estimate(result.duration)
                if estimate:
                    logger.info(f"Estimated transcription cost: ${estimate['cost']:.4f} for {estimate['minutes']} minutes of audio")

            # 4. Source-language subtitles
            logger.info(f"Step 4: Writing {self.subtitle_formatter.describe()} subtitles...")
            written.append(self._write_track(result.segments, source_path, video_path))

            # 5. Translations
            source_language = to_iso639_1(language) or to_iso639_1(result.language) or to_iso639_1(selected.language)
            if translated_paths:
                estimate = self.translator.cost_estimate(result.segments)
                if estimate:
                    logger.info(
                        f"Estimated translation cost per language: ${estimate['cost']:.4f} "
                        f"(~{estimate['estimated_tokens']} tokens)"
                    )
            for target, target_path in translated_paths.items():
                if to_iso639_1(target) == source_language:
                    logger.warning(f"Skipping translation to '{target}': it is the source language.")
                    continue
                logger.info(f"Step 5: Translating subtitles to '{target}'...")
                translated = self.translator.translate_segments(result.segments, target, source_language)
                written.append(self._write_track(translated, target_path, video_path))

            logger.info(f"--- SyncScribe process completed successfully in {time.time() - start_time:.2f} seconds ---")
            return written

        except (SyncScribeError, FileNotFoundError) as e:
            # Catch specific, known errors and log them cleanly
            logger.error(f"SyncScribe process failed: {e}", exc_info=False)
            raise # Re-raise to be caught by CLI handler
        except Exception as e:
            # Catch unexpected errors and log with stack trace
            logger.critical(f"An unexpected critical error occurred during subtitle generation: {e}", exc_info=True)
            raise SyncScribeError(f"An unexpected critical error occurred: {e}") from e
        finally:
            # 6. Cleanup
            logger.info("Step 6: Cleaning up temporary files...")
            remove_file_quietly(extracted_audio_path)
