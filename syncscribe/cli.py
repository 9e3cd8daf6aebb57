"""Command-Line Interface handlers for SyncScribe."""

import argparse
import logging
import os
import sys
from typing import List, Optional

import openai

from .config_loader import ConfigLoader, require_api_key
from .log_setup import setup_logging, setup_logging_from_config
from .aligner import SubtitleAligner
from .audio_analyzer import AudioAnalyzer
from .audio_extractor import AudioExtractor
from .transcriber import OpenAITranscriber, Transcriber, WhisperTranscriber
from .translator import HuggingFaceTranslator, OpenAITranslator, Translator
from .subtitle_generator import SubtitleGenerator
from .timing_shifter import shift_file
from .models import AudioTrack
from .exceptions import SyncScribeError, ConfigurationError, MalformedTimestampError

logger = logging.getLogger(__name__) # Get logger for this module

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def load_config_or_exit(config_path: Optional[str], log_level: int, init_log_file: str) -> dict:
    """Loads configuration and (re)configures logging from it; exits on failure."""
    # Temporarily setup basic logging to catch config loading errors
    setup_logging(log_level=log_level, log_dir='logs', log_file=init_log_file)
    try:
        config = ConfigLoader().load_config(config_path)
    except (ConfigurationError, FileNotFoundError) as e:
        logger.critical(f"Failed to load configuration from {config_path or 'defaults'}: {e}")
        sys.exit(1)

    log_path = setup_logging_from_config(config, log_level)
    logger.info(f"Logging re-configured from config (log file: {log_path or 'none'}).")
    return config


def create_openai_client(config: dict) -> openai.OpenAI:
    """Builds the shared API client; the key comes from config or OPENAI_API_KEY."""
    return openai.OpenAI(
        api_key=require_api_key(config),
        timeout=config.get('api_timeout_seconds', 600),
        max_retries=0, # Retries are handled with tenacity
    )


def create_transcriber(config: dict, client: Optional[openai.OpenAI]) -> Transcriber:
    backend = config.get('transcription_backend', 'openai')
    if backend == 'openai':
        return OpenAITranscriber(
            client,
            model=config.get('transcription_model', 'whisper-1'),
            max_file_mb=config.get('max_upload_mb', 25),
            retry_attempts=config.get('api_retry_attempts', 3),
        )
    if backend == 'whisper':
        device = config.get('device', 'cuda')
        return WhisperTranscriber(
            model_name=config.get('whisper_model', 'medium'),
            device=device,
            fp16=config.get('whisper_fp16', True) if device == 'cuda' else False,
        )
    raise ConfigurationError(f"Unknown transcription_backend '{backend}'. Choose 'openai' or 'whisper'.")


def create_translator(config: dict, client: Optional[openai.OpenAI]) -> Translator:
    backend = config.get('translation_backend', 'openai')
    if backend == 'openai':
        return OpenAITranslator(
            client,
            model=config.get('translation_model', 'gpt-4o-mini'),
            temperature=config.get('translation_temperature', 0.3),
            strict=config.get('translation_strict', False),
            retry_attempts=config.get('api_retry_attempts', 3),
        )
    if backend == 'huggingface':
        return HuggingFaceTranslator(
            model_template=config.get('huggingface_model_template', 'Helsinki-NLP/opus-mt-{source}-{target}'),
            device=config.get('device', 'cuda'),
        )
    raise ConfigurationError(f"Unknown translation_backend '{backend}'. Choose 'openai' or 'huggingface'.")


def create_generator(config: dict, translate: bool = False) -> SubtitleGenerator:
    """
    Instantiates every pipeline component from configuration.

    The API client is created once and shared by the transcriber and translator.
    """
    needs_client = config.get('transcription_backend', 'openai') == 'openai' or (
        translate and config.get('translation_backend', 'openai') == 'openai'
    )
    client = create_openai_client(config) if needs_client else None

    return SubtitleGenerator(
        config=config,
        audio_analyzer=AudioAnalyzer(ffprobe_path=config.get('ffprobe_path')),
        audio_extractor=AudioExtractor(
            ffmpeg_path=config.get('ffmpeg_path'),
            audio_format=config.get('audio_format', 'mp3'),
        ),
        transcriber=create_transcriber(config, client),
        translator=create_translator(config, client) if translate else None,
        aligner=SubtitleAligner(config.get('ffsubsync_path')) if config.get('sync_enabled') else None,
    )


def prompt_for_track(tracks: List[AudioTrack]) -> AudioTrack:
    """Asks on the terminal which of several audio tracks to transcribe."""
    print("\nMultiple audio tracks found:")
    for track in tracks:
        print(f"  {track.describe()}")
    by_index = {track.index: track for track in tracks}
    while True:
        answer = input("Which audio track would you like to transcribe? ").strip()
        if answer.isdigit() and int(answer) in by_index:
            return by_index[int(answer)]
        print(f"Please enter one of: {', '.join(str(i) for i in by_index)}")


class CLIHandler:
    """Parses arguments and orchestrates the SyncScribe process."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Creates the argument parser for the CLI."""
        parser = argparse.ArgumentParser(
            prog="syncscribe",
            description="SyncScribe: AI-powered subtitle generation with automatic timing synchronization.",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter # Show defaults in help
        )
        parser.add_argument(
            "-i", "--input",
            required=True,
            help="Path to the input video file."
        )
        parser.add_argument(
            "-o", "--output",
            default=None,
            help="Output subtitle file or directory (default: next to the input)."
        )
        parser.add_argument(
            "-l", "--language",
            default=None,
            help="Force the spoken language (e.g., en, ja, es). Auto-detected if omitted."
        )
        parser.add_argument(
            "-t", "--translate",
            nargs="+",
            default=None,
            metavar="LANG",
            help="Also write subtitles translated into these languages."
        )
        parser.add_argument(
            "-f", "--format",
            default=None, # Default taken from config
            choices=["srt", "vtt"],
            help="Override the subtitle output format specified in config."
        )
        parser.add_argument(
            "--track",
            type=int,
            default=None,
            help="Audio track number to use (prompts if several exist)."
        )
        parser.add_argument(
            "--auto",
            action="store_true",
            help="Use the first audio track without prompting when several exist."
        )
        parser.add_argument(
            "--sync",
            dest="sync",
            action="store_true",
            default=None,
            help="Align the generated subtitles to the audio with ffsubsync."
        )
        parser.add_argument(
            "--no-sync",
            dest="sync",
            action="store_false",
            help="Keep the raw transcription timestamps."
        )
        parser.add_argument(
            "-c", "--config",
            default=None,
            help="Path to the configuration YAML file (default: ./config.yaml if present)."
        )
        parser.add_argument(
            "--log-level",
            default="INFO",
            choices=LOG_LEVELS,
            help="Set the logging level for console and file output."
        )
        return parser

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Parses arguments, sets up logging, loads config, and runs the generator."""
        args = self.parser.parse_args(argv)
        log_level = getattr(logging, args.log_level.upper(), logging.INFO)
        config = load_config_or_exit(args.config, log_level, 'syncscribe_init.log')

        # --- Apply CLI Overrides ---
        if args.format:
            logger.info(f"Overriding output_format from config with CLI argument: {args.format}")
            config['output_format'] = args.format
        if args.sync is not None:
            config['sync_enabled'] = args.sync
        target_languages = args.translate if args.translate is not None else list(config.get('target_languages') or [])

        if not os.path.isfile(args.input):
            logger.critical(f"Input video file not found or is not a file: {args.input}")
            sys.exit(1)

        try:
            logger.info("Initializing SyncScribe components...")
            generator = create_generator(config, translate=bool(target_languages))
            if generator.aligner is not None and not generator.aligner.is_available():
                raise SyncScribeError("Subtitle sync requested but ffsubsync is not installed (pip install ffsubsync).")
            logger.info("Components initialized successfully.")

            written = generator.generate(
                args.input,
                output_path=args.output,
                language=args.language,
                track_number=args.track,
                auto=args.auto,
                target_languages=target_languages,
                chooser=prompt_for_track,
            )
            for path in written:
                logger.info(f"Subtitles generated: {path}")
            logger.info("SyncScribe finished successfully.")
            sys.exit(0)

        except SyncScribeError as e:
             logger.error(f"A SyncScribe error occurred: {e}")
             sys.exit(1)
        except FileNotFoundError as e:
             logger.error(str(e))
             sys.exit(1)
        except KeyboardInterrupt:
             logger.warning("Process interrupted by user (Ctrl+C). Exiting.")
             sys.exit(1)
        except Exception as e:
             # Catch any other unexpected errors
             logger.critical(f"An unexpected critical error occurred at the top level: {e}", exc_info=True)
             sys.exit(2) # Use a different exit code for unexpected crashes


def main(argv: Optional[List[str]] = None) -> None:
    CLIHandler().run(argv)


def shift_main(argv: Optional[List[str]] = None) -> None:
    """Entry point for syncscribe-shift: shift subtitle timing by a fixed offset."""
    parser = argparse.ArgumentParser(
        prog="syncscribe-shift",
        description="Shift subtitle timing by a fixed offset (positive or negative).",
    )
    parser.add_argument("input", help="Path to the .srt or .vtt file.")
    parser.add_argument("offset", help="Time offset in seconds (e.g., 3 for +3s, -2.5 for -2.5s).")
    parser.add_argument("-o", "--output", default=None, help="Output path (default: adds .shifted before the extension).")
    parser.add_argument("--log-level", default="INFO", choices=LOG_LEVELS)
    args = parser.parse_args(argv)

    setup_logging(log_level=getattr(logging, args.log_level), log_dir=None)

    try:
        offset_seconds = float(args.offset)
    except ValueError:
        logger.error(f"Offset must be a number (e.g., 3 or -2.5), got: {args.offset}")
        sys.exit(1)

    if not os.path.isfile(args.input):
        logger.error(f"File not found: {args.input}")
        sys.exit(1)

    try:
        output_path = shift_file(args.input, offset_seconds, args.output)
    except MalformedTimestampError as e:
        logger.error(f"Could not shift {args.input}: {e}")
        sys.exit(1)
    except OSError as e:
        logger.error(f"Could not read or write subtitle file: {e}")
        sys.exit(1)

    sign = "+" if offset_seconds > 0 else ""
    logger.info(f"Timing shifted successfully ({sign}{offset_seconds:g} seconds): {output_path}")


def sync_main(argv: Optional[List[str]] = None) -> None:
    """Entry point for syncscribe-sync: align a subtitle file to a media file."""
    parser = argparse.ArgumentParser(
        prog="syncscribe-sync",
        description="Synchronize a subtitle file to audio/video using ffsubsync.",
    )
    parser.add_argument("subtitle", help="Path to the subtitle file to sync.")
    parser.add_argument("media", help="Path to the video/audio file to sync against.")
    parser.add_argument("-o", "--output", default=None, help="Output path (default: <name>.synced.<ext>).")
    parser.add_argument("--ffsubsync-path", default=None, help="Path to the ffsubsync executable.")
    parser.add_argument("--log-level", default="INFO", choices=LOG_LEVELS)
    args = parser.parse_args(argv)

    setup_logging(log_level=getattr(logging, args.log_level), log_dir=None)

    aligner = SubtitleAligner(args.ffsubsync_path)
    if not aligner.is_available():
        logger.error("ffsubsync is not installed. Install it with: pip install ffsubsync")
        sys.exit(1)

    try:
        aligner.sync(args.subtitle, args.media, args.output)
    except (SyncScribeError, FileNotFoundError) as e:
        logger.error(str(e))
        sys.exit(1)
