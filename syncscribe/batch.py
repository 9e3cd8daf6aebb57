"""
Batch processing for SyncScribe.

Generates subtitles for every video in a directory, or extracts their audio
tracks, processing files smallest first.
"""

import argparse
import logging
import os
import sys
import time
from typing import Dict, List, Optional, Tuple

from tqdm import tqdm

from .audio_analyzer import AudioAnalyzer
from .audio_extractor import AudioExtractor
from .cli import LOG_LEVELS, create_generator, load_config_or_exit
from .exceptions import FileSystemError, SyncScribeError
from .log_setup import setup_logging
from .utils import ensure_dir_exists

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = ('.mkv', '.mp4', '.avi', '.mov', '.webm', '.flv', '.wmv', '.m4v')

def find_videos(input_dir: str, recursive: bool = True) -> List[Tuple[str, int]]:
    """
    Finds video files in the input directory and sorts them by size.

    Args:
        input_dir: The directory to search for video files.
        recursive: Whether to descend into subdirectories.

    Returns:
        A list of (filepath, filesize) tuples sorted by filesize, ascending.

    Raises:
        FileNotFoundError: If the input directory doesn't exist.
        ValueError: If the input path is not a directory.
    """
    if not os.path.exists(input_dir):
        raise FileNotFoundError(f"Input directory not found: {input_dir}")
    if not os.path.isdir(input_dir):
        raise ValueError(f"Input path is not a directory: {input_dir}")

    videos = []
    logger.info(f"Scanning directory for video files: {input_dir} (recursive: {recursive})")
    for dirpath, dirnames, filenames in os.walk(input_dir):
        if not recursive:
            dirnames.clear()
        for filename in filenames:
            if not filename.lower().endswith(VIDEO_EXTENSIONS):
                continue
            filepath = os.path.join(dirpath, filename)
            try:
                videos.append((filepath, os.path.getsize(filepath)))
            except OSError as e:
                logger.warning(f"Could not access file {filepath}: {e}. Skipping.")

    videos.sort(key=lambda item: (item[1], item[0]))
    logger.info(f"Found {len(videos)} video files. Sorted by size (smallest first).")
    return videos


def audio_path_for(video_path: str, track_number: int = 0, audio_format: str = 'mp3') -> str:
    """Audio file placed next to the video: movie.mp3, or movie-track2.mp3 for other tracks."""
    stem = os.path.splitext(video_path)[0]
    suffix = "" if track_number == 0 else f"-track{track_number}"
    return f"{stem}{suffix}.{audio_format}"


def output_dir_for(video_path: str, input_dir: str, output_dir: Optional[str]) -> Optional[str]:
    """
    Mirrors the video's subfolder below input_dir under output_dir, so that
    season1/ep1.mkv and season2/ep1.mkv do not write the same subtitle file.
    None keeps the subtitles next to the video.
    """
    if output_dir is None:
        return None
    relative_dir = os.path.relpath(os.path.dirname(os.path.abspath(video_path)), os.path.abspath(input_dir))
    return os.path.normpath(os.path.join(output_dir, relative_dir))


def run_batch(argv: Optional[List[str]] = None) -> None:
    """Parses arguments, sets up, and runs the batch subtitle generation."""
    parser = argparse.ArgumentParser(
        prog="syncscribe-batch",
        description="SyncScribe Batch: generate subtitles for every video in a directory.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument("-i", "--input-dir", required=True, help="Directory containing the input videos.")
    parser.add_argument("-o", "--output-dir", default=None, help="Directory for subtitle files (default: next to each video).")
    parser.add_argument("-l", "--language", default=None, help="Force the spoken language for every video.")
    parser.add_argument("-t", "--translate", nargs="+", default=None, metavar="LANG", help="Also translate into these languages.")
    parser.add_argument("--no-recursive", dest="recursive", action="store_false", help="Do not scan subdirectories.")
    parser.add_argument("--sync", dest="sync", action="store_true", default=None, help="Align subtitles with ffsubsync.")
    parser.add_argument("--no-sync", dest="sync", action="store_false", help="Keep the raw transcription timestamps.")
    parser.add_argument("-c", "--config", default=None, help="Path to the configuration YAML file.")
    parser.add_argument("--log-level", default="INFO", choices=LOG_LEVELS, help="Set the logging level.")
    args = parser.parse_args(argv)

    log_level = getattr(logging, args.log_level.upper(), logging.INFO)
    config = load_config_or_exit(args.config, log_level, 'syncscribe_batch_init.log')
    if args.sync is not None:
        config['sync_enabled'] = args.sync
    target_languages = args.translate if args.translate is not None else list(config.get('target_languages') or [])

    try:
        videos = [path for path, _ in find_videos(args.input_dir, args.recursive)]
    except (FileNotFoundError, ValueError) as e:
        logger.critical(f"Input directory error: {e}")
        sys.exit(1)
    if not videos:
        logger.warning(f"No video files found in {args.input_dir}. Exiting.")
        sys.exit(0)

    if args.output_dir:
        try:
            ensure_dir_exists(args.output_dir)
        except (FileSystemError, ValueError) as e:
            logger.critical(f"Output directory error: {e}")
            sys.exit(1)

    # Initialize components once for the whole batch
    try:
        generator = create_generator(config, translate=bool(target_languages))
    except SyncScribeError as e:
        logger.critical(f"Failed to initialize SyncScribe components: {e}")
        sys.exit(1)

    files_processed = 0
    files_failed = 0
    batch_start_time = time.time()
    logger.info(f"--- Starting Batch Subtitle Generation for {len(videos)} files ---")

    with tqdm(total=len(videos), unit="video", desc="Starting Batch") as pbar:
        for video_path in videos:
            video_filename = os.path.basename(video_path)
            pbar.set_description(f"Processing: {video_filename[:30]}")
            try:
                generator.generate(
                    video_path,
                    output_dir=output_dir_for(video_path, args.input_dir, args.output_dir),
                    language=args.language,
                    auto=True,
                    target_languages=target_languages,
                )
                files_processed += 1
            except (SyncScribeError, FileNotFoundError) as e:
                logger.error(f"SyncScribe failed for video '{video_filename}': {e}")
                files_failed += 1
            except KeyboardInterrupt:
                 logger.warning("Batch process interrupted by user (Ctrl+C). Exiting.")
                 sys.exit(1)
            finally:
                 pbar.update(1)

    logger.info("--- Batch Subtitle Generation Finished ---")
    logger.info(f"Total time: {time.time() - batch_start_time:.2f} seconds")
    logger.info(f"Successfully processed: {files_processed}/{len(videos)} videos")
    logger.info(f"Failed: {files_failed}/{len(videos)} videos")
    sys.exit(1 if files_failed else 0)


def extract_all(
    videos: List[str],
    analyzer: AudioAnalyzer,
    extractor: AudioExtractor,
    track_number: int = 0,
    force: bool = False,
) -> Dict[str, int]:
    """
    Extracts one audio track per video, next to the video.

    Existing audio files are skipped unless force is set. A track number the
    video does not have falls back to track 0.

    Returns:
        Counts of 'extracted', 'skipped' and 'failed' videos.
    """
    stats = {'extracted': 0, 'skipped': 0, 'failed': 0}

    for video_path in tqdm(videos, unit="video"):
        audio_path = audio_path_for(video_path, track_number, extractor.audio_format)
        if not force and os.path.exists(audio_path):
            logger.info(f"Skipping (audio exists): {os.path.basename(video_path)}")
            stats['skipped'] += 1
            continue

        try:
            tracks = analyzer.analyze(video_path)
            if not tracks:
                logger.warning(f"No audio tracks found in {os.path.basename(video_path)}")
                stats['failed'] += 1
                continue
            track_index = track_number
            if track_index >= len(tracks):
                logger.warning(f"Track {track_index} not found (only {len(tracks)} available); using track 0 instead")
                track_index = 0
            extractor.extract_audio(
                video_path,
                os.path.dirname(audio_path),
                os.path.basename(audio_path),
                track_index=track_index,
            )
            logger.info(f"Extracted: {os.path.basename(audio_path)}")
            stats['extracted'] += 1
        except (SyncScribeError, FileNotFoundError) as e:
            logger.error(f"Failed: {os.path.basename(video_path)}: {e}")
            stats['failed'] += 1

    return stats


def extract_audio_batch(argv: Optional[List[str]] = None) -> None:
    """Extracts one audio track from every video in a directory, next to each video."""
    parser = argparse.ArgumentParser(
        prog="syncscribe-extract",
        description="Batch extract audio from video files.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument("-d", "--dir", default=".", help="Directory to scan for videos.")
    parser.add_argument("--no-recursive", dest="recursive", action="store_false", help="Do not scan subdirectories.")
    parser.add_argument("-t", "--track", type=int, default=0, help="Audio track to extract.")
    parser.add_argument("-f", "--force", action="store_true", help="Re-extract even if the audio file already exists.")
    parser.add_argument("--format", default="mp3", choices=["mp3", "wav"], help="Audio output format.")
    parser.add_argument("--log-level", default="INFO", choices=LOG_LEVELS, help="Set the logging level.")
    args = parser.parse_args(argv)

    setup_logging(log_level=getattr(logging, args.log_level), log_dir=None)

    try:
        videos = [path for path, _ in find_videos(args.dir, args.recursive)]
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        sys.exit(1)
    if not videos:
        logger.warning("No video files found")
        return

    stats = extract_all(videos, AudioAnalyzer(), AudioExtractor(audio_format=args.format), args.track, args.force)
    logger.info(
        f"Extraction summary: total {len(videos)}, extracted {stats['extracted']}, "
        f"skipped {stats['skipped']}, failed {stats['failed']}"
    )
    if stats['failed']:
        sys.exit(1)
