"""Logging configuration for SyncScribe."""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Iterable, Optional

from .exceptions import FileSystemError
from .utils import ensure_dir_exists

FILE_LOG_FORMAT = '%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s'
CONSOLE_LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# HTTP client and model libraries log every request at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "urllib3", "transformers", "filelock")

def setup_logging(
    log_level: int = logging.INFO,
    log_dir: Optional[str] = "logs",
    log_file: str = "syncscribe.log",
    date_format: str = DEFAULT_DATE_FORMAT,
    max_bytes: int = 10 * 1024 * 1024, # 10 MB
    backup_count: int = 5,
    quiet_loggers: Iterable[str] = QUIET_LOGGERS,
) -> Optional[str]:
    """
    Configures the root logger for a SyncScribe run.

    Console output goes to stdout in a short format; the rotating file in
    log_dir gets the module and line of every record. Calling this again
    replaces the handlers installed by the previous call, which is how the
    CLI switches from its bootstrap log to the configured one.

    Args:
        log_level: The minimum logging level for both handlers.
        log_dir: Directory for the log file, or None for console-only logging.
        log_file: The name of the log file.
        date_format: The format string for timestamps in logs.
        max_bytes: Maximum size of a log file before rotation.
        backup_count: Number of rotated files to keep.
        quiet_loggers: Third-party loggers limited to WARNING.

    Returns:
        The log file path, or None when file logging is off or failed.
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    root.setLevel(log_level)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(logging.Formatter(CONSOLE_LOG_FORMAT, datefmt=date_format))
    console.setLevel(log_level)
    root.addHandler(console)

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    if not log_dir:
        return None

    log_path = os.path.join(log_dir, log_file)
    try:
        ensure_dir_exists(log_dir)
        file_handler = RotatingFileHandler(log_path, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8')
    except (FileSystemError, OSError, ValueError) as e:
        # Keep going with console output only
        root.error(f"Failed to set up file logging at {log_path}: {e}")
        return None

    file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, datefmt=date_format))
    root.addHandler(file_handler)
    root.debug(f"Logging to file: {log_path}")
    return log_path


def setup_logging_from_config(config: dict, log_level: int) -> Optional[str]:
    """Applies the log_dir / log_file settings of a loaded configuration."""
    return setup_logging(
        log_level=log_level,
        log_dir=config.get('log_dir'),
        log_file=config.get('log_file') or 'syncscribe.log',
    )
