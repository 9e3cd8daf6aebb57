"""Utility functions for SyncScribe."""

import os
import logging
from typing import Optional

from .exceptions import FileSystemError

logger = logging.getLogger(__name__)

def ensure_dir_exists(dir_path: str) -> None:
    """
    Ensures that a directory exists. Creates it if it doesn't.

    Args:
        dir_path: The path to the directory.

    Raises:
        FileSystemError: If the directory cannot be created due to permissions
                         or if the path exists but is not a directory.
    """
    if not dir_path:
        raise ValueError("Directory path cannot be empty.")
    try:
        if not os.path.exists(dir_path):
            os.makedirs(dir_path)
            logger.info(f"Created directory: {dir_path}")
        elif not os.path.isdir(dir_path):
            raise FileSystemError(f"Path exists but is not a directory: {dir_path}")
    except OSError as e:
        logger.error(f"Error creating or accessing directory {dir_path}: {e}", exc_info=True)
        raise FileSystemError(f"Could not create or access directory {dir_path}: {e}") from e

def remove_file_quietly(file_path: Optional[str]) -> bool:
    """Removes a file if present. Returns True when something was deleted."""
    if not file_path or not os.path.exists(file_path):
        return False
    try:
        os.remove(file_path)
        logger.info(f"Cleaned up temporary file: {file_path}")
        return True
    except OSError as e:
        logger.warning(f"Could not remove temporary file {file_path}: {e}")
        return False

def file_size_mb(file_path: str) -> float:
    return os.path.getsize(file_path) / (1024 * 1024)
