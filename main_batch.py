#!/usr/bin/env python3
"""
SyncScribe Batch Processing Entry Point

Processes all videos in a specified directory, ordered by size.
"""

import sys
from syncscribe.batch import run_batch

if __name__ == "__main__":
    if sys.version_info < (3, 8):
        sys.stderr.write("SyncScribe requires Python 3.8 or later.\n")
        sys.exit(1)

    run_batch()
