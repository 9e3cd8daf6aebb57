#!/usr/bin/env python3
"""
SyncScribe Entry Point Script

This script initializes the CLI handler and runs the subtitle generation process.
"""

import sys
from syncscribe.cli import CLIHandler

if __name__ == "__main__":
    if sys.version_info < (3, 8):
        sys.stderr.write("SyncScribe requires Python 3.8 or later.\n")
        sys.exit(1)

    cli = CLIHandler()
    cli.run()
