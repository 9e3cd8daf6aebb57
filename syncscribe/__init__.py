"""SyncScribe: subtitle generation with optional translation and timing sync."""

__version__ = "1.0.0"
