"""Custom Exceptions for the SyncScribe application."""

class SyncScribeError(Exception):
    """Base class for exceptions in this module."""
    pass

class ConfigurationError(SyncScribeError):
    """Exception raised for errors in configuration loading."""
    pass

class AudioExtractionError(SyncScribeError):
    """Exception raised for errors while probing or extracting audio."""
    pass

class TranscriptionError(SyncScribeError):
    """Exception raised for errors during transcription."""
    pass

class TranslationError(SyncScribeError):
    """Exception raised for errors during translation."""
    pass

class FormattingError(SyncScribeError):
    """Exception raised for errors during subtitle formatting."""
    pass

class MalformedTimestampError(FormattingError):
    """Exception raised when a caption timestamp does not match HH:MM:SS,mmm."""
    pass

class AlignmentError(SyncScribeError):
    """Exception raised when the external subtitle aligner fails."""
    pass

class FileSystemError(SyncScribeError):
    """Exception raised for file system related errors (permissions, not found etc)."""
    pass
