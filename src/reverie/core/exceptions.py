"""
Reverie exception hierarchy.

All reverie exceptions inherit from ReverieError, making it easy for consumers
to catch library-level errors while still distinguishing specific failure modes.
"""


class ReverieError(Exception):
    """Base exception class for all reverie errors."""


class ConfigurationError(ReverieError):
    """Raised for configuration errors (missing keys, invalid values)."""


class FileIOError(ReverieError):
    """Raised when journal data cannot be durably read or written."""


class ValidationError(ReverieError, ValueError):
    """Raised for invalid caller input, before any I/O happens."""


class EmbeddingUnavailableError(ReverieError):
    """Raised when the embedding model cannot be loaded or given empty text."""
