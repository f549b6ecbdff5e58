"""
Custom exception hierarchy for the log file collector.

Per-file and per-scan failures are caught at the trigger boundary and only
surface in the logs; configuration errors abort startup.
"""


class CollectorError(Exception):
    """Base exception for all collector errors."""
    pass


class ConfigError(CollectorError):
    """Raised when the configuration file is missing fields or holds invalid values."""
    pass


class DatabaseError(CollectorError):
    """Raised when the copied-files store cannot be read or written."""
    pass


class EnumerationError(CollectorError):
    """Raised when the source tree cannot be listed (missing, denied, share offline)."""
    pass


class FileOperationError(CollectorError):
    """Raised when a single file copy fails."""
    pass


class CollisionExhaustedError(FileOperationError):
    """Raised when the counter strategy runs out of candidate names."""
    pass
