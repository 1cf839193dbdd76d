from __future__ import annotations


class ConfigError(RuntimeError):
    """Raised when configuration or required secrets are missing or invalid."""


class FeedError(RuntimeError):
    """Raised when the tagged post feed cannot be read."""


class MetadataError(RuntimeError):
    """Raised when a single video metadata lookup fails."""


class StorageError(RuntimeError):
    """Raised when reading or writing show state in SQLite fails."""
