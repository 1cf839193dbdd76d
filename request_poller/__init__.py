from __future__ import annotations

from .config import config_sha256, load_config, resolve_runtime_secrets
from .config_schema import AppConfig
from .errors import ConfigError, FeedError, MetadataError, StorageError
from .pipeline import PollResult, run_poll

__all__ = [
    "AppConfig",
    "ConfigError",
    "FeedError",
    "MetadataError",
    "PollResult",
    "StorageError",
    "config_sha256",
    "load_config",
    "resolve_runtime_secrets",
    "run_poll",
]
