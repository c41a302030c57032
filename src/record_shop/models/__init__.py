"""Configuration models."""

from .config import (
    Config,
    DatabaseConfig,
    CacheConfig,
    MusicBrainzConfig,
    load_config,
    save_config,
)

__all__ = [
    "Config",
    "DatabaseConfig",
    "CacheConfig",
    "MusicBrainzConfig",
    "load_config",
    "save_config",
]
