"""Application configuration helpers."""

from __future__ import annotations

from .cache import CacheConfig, get_cache_config
from .database import DatabaseConfig, get_database_config
from .env import require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging, resolve_log_level

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "configure_logging",
    "get_cache_config",
    "get_database_config",
    "require_env_vars",
    "resolve_log_level",
]
