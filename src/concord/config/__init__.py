"""Application configuration helpers."""

from __future__ import annotations

from .env import env_int, env_list, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .itunes import ITunesConfig, get_itunes_config
from .lookup import LookupConfig, get_lookup_config
from .storage import StorageConfig, get_storage_config
from .tidal import TidalConfig, get_tidal_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "ITunesConfig",
    "LookupConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "TidalConfig",
    "env_int",
    "env_list",
    "get_itunes_config",
    "get_lookup_config",
    "get_storage_config",
    "get_tidal_config",
    "require_env_vars",
]
