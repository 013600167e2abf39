"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .staging import ProbeConfig, StagingConfig, get_probe_config, get_staging_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "ProbeConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StagingConfig",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_probe_config",
    "get_staging_config",
    "get_storage_config",
    "optional_env_var",
    "require_env_var",
    "require_env_vars",
]
