"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, optional_int_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import (
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
)
from .logging import configure_logging
from .mail import GraphMailConfig, get_graph_mail_config
from .redelex import RedelexConfig, get_redelex_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sync import DigestConfig, SyncConfig, get_digest_config, get_sync_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "DigestConfig",
    "GraphMailConfig",
    "MissingConfigurationError",
    "RateLimit",
    "RedelexConfig",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "get_database_config",
    "get_digest_config",
    "get_graph_mail_config",
    "get_redelex_config",
    "get_storage_config",
    "get_sync_config",
    "optional_env_var",
    "optional_int_env_var",
    "require_env_vars",
]
