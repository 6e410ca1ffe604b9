"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import (
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
    get_resilience_config,
)
from .integrations import (
    DEFAULT_ACTOR_VAR,
    BalenaApiToken,
    FlowdockToken,
    IntegrationToken,
    OutreachToken,
    SyncConfig,
    TypeformToken,
    get_integration_token,
    get_sync_config,
)
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "DEFAULT_ACTOR_VAR",
    "BalenaApiToken",
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "FlowdockToken",
    "IntegrationToken",
    "MissingConfigurationError",
    "OutreachToken",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "SyncConfig",
    "TypeformToken",
    "configure_logging",
    "get_database_config",
    "get_integration_token",
    "get_resilience_config",
    "get_storage_config",
    "get_sync_config",
    "optional_env_var",
    "require_env_vars",
]
