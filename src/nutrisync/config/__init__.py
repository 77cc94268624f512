"""Application configuration helpers."""

from __future__ import annotations

from .env import env_seconds, optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .profile import ProfileConfig, device_owner_id, get_profile_config
from .remote import RemoteConfig, get_remote_config
from .storage import StorageConfig, get_storage_config
from .sync import SyncConfig, get_sync_config, parse_strategy

__all__ = [
    "ConfigurationError",
    "MissingConfigurationError",
    "ProfileConfig",
    "RateLimit",
    "RemoteConfig",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "device_owner_id",
    "env_seconds",
    "get_profile_config",
    "get_remote_config",
    "get_storage_config",
    "get_sync_config",
    "optional_env_var",
    "parse_strategy",
    "require_env_vars",
]
