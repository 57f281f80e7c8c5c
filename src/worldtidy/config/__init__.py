"""Application configuration helpers."""

from __future__ import annotations

from .env import positive_int_env, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, RateLimitBackoff, ResilienceConfig
from .logging import configure_logging
from .queues import QueueConfig, get_queue_config
from .storage import StorageConfig, get_storage_config
from .world import WorldConfig, external_api_resilience, get_world_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "MissingConfigurationError",
    "QueueConfig",
    "RateLimit",
    "RateLimitBackoff",
    "ResilienceConfig",
    "StorageConfig",
    "WorldConfig",
    "configure_logging",
    "external_api_resilience",
    "get_queue_config",
    "get_storage_config",
    "get_world_config",
    "positive_int_env",
    "require_env_vars",
]
