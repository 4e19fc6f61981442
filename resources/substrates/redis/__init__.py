"""Redis cache store substrate."""

from resources.substrates.redis.config import (
    COMPONENT_ID,
    RedisSettings,
    resolve_redis_settings,
)
from resources.substrates.redis.redis_substrate import RedisCacheStore
from resources.substrates.redis.substrate import (
    CacheHealthStatus,
    CacheStore,
    CacheStoreError,
    CacheUnavailableError,
)

__all__ = [
    "COMPONENT_ID",
    "CacheHealthStatus",
    "CacheStore",
    "CacheStoreError",
    "CacheUnavailableError",
    "RedisCacheStore",
    "RedisSettings",
    "resolve_redis_settings",
]
