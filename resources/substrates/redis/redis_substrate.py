"""Redis client-backed cache store implementation."""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from packages.storefront_shared.logging import get_logger
from resources.substrates.redis.client import create_redis_client
from resources.substrates.redis.config import RedisSettings
from resources.substrates.redis.substrate import (
    CacheHealthStatus,
    CacheStore,
    CacheStoreError,
    CacheUnavailableError,
)

_LOGGER = get_logger(__name__)
T = TypeVar("T")


class RedisCacheStore(CacheStore):
    """Concrete cache store using redis-py; no transactions or pipelines."""

    def __init__(self, *, settings: RedisSettings) -> None:
        self._client = create_redis_client(settings)
        self._health_client = create_redis_client(
            settings, timeout_seconds=settings.health_timeout_seconds
        )

    def get_value(self, *, key: str) -> bytes | None:
        """Read one value by key."""
        value = self._call("get", lambda: self._client.get(key))
        if value is None:
            return None
        if isinstance(value, str):
            return value.encode("utf-8")
        return bytes(value)

    def set_value(self, *, key: str, value: bytes, ttl_seconds: int | None) -> None:
        """Set one value with optional TTL in seconds."""
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if ttl_seconds is None:
            self._call("set", lambda: self._client.set(key, value))
            return
        self._call("set", lambda: self._client.set(key, value, ex=ttl_seconds))

    def delete_value(self, *, key: str) -> bool:
        """Delete one key and return whether a value existed."""
        return bool(self._call("delete", lambda: self._client.delete(key)))

    def ping(self) -> bool:
        """Return Redis ping status from the fast-timeout client."""
        return bool(self._call("ping", self._health_client.ping))

    def health(self) -> CacheHealthStatus:
        """Return cache store readiness and concise detail."""
        try:
            ready = self.ping()
        except CacheStoreError as exc:
            return CacheHealthStatus(
                ready=False,
                detail=f"redis ping failed: {type(exc.__cause__ or exc).__name__}",
            )
        return CacheHealthStatus(
            ready=ready,
            detail="ok" if ready else "redis ping returned false",
        )

    def _call(self, operation: str, fn: Callable[[], T]) -> T:
        """Run one client call, mapping redis errors onto cache store errors."""
        try:
            return fn()
        except (RedisConnectionError, RedisTimeoutError) as exc:
            _LOGGER.debug("redis %s unavailable: %s", operation, exc)
            raise CacheUnavailableError(f"redis {operation} failed: {exc}") from exc
        except RedisError as exc:
            raise CacheStoreError(f"redis {operation} failed: {exc}") from exc
