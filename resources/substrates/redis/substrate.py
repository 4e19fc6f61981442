"""Cache store contract and errors for Redis-backed key/value access."""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, ConfigDict


class CacheStoreError(Exception):
    """Base error for cache store failures."""


class CacheUnavailableError(CacheStoreError, ConnectionError):
    """Raised when the cache store cannot be reached or times out."""


class CacheHealthStatus(BaseModel):
    """Cache store readiness payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ready: bool
    detail: str


class CacheStore(Protocol):
    """Protocol for expiring key/value storage of serialized views."""

    def get_value(self, *, key: str) -> bytes | None:
        """Return the stored bytes or ``None`` when absent or expired."""

    def set_value(self, *, key: str, value: bytes, ttl_seconds: int | None) -> None:
        """Store bytes, replacing any prior value and TTL."""

    def delete_value(self, *, key: str) -> bool:
        """Delete one key and return whether a value existed."""

    def ping(self) -> bool:
        """Return liveness from Redis ``PING``."""

    def health(self) -> CacheHealthStatus:
        """Probe readiness and detail."""
