"""In-process Python API for cache invalidation and read-through views."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from pydantic import JsonValue

from packages.storefront_shared.config import StorefrontSettings
from resources.substrates.redis import CacheStore
from services.state.cache_coordinator.domain import CachedView


class CacheCoordinator(ABC):
    """Keep cached aggregate views consistent with the system of record."""

    @abstractmethod
    def invalidate(self, *, key: str) -> bool:
        """Delete one view key; raises ``CacheUnavailableError`` on outage."""

    @abstractmethod
    def read_through(
        self,
        *,
        key: str,
        recompute: Callable[[], JsonValue],
        validate: Callable[[JsonValue], object] | None = None,
    ) -> CachedView:
        """Serve a view from cache or recompute and repopulate it."""


def build_cache_coordinator(
    *,
    settings: StorefrontSettings,
    store: CacheStore | None = None,
) -> CacheCoordinator:
    """Build the default coordinator from typed settings."""
    from resources.substrates.redis import RedisCacheStore, resolve_redis_settings
    from services.state.cache_coordinator.config import (
        resolve_cache_coordinator_settings,
    )
    from services.state.cache_coordinator.implementation import (
        DefaultCacheCoordinator,
    )

    return DefaultCacheCoordinator(
        settings=resolve_cache_coordinator_settings(settings),
        store=store or RedisCacheStore(settings=resolve_redis_settings(settings)),
    )
