"""Cache invalidation coordinator for aggregate views."""

from services.state.cache_coordinator.config import (
    COMPONENT_ID,
    CacheCoordinatorSettings,
    resolve_cache_coordinator_settings,
)
from services.state.cache_coordinator.domain import CachedView, view_key
from services.state.cache_coordinator.implementation import DefaultCacheCoordinator
from services.state.cache_coordinator.service import (
    CacheCoordinator,
    build_cache_coordinator,
)

__all__ = [
    "COMPONENT_ID",
    "CacheCoordinator",
    "CacheCoordinatorSettings",
    "CachedView",
    "DefaultCacheCoordinator",
    "build_cache_coordinator",
    "resolve_cache_coordinator_settings",
    "view_key",
]
