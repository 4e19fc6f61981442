"""Concrete cache invalidation coordinator."""

from __future__ import annotations

import json
from typing import Callable

from pydantic import JsonValue

from packages.storefront_shared.logging import get_logger, public_api_logged
from resources.substrates.redis import CacheStore, CacheStoreError
from services.state.cache_coordinator.config import (
    COMPONENT_ID,
    CacheCoordinatorSettings,
)
from services.state.cache_coordinator.domain import CachedView
from services.state.cache_coordinator.service import CacheCoordinator

_LOGGER = get_logger(__name__)


class DefaultCacheCoordinator(CacheCoordinator):
    """Delete-before-return on writes and TTL read-through on reads.

    Concurrent misses may each recompute and store the view; the last writer
    wins. Any stored value was computed after the most recent invalidation
    observed by that reader, so staleness is bounded by the view TTL.
    """

    def __init__(self, *, settings: CacheCoordinatorSettings, store: CacheStore) -> None:
        self._settings = settings
        self._store = store

    @public_api_logged(logger=_LOGGER, component_id=COMPONENT_ID, id_fields=("key",))
    def invalidate(self, *, key: str) -> bool:
        """Delete one view key and return whether a value was present.

        Store errors propagate so a writer cannot report success while a
        stale view may still be cached.
        """
        return self._store.delete_value(key=self._full_key(key))

    @public_api_logged(logger=_LOGGER, component_id=COMPONENT_ID, id_fields=("key",))
    def read_through(
        self,
        *,
        key: str,
        recompute: Callable[[], JsonValue],
        validate: Callable[[JsonValue], object] | None = None,
    ) -> CachedView:
        """Return the cached view, or recompute it and store it with the TTL.

        Cache outages degrade to serving the recomputed view uncached. A cached
        value that is not JSON, or that ``validate`` rejects with ``ValueError``,
        is deleted and recomputed.
        """
        full_key = self._full_key(key)
        try:
            cached = self._store.get_value(key=full_key)
        except CacheStoreError as exc:
            self._degraded(operation="get_value", exc=exc)
            return CachedView(key=key, value=recompute(), from_cache=False)

        if cached is not None:
            try:
                value = json.loads(cached)
                if validate is not None:
                    validate(value)
            except ValueError as exc:
                _LOGGER.warning(
                    "discarding unreadable cached view: exception_type=%s",
                    type(exc).__name__,
                    extra={"cache_key": full_key},
                )
                self._discard(full_key)
            else:
                return CachedView(key=key, value=value, from_cache=True)

        value = recompute()
        try:
            self._store.set_value(
                key=full_key,
                value=json.dumps(value, separators=(",", ":")).encode("utf-8"),
                ttl_seconds=self._settings.view_ttl_seconds,
            )
        except CacheStoreError as exc:
            self._degraded(operation="set_value", exc=exc)
        return CachedView(key=key, value=value, from_cache=False)

    def _full_key(self, key: str) -> str:
        if self._settings.key_prefix:
            return f"{self._settings.key_prefix}:{key}"
        return key

    def _discard(self, full_key: str) -> None:
        try:
            self._store.delete_value(key=full_key)
        except CacheStoreError as exc:
            self._degraded(operation="delete_value", exc=exc)

    def _degraded(self, *, operation: str, exc: Exception) -> None:
        _LOGGER.warning(
            "cache %s failed; serving view from source: exception_type=%s",
            operation,
            type(exc).__name__,
            exc_info=exc,
        )
