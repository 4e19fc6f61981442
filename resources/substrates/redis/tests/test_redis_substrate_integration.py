"""Real-provider integration tests for Redis cache store behavior."""

from __future__ import annotations

from packages.storefront_shared.config import load_settings
from resources.substrates.redis.config import resolve_redis_settings
from resources.substrates.redis.redis_substrate import RedisCacheStore
from tests.integration.helpers import requires_real_providers

pytestmark = requires_real_providers


def test_key_value_roundtrip_with_ttl() -> None:
    """Cache store should roundtrip bytes and honour delete."""
    store = RedisCacheStore(settings=resolve_redis_settings(load_settings()))
    key = "int:storefront:key"

    store.set_value(key=key, value=b'{"a": 1}', ttl_seconds=30)
    assert store.get_value(key=key) == b'{"a": 1}'
    assert store.delete_value(key=key) is True
    assert store.get_value(key=key) is None
