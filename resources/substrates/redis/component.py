"""Component declaration for the Redis cache substrate."""

from __future__ import annotations

from packages.storefront_shared.manifest import (
    ComponentId,
    ModuleRoot,
    ResourceManifest,
    register_component,
)
from resources.substrates.redis.config import COMPONENT_ID

MANIFEST = register_component(
    ResourceManifest(
        id=ComponentId(COMPONENT_ID),
        layer=0,
        system="state",
        module_roots=frozenset({ModuleRoot("resources.substrates.redis")}),
        owner_service_id=ComponentId("service_cache_coordinator"),
    )
)
