"""Component declaration for the cache invalidation coordinator."""

from __future__ import annotations

from packages.storefront_shared.manifest import (
    ComponentId,
    ModuleRoot,
    ServiceManifest,
    register_component,
)
from services.state.cache_coordinator.config import COMPONENT_ID

MANIFEST = register_component(
    ServiceManifest(
        id=ComponentId(COMPONENT_ID),
        layer=1,
        system="state",
        module_roots=frozenset({ModuleRoot("services.state.cache_coordinator")}),
        public_api_roots=frozenset(
            {ModuleRoot("services.state.cache_coordinator.service")}
        ),
        owns_resources=frozenset({ComponentId("substrate_redis")}),
    )
)
