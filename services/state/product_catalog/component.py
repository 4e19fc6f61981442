"""Component declaration for the product catalog service."""

from __future__ import annotations

from packages.storefront_shared.manifest import (
    ComponentId,
    ModuleRoot,
    ServiceManifest,
    register_component,
)
from services.state.product_catalog.config import COMPONENT_ID

MANIFEST = register_component(
    ServiceManifest(
        id=ComponentId(COMPONENT_ID),
        layer=1,
        system="state",
        module_roots=frozenset({ModuleRoot("services.state.product_catalog")}),
        public_api_roots=frozenset(
            {ModuleRoot("services.state.product_catalog.service")}
        ),
    )
)
