"""Component declaration for notification dispatch."""

from __future__ import annotations

from packages.storefront_shared.manifest import (
    ComponentId,
    ModuleRoot,
    ServiceManifest,
    register_component,
)

SERVICE_COMPONENT_ID = ComponentId("service_notifications")

MANIFEST = register_component(
    ServiceManifest(
        id=SERVICE_COMPONENT_ID,
        layer=1,
        system="action",
        module_roots=frozenset({ModuleRoot("services.action.notifications")}),
        public_api_roots=frozenset(
            {ModuleRoot("services.action.notifications.handler")}
        ),
    )
)
