"""Component declaration for the durable task queue service."""

from __future__ import annotations

from packages.storefront_shared.manifest import (
    ComponentId,
    ModuleRoot,
    ServiceManifest,
    register_component,
)
from services.action.task_queue.config import COMPONENT_ID

MANIFEST = register_component(
    ServiceManifest(
        id=ComponentId(COMPONENT_ID),
        layer=1,
        system="action",
        module_roots=frozenset({ModuleRoot("services.action.task_queue")}),
        public_api_roots=frozenset(
            {
                ModuleRoot("services.action.task_queue.producer"),
                ModuleRoot("services.action.task_queue.worker"),
            }
        ),
        owns_resources=frozenset({ComponentId("substrate_rabbitmq")}),
    )
)
