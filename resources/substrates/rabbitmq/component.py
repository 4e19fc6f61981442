"""Component declaration for the RabbitMQ broker substrate."""

from __future__ import annotations

from packages.storefront_shared.manifest import (
    ComponentId,
    ModuleRoot,
    ResourceManifest,
    register_component,
)
from resources.substrates.rabbitmq.config import COMPONENT_ID

MANIFEST = register_component(
    ResourceManifest(
        id=ComponentId(COMPONENT_ID),
        layer=0,
        system="action",
        module_roots=frozenset({ModuleRoot("resources.substrates.rabbitmq")}),
        owner_service_id=ComponentId("service_task_queue"),
    )
)
