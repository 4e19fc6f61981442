"""Component manifests and the process-local registry that holds them.

Every resource and service ships a ``component.py`` that registers one
manifest on import. The core runtime loads those modules at build time and
validates the registry before wiring anything.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from threading import RLock
from typing import FrozenSet, Literal, NewType

ComponentId = NewType("ComponentId", str)
ModuleRoot = NewType("ModuleRoot", str)

System = Literal["state", "action"]

_ID_PATTERN = re.compile(r"^(service|substrate)_[a-z][a-z0-9_]{0,62}$")
_ROOT_PATTERN = re.compile(r"^[A-Za-z_]\w*(\.[A-Za-z_]\w*)*$")


class ManifestError(ValueError):
    """Raised for malformed manifests or inconsistent registrations."""


@dataclass(frozen=True, slots=True)
class ComponentManifest:
    """Identity and import roots shared by every component."""

    id: ComponentId
    layer: int
    system: System
    module_roots: FrozenSet[ModuleRoot]

    def __post_init__(self) -> None:
        if not _ID_PATTERN.fullmatch(self.id):
            raise ManifestError(f"invalid component id '{self.id}'")
        if not self.module_roots:
            raise ManifestError(f"{self.id}: module_roots must not be empty")
        _check_roots(self.id, self.module_roots)


@dataclass(frozen=True, slots=True)
class ResourceManifest(ComponentManifest):
    """A layer-0 substrate such as the broker or the cache."""

    layer: Literal[0]
    owner_service_id: ComponentId | None = None


@dataclass(frozen=True, slots=True)
class ServiceManifest(ComponentManifest):
    """A layer-1 service with an importable public API."""

    layer: Literal[1]
    public_api_roots: FrozenSet[ModuleRoot] = frozenset()
    owns_resources: FrozenSet[ComponentId] = frozenset()

    def __post_init__(self) -> None:
        super(ServiceManifest, self).__post_init__()
        if not self.public_api_roots:
            raise ManifestError(f"{self.id}: public_api_roots must not be empty")
        _check_roots(self.id, self.public_api_roots)


@dataclass(slots=True)
class ManifestRegistry:
    """Thread-safe map of component id to manifest."""

    _components: dict[ComponentId, ComponentManifest] = field(default_factory=dict)
    _lock: RLock = field(default_factory=RLock)

    def register(self, manifest: ComponentManifest) -> ComponentManifest:
        """Add ``manifest``; re-registering an identical one is a no-op."""
        with self._lock:
            existing = self._components.get(manifest.id)
            if existing is not None and existing != manifest:
                raise ManifestError(f"conflicting manifests for '{manifest.id}'")
            self._components[manifest.id] = manifest
        return manifest

    def get(self, component_id: str) -> ComponentManifest:
        try:
            return self._components[ComponentId(component_id)]
        except KeyError as exc:
            raise ManifestError(f"component not registered: {component_id}") from exc

    def resources(self) -> tuple[ResourceManifest, ...]:
        found = [m for m in self._components.values() if isinstance(m, ResourceManifest)]
        return tuple(sorted(found, key=lambda m: m.id))

    def services(self) -> tuple[ServiceManifest, ...]:
        found = [m for m in self._components.values() if isinstance(m, ServiceManifest)]
        return tuple(sorted(found, key=lambda m: (m.system, m.id)))

    def assert_valid(self) -> None:
        """Check that resource ownership agrees from both sides."""
        with self._lock:
            owners: dict[ComponentId, ComponentId] = {}
            for service in self.services():
                for resource_id in service.owns_resources:
                    if resource_id in owners:
                        raise ManifestError(
                            f"resource '{resource_id}' claimed by "
                            f"'{owners[resource_id]}' and '{service.id}'"
                        )
                    owners[resource_id] = service.id
            for resource in self.resources():
                claimed = owners.get(resource.id)
                if resource.owner_service_id != claimed:
                    raise ManifestError(
                        f"resource '{resource.id}' names owner "
                        f"'{resource.owner_service_id}' but is claimed by '{claimed}'"
                    )


def _check_roots(component_id: str, roots: FrozenSet[ModuleRoot]) -> None:
    for root in roots:
        if not _ROOT_PATTERN.fullmatch(root):
            raise ManifestError(f"{component_id}: invalid module root '{root}'")


_REGISTRY = ManifestRegistry()


def register_component(manifest: ComponentManifest) -> ComponentManifest:
    """Register ``manifest`` in the process-local registry."""
    return _REGISTRY.register(manifest)


def get_registry() -> ManifestRegistry:
    """Return the process-local registry."""
    return _REGISTRY
