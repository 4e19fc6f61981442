"""Pydantic settings for the cache invalidation coordinator."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.storefront_shared.config import (
    StorefrontSettings,
    resolve_component_settings,
)

COMPONENT_ID = "service_cache_coordinator"


class CacheCoordinatorSettings(BaseModel):
    """Aggregate view TTL and key namespace settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    view_ttl_seconds: int = Field(default=3600, gt=0)
    key_prefix: str = ""

    @field_validator("key_prefix", mode="before")
    @classmethod
    def _strip_prefix(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().rstrip(":")
        return value


def resolve_cache_coordinator_settings(
    settings: StorefrontSettings,
) -> CacheCoordinatorSettings:
    """Resolve coordinator settings from ``components.service.cache_coordinator``."""
    return resolve_component_settings(
        settings=settings,
        component_id=COMPONENT_ID,
        model=CacheCoordinatorSettings,
    )
