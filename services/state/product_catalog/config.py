"""Pydantic settings for product catalog behavior."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

from packages.storefront_shared.config import (
    StorefrontSettings,
    resolve_component_settings,
)

COMPONENT_ID = "service_product_catalog"


class ProductCatalogSettings(BaseModel):
    """Catalog write-side notification settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    notify_recipient: str | None = None

    @field_validator("notify_recipient", mode="before")
    @classmethod
    def _blank_is_none(cls, value: object) -> object:
        if isinstance(value, str) and value.strip() == "":
            return None
        return value


def resolve_product_catalog_settings(
    settings: StorefrontSettings,
) -> ProductCatalogSettings:
    """Resolve catalog settings from ``components.service.product_catalog``."""
    return resolve_component_settings(
        settings=settings,
        component_id=COMPONENT_ID,
        model=ProductCatalogSettings,
    )
