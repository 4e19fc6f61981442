"""Product catalog service."""

from services.state.product_catalog.config import (
    COMPONENT_ID,
    ProductCatalogSettings,
    resolve_product_catalog_settings,
)
from services.state.product_catalog.domain import LIST_VIEW_KEY, Product, ProductListing
from services.state.product_catalog.implementation import DefaultProductCatalogService
from services.state.product_catalog.repository import (
    InMemoryProductRepository,
    ProductRepository,
)
from services.state.product_catalog.service import (
    ProductCatalogService,
    build_product_catalog_service,
)

__all__ = [
    "COMPONENT_ID",
    "DefaultProductCatalogService",
    "InMemoryProductRepository",
    "LIST_VIEW_KEY",
    "Product",
    "ProductCatalogService",
    "ProductCatalogSettings",
    "ProductListing",
    "ProductRepository",
    "build_product_catalog_service",
    "resolve_product_catalog_settings",
]
