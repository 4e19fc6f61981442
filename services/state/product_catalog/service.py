"""In-process Python API for the product catalog."""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from packages.storefront_shared.config import StorefrontSettings
from packages.storefront_shared.envelope import Envelope, EnvelopeMeta
from services.action.task_queue import TaskProducer
from services.state.cache_coordinator import CacheCoordinator
from services.state.product_catalog.domain import Product, ProductListing
from services.state.product_catalog.repository import ProductRepository


class ProductCatalogService(ABC):
    """Public API for product writes and the cached product listing.

    Callers are already authorized; ``meta.principal`` is recorded, never
    checked.
    """

    @abstractmethod
    def create_product(
        self,
        *,
        meta: EnvelopeMeta,
        name: str,
        price: Decimal | str | float,
        quantity: int,
        description: str = "",
        notify: str | None = None,
    ) -> Envelope[Product]:
        """Create one product and invalidate the listing before returning."""

    @abstractmethod
    def update_product(
        self,
        *,
        meta: EnvelopeMeta,
        product_id: int,
        name: str | None = None,
        price: Decimal | str | float | None = None,
        quantity: int | None = None,
        description: str | None = None,
        notify: str | None = None,
    ) -> Envelope[Product]:
        """Apply a partial update and invalidate the listing before returning."""

    @abstractmethod
    def delete_product(
        self,
        *,
        meta: EnvelopeMeta,
        product_id: int,
        notify: str | None = None,
    ) -> Envelope[Product]:
        """Delete one product and invalidate the listing before returning."""

    @abstractmethod
    def list_products(self, *, meta: EnvelopeMeta) -> Envelope[ProductListing]:
        """Return every product through the read-through listing view."""


def build_product_catalog_service(
    *,
    settings: StorefrontSettings,
    coordinator: CacheCoordinator,
    producer: TaskProducer,
    repository: ProductRepository | None = None,
) -> ProductCatalogService:
    """Build the default catalog implementation from typed settings."""
    from services.state.product_catalog.config import (
        resolve_product_catalog_settings,
    )
    from services.state.product_catalog.implementation import (
        DefaultProductCatalogService,
    )
    from services.state.product_catalog.repository import InMemoryProductRepository

    return DefaultProductCatalogService(
        settings=resolve_product_catalog_settings(settings),
        repository=repository or InMemoryProductRepository(),
        coordinator=coordinator,
        producer=producer,
    )
