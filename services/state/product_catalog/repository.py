"""System-of-record contract and in-memory product repository."""

from __future__ import annotations

from decimal import Decimal
from threading import Lock
from typing import Mapping, Protocol

from services.state.product_catalog.domain import Product


class ProductRepository(Protocol):
    """Protocol for authoritative product storage."""

    def create(
        self, *, name: str, price: Decimal, quantity: int, description: str
    ) -> Product:
        """Persist a new product and return it with its assigned id."""

    def get(self, *, product_id: int) -> Product | None:
        """Return one product or ``None`` when unknown."""

    def update(self, *, product_id: int, changes: Mapping[str, object]) -> Product | None:
        """Apply field changes and return the new product, ``None`` if unknown."""

    def delete(self, *, product_id: int) -> Product | None:
        """Remove one product and return it, ``None`` if unknown."""

    def list_all(self) -> list[Product]:
        """Return every product ordered by id."""


class InMemoryProductRepository(ProductRepository):
    """Thread-safe dictionary-backed repository."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._products: dict[int, Product] = {}
        self._next_id = 1

    def create(
        self, *, name: str, price: Decimal, quantity: int, description: str
    ) -> Product:
        with self._lock:
            product = Product(
                id=self._next_id,
                name=name,
                price=price,
                quantity=quantity,
                description=description,
            )
            self._products[product.id] = product
            self._next_id += 1
            return product

    def get(self, *, product_id: int) -> Product | None:
        with self._lock:
            return self._products.get(product_id)

    def update(self, *, product_id: int, changes: Mapping[str, object]) -> Product | None:
        with self._lock:
            current = self._products.get(product_id)
            if current is None:
                return None
            updated = Product.model_validate({**current.model_dump(), **changes})
            self._products[product_id] = updated
            return updated

    def delete(self, *, product_id: int) -> Product | None:
        with self._lock:
            return self._products.pop(product_id, None)

    def list_all(self) -> list[Product]:
        with self._lock:
            return [self._products[key] for key in sorted(self._products)]
