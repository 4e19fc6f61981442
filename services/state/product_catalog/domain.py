"""Domain contracts for product catalog payloads."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

LIST_VIEW_KEY = "products:list"


class Product(BaseModel):
    """One product as held by the system of record."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: int = Field(gt=0)
    name: str
    price: Decimal = Field(ge=0)
    quantity: int = Field(ge=0)
    description: str = ""


class ProductListing(BaseModel):
    """Product collection view and its cache provenance."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    products: list[Product]
    from_cache: bool
