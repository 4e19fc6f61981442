"""Request validation models for the product catalog public API."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _strip_text(value: object) -> object:
    if isinstance(value, str):
        return value.strip()
    return value


class _ProductFields(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("name", "description", "notify", mode="before", check_fields=False)
    @classmethod
    def _strip(cls, value: object) -> object:
        """Normalize surrounding whitespace for textual request fields."""
        return _strip_text(value)


class CreateProductRequest(_ProductFields):
    """Validate one create-product request payload."""

    name: str = Field(min_length=1, max_length=200)
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    quantity: int = Field(ge=0)
    description: str = ""
    notify: str | None = None


class UpdateProductRequest(_ProductFields):
    """Validate one partial update; at least one field must change."""

    product_id: int = Field(gt=0)
    name: str | None = Field(default=None, min_length=1, max_length=200)
    price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    quantity: int | None = Field(default=None, ge=0)
    description: str | None = None
    notify: str | None = None

    @model_validator(mode="after")
    def _require_change(self) -> "UpdateProductRequest":
        if not self.changes():
            raise ValueError("at least one of name, price, quantity, description is required")
        return self

    def changes(self) -> dict[str, object]:
        """Return only the product fields supplied by the caller."""
        return {
            name: getattr(self, name)
            for name in ("name", "price", "quantity", "description")
            if getattr(self, name) is not None
        }


class DeleteProductRequest(_ProductFields):
    """Validate one delete-product request payload."""

    product_id: int = Field(gt=0)
    notify: str | None = None
