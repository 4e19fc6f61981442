"""Result envelope returned by catalog operations.

A write that committed but could not invalidate the listing or enqueue its
notification comes back with errors *and* the committed product as payload,
so callers must check ``ok`` rather than the payload.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from packages.storefront_shared.errors import ErrorDetail

from .meta import EnvelopeMeta

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Call metadata, an optional payload and any errors, frozen on build."""

    model_config = ConfigDict(frozen=True)

    metadata: EnvelopeMeta
    payload: T | None = None
    errors: list[ErrorDetail] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def error_codes(self) -> list[str]:
        """Return the error codes in reporting order."""
        return [error.code for error in self.errors]
