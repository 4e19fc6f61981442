"""Builders for the two envelope outcomes."""

from __future__ import annotations

from typing import Iterable, TypeVar

from packages.storefront_shared.errors import ErrorDetail

from .envelope import Envelope
from .meta import EnvelopeMeta

T = TypeVar("T")


def success(*, meta: EnvelopeMeta, payload: T) -> Envelope[T]:
    return Envelope(metadata=meta, payload=payload)


def failure(
    *,
    meta: EnvelopeMeta,
    errors: Iterable[ErrorDetail],
    payload: T | None = None,
) -> Envelope[T]:
    """Build a failed envelope; ``payload`` carries any already-committed result.

    Raises ``ValueError`` when ``errors`` is empty, since that would read as
    success.
    """
    collected = list(errors)
    if not collected:
        raise ValueError("failure envelope requires at least one error")
    return Envelope(metadata=meta, payload=payload, errors=collected)
