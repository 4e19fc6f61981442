"""Exception normalization utilities for shared error contracts."""

from __future__ import annotations

from . import codes
from .factories import (
    dependency_error,
    internal_error,
    not_found_error,
    validation_error,
)
from .types import ErrorDetail


def exception_to_error(exc: Exception, *, resource: str | None = None) -> ErrorDetail:
    """Normalize a Python exception into a shared ``ErrorDetail``.

    Broker and cache errors subclass ``ConnectionError`` so they land in the
    dependency category without this module importing substrate packages.
    """
    metadata = {"exception_type": type(exc).__name__}
    if resource is not None:
        metadata["resource"] = resource

    if isinstance(exc, TimeoutError):
        return dependency_error(
            str(exc) or "dependency timeout",
            code=codes.DEPENDENCY_TIMEOUT,
            metadata=metadata,
        )

    if isinstance(exc, ConnectionError):
        return dependency_error(
            str(exc) or "dependency unavailable",
            code=codes.DEPENDENCY_UNAVAILABLE,
            metadata=metadata,
        )

    if isinstance(exc, KeyError):
        return not_found_error(
            str(exc), code=codes.RESOURCE_NOT_FOUND, metadata=metadata
        )

    if isinstance(exc, ValueError):
        return validation_error(
            str(exc), code=codes.INVALID_ARGUMENT, metadata=metadata
        )

    return internal_error(
        str(exc) or "unexpected exception",
        code=codes.UNEXPECTED_EXCEPTION,
        metadata=metadata,
    )
