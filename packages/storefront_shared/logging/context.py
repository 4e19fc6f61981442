"""Per-thread structured logging context.

Fields bound here are stamped onto every record by ``ContextFilter``. Worker
threads start from an empty context and bind their delivery fields (queue,
attempt, task kind) for the duration of one message.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Iterator, Mapping

_EMPTY: Mapping[str, str] = MappingProxyType({})
_FIELDS: ContextVar[Mapping[str, str]] = ContextVar(
    "storefront_log_fields", default=_EMPTY
)


def _merged(extra: Mapping[str, object]) -> Mapping[str, str]:
    fields = dict(_FIELDS.get())
    fields.update({str(k): str(v) for k, v in extra.items() if v is not None})
    return MappingProxyType(fields)


def get_context() -> dict[str, str]:
    """Return the fields currently bound, as a fresh dict."""
    return dict(_FIELDS.get())


def bind_context(**values: object) -> None:
    """Add fields to the current context; ``None`` values are skipped.

    Values are stored as strings so JSON output keeps a stable shape.
    """
    if values:
        _FIELDS.set(_merged(values))


def clear_context(*keys: str) -> None:
    """Drop the named fields, or every field when called without names."""
    if not keys:
        _FIELDS.set(_EMPTY)
        return
    dropped = set(keys)
    _FIELDS.set(
        MappingProxyType({k: v for k, v in _FIELDS.get().items() if k not in dropped})
    )


@contextmanager
def log_context(values: Mapping[str, object]) -> Iterator[None]:
    """Bind ``values`` inside the block and restore the prior fields on exit."""
    token = _FIELDS.set(_merged(values))
    try:
        yield
    finally:
        _FIELDS.reset(token)
