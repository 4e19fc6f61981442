"""Invocation logging decorator for public component methods.

Every public method of a substrate or service is wrapped so one structured
record marks the call and one marks its completion, with duration and any
error types. Exceptions are logged and re-raised unchanged.
"""

from __future__ import annotations

import logging
from functools import wraps
from time import perf_counter
from typing import Any, Callable, Sequence, TypeVar

from . import fields
from .context import log_context

F = TypeVar("F", bound=Callable[..., Any])


def public_api_logged(
    *,
    logger: logging.Logger,
    component_id: str,
    id_fields: Sequence[str] = (),
) -> Callable[[F], F]:
    """Wrap one public method with invocation/completion logging."""

    def decorator(func: F) -> F:
        api_name = func.__name__

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            context: dict[str, object] = {
                fields.COMPONENT_ID: component_id,
                fields.API_NAME: api_name,
            }
            meta = kwargs.get("meta")
            if meta is not None:
                context[fields.TRACE_ID] = getattr(meta, "trace_id", None)
                context[fields.ENVELOPE_ID] = getattr(meta, "envelope_id", None)
                context[fields.PRINCIPAL] = getattr(meta, "principal", None)
            for name in id_fields:
                if name in kwargs:
                    context[name] = kwargs[name]

            with log_context(context):
                logger.debug(
                    "public API invocation",
                    extra={fields.EVENT: fields.PUBLIC_API_INVOCATION_EVENT},
                )
                started = perf_counter()
                try:
                    result = func(*args, **kwargs)
                except Exception as exc:
                    logger.warning(
                        "public API completion",
                        extra={
                            fields.EVENT: fields.PUBLIC_API_COMPLETION_EVENT,
                            fields.SUCCESS: False,
                            fields.DURATION_MS: _elapsed_ms(started),
                            fields.ERRORS: [type(exc).__name__],
                        },
                    )
                    raise

                errors = [error.code for error in getattr(result, "errors", None) or []]
                logger.log(
                    logging.WARNING if errors else logging.INFO,
                    "public API completion",
                    extra={
                        fields.EVENT: fields.PUBLIC_API_COMPLETION_EVENT,
                        fields.SUCCESS: not errors,
                        fields.DURATION_MS: _elapsed_ms(started),
                        fields.ERRORS: errors,
                    },
                )
                return result

        return wrapper  # type: ignore[return-value]

    return decorator


def _elapsed_ms(started: float) -> float:
    return round((perf_counter() - started) * 1000.0, 3)
