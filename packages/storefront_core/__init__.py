"""Public API for Storefront runtime construction and health."""

from packages.storefront_core.health import (
    ComponentHealthResult,
    CoreHealthResult,
    evaluate_core_health,
)
from packages.storefront_core.runtime import (
    StorefrontRuntime,
    build_runtime,
    shutdown_runtime,
    start_runtime,
)

__all__ = [
    "ComponentHealthResult",
    "CoreHealthResult",
    "StorefrontRuntime",
    "build_runtime",
    "evaluate_core_health",
    "shutdown_runtime",
    "start_runtime",
]
