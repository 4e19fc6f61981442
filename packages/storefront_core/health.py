"""Core-level aggregate health evaluation utilities."""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError

from pydantic import BaseModel, ConfigDict, Field

from packages.storefront_core.runtime import StorefrontRuntime
from resources.substrates.rabbitmq import COMPONENT_ID as BROKER_COMPONENT_ID
from resources.substrates.redis import COMPONENT_ID as CACHE_COMPONENT_ID
from services.action.task_queue import COMPONENT_ID as TASK_QUEUE_COMPONENT_ID
from services.action.task_queue import WorkerState


class ComponentHealthResult(BaseModel):
    """One component-level readiness result."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ready: bool
    detail: str = ""


class CoreHealthResult(BaseModel):
    """Aggregate core readiness across services and shared resources."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ready: bool
    services: dict[str, ComponentHealthResult] = Field(default_factory=dict)
    resources: dict[str, ComponentHealthResult] = Field(default_factory=dict)


def evaluate_core_health(runtime: StorefrontRuntime) -> CoreHealthResult:
    """Evaluate aggregate health of the broker, the cache and the worker."""
    max_timeout_seconds = runtime.settings.core.health_max_timeout_seconds
    health_fns: dict[str, Callable[[], object]] = {
        BROKER_COMPONENT_ID: runtime.broker.health,
        CACHE_COMPONENT_ID: runtime.cache_store.health,
    }
    resources: dict[str, ComponentHealthResult] = {}
    for manifest in runtime.components.resources():
        health_fn = health_fns.get(manifest.id)
        if health_fn is None:
            resources[manifest.id] = ComponentHealthResult(
                ready=False, detail="component not instantiated"
            )
            continue
        resources[manifest.id] = _evaluate_component_health(
            health_fn, max_timeout_seconds=max_timeout_seconds
        )
    services = {TASK_QUEUE_COMPONENT_ID: _worker_health(runtime)}

    overall_ready = all(item.ready for item in services.values()) and all(
        item.ready for item in resources.values()
    )
    return CoreHealthResult(ready=overall_ready, services=services, resources=resources)


def _worker_health(runtime: StorefrontRuntime) -> ComponentHealthResult:
    """Report worker readiness; a disabled worker does not block readiness."""
    if not runtime.settings.core.run_worker:
        return ComponentHealthResult(ready=True, detail="worker disabled")
    state = runtime.worker.state
    if state == WorkerState.CONSUMING:
        return ComponentHealthResult(ready=True, detail="ok")
    return ComponentHealthResult(ready=False, detail=f"worker {state.value}")


def _evaluate_component_health(
    health_fn: Callable[[], object],
    *,
    max_timeout_seconds: float,
) -> ComponentHealthResult:
    """Evaluate one component health with global timeout enforcement."""
    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(health_fn)
    try:
        result = future.result(timeout=max_timeout_seconds)
    except FutureTimeoutError:
        return ComponentHealthResult(
            ready=False,
            detail=f"health() exceeded global max timeout ({max_timeout_seconds:.3f}s)",
        )
    except Exception as exc:  # noqa: BLE001
        return ComponentHealthResult(
            ready=False,
            detail=f"health() raised {type(exc).__name__}",
        )
    finally:
        executor.shutdown(wait=False)

    ready = bool(getattr(result, "ready", False))
    detail = getattr(result, "detail", "")
    return ComponentHealthResult(
        ready=ready, detail=detail if isinstance(detail, str) and detail else "ok"
    )
