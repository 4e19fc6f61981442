"""Explicit component construction and lifecycle for one Storefront process."""

from __future__ import annotations

from dataclasses import dataclass
from importlib import import_module

from packages.storefront_shared.config import StorefrontSettings
from packages.storefront_shared.logging import get_logger
from packages.storefront_shared.manifest import ManifestRegistry, get_registry
from resources.substrates.rabbitmq import (
    BrokerConnectionManager,
    resolve_rabbitmq_settings,
)
from resources.substrates.redis import (
    CacheStore,
    RedisCacheStore,
    resolve_redis_settings,
)
from services.action.notifications import (
    LoggingNotificationDispatcher,
    NotificationDispatcher,
    register_notify_handler,
)
from services.action.task_queue import (
    HandlerRegistry,
    TaskProducer,
    TaskQueueSettings,
    TaskWorker,
    WorkerRunSummary,
    resolve_task_queue_settings,
)
from services.state.cache_coordinator import CacheCoordinator, build_cache_coordinator
from services.state.product_catalog import (
    ProductCatalogService,
    build_product_catalog_service,
)

_LOGGER = get_logger(__name__)

COMPONENT_ROOTS = (
    "resources.substrates.rabbitmq",
    "resources.substrates.redis",
    "services.action.task_queue",
    "services.action.notifications",
    "services.state.cache_coordinator",
    "services.state.product_catalog",
)


@dataclass(frozen=True)
class StorefrontRuntime:
    """Every long-lived component of one process, built once at startup."""

    settings: StorefrontSettings
    broker: BrokerConnectionManager
    cache_store: CacheStore
    coordinator: CacheCoordinator
    task_queue_settings: TaskQueueSettings
    producer: TaskProducer
    registry: HandlerRegistry
    worker: TaskWorker
    catalog: ProductCatalogService
    components: ManifestRegistry


def build_runtime(
    *,
    settings: StorefrontSettings,
    broker: BrokerConnectionManager | None = None,
    cache_store: CacheStore | None = None,
    dispatcher: NotificationDispatcher | None = None,
) -> StorefrontRuntime:
    """Construct components leaf-first.

    The work and dead-letter queues are registered with the broker, which
    declares them on every (re)connect. No network I/O happens here unless an
    injected broker is already connected.
    """
    components = load_component_manifests()
    broker = broker or BrokerConnectionManager(
        settings=resolve_rabbitmq_settings(settings)
    )
    cache_store = cache_store or RedisCacheStore(
        settings=resolve_redis_settings(settings)
    )
    queue_settings = resolve_task_queue_settings(settings)
    broker.register_queues(queue_settings.queue_name, queue_settings.dead_letter_queue)

    coordinator = build_cache_coordinator(settings=settings, store=cache_store)
    producer = TaskProducer(transport=broker, settings=queue_settings)
    registry = HandlerRegistry()
    register_notify_handler(registry, dispatcher or LoggingNotificationDispatcher())
    worker = TaskWorker(broker=broker, registry=registry, settings=queue_settings)
    catalog = build_product_catalog_service(
        settings=settings, coordinator=coordinator, producer=producer
    )
    _LOGGER.info(
        "storefront runtime built",
        extra={
            "handler_kinds": sorted(registry.kinds()),
            "components": [
                m.id for m in (*components.resources(), *components.services())
            ],
        },
    )
    return StorefrontRuntime(
        settings=settings,
        broker=broker,
        cache_store=cache_store,
        coordinator=coordinator,
        task_queue_settings=queue_settings,
        producer=producer,
        registry=registry,
        worker=worker,
        catalog=catalog,
        components=components,
    )


def start_runtime(runtime: StorefrontRuntime) -> None:
    """Start the broker supervisor and, when enabled, the worker loop.

    Broker unavailability is not fatal: the supervisor keeps retrying and the
    worker waits in ``STARTING`` until a channel is open.
    """
    core = runtime.settings.core
    runtime.broker.start()
    if core.broker_ready_timeout_seconds > 0 and not runtime.broker.wait_until_ready(
        core.broker_ready_timeout_seconds
    ):
        _LOGGER.warning(
            "broker not ready after %.1fs; continuing startup",
            core.broker_ready_timeout_seconds,
        )
    if core.run_worker:
        runtime.worker.start()
    _LOGGER.info(
        "storefront runtime started",
        extra={"run_worker": core.run_worker, "broker_ready": runtime.broker.is_ready},
    )


def shutdown_runtime(runtime: StorefrontRuntime) -> WorkerRunSummary:
    """Drain the worker, then close the broker connection."""
    summary = runtime.worker.stop(
        grace_seconds=runtime.settings.core.shutdown_grace_seconds
    )
    runtime.broker.shutdown(timeout=runtime.settings.core.shutdown_grace_seconds)
    _LOGGER.info("storefront runtime stopped", extra=summary.model_dump())
    return summary


def load_component_manifests() -> ManifestRegistry:
    """Import each ``<root>.component`` module and validate the registry."""
    for root in COMPONENT_ROOTS:
        import_module(f"{root}.component")
    registry = get_registry()
    registry.assert_valid()
    return registry
