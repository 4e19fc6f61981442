"""Process entrypoint for the Storefront runtime."""

from __future__ import annotations

import signal
from time import sleep

from packages.storefront_core.health import evaluate_core_health
from packages.storefront_core.runtime import (
    build_runtime,
    shutdown_runtime,
    start_runtime,
)
from packages.storefront_shared.config import load_settings
from packages.storefront_shared.logging import configure_logging, get_logger

_LOGGER = get_logger(__name__)
_RUNNING = True


def _handle_shutdown(_signum: int, _frame: object) -> None:
    """Mark process for graceful shutdown when receiving termination signals."""
    global _RUNNING
    _RUNNING = False


def main() -> None:
    """Build the runtime, start it, and hold the process until signalled."""
    settings = load_settings()
    configure_logging(
        level=settings.logging.level,
        json_output=settings.logging.json_output,
        service=settings.logging.service,
        environment=settings.logging.environment,
    )

    runtime = build_runtime(settings=settings)
    start_runtime(runtime)
    health = evaluate_core_health(runtime)
    _LOGGER.info(
        "storefront startup completed",
        extra={"ready": health.ready, "broker_ready": runtime.broker.is_ready},
    )

    signal.signal(signal.SIGINT, _handle_shutdown)
    signal.signal(signal.SIGTERM, _handle_shutdown)
    try:
        while _RUNNING:
            sleep(1.0)
    finally:
        shutdown_runtime(runtime)


if __name__ == "__main__":
    main()
