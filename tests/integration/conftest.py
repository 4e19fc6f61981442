"""Shared fixtures for integration-oriented test modules."""

from __future__ import annotations

from typing import Iterator

import pytest

from packages.storefront_shared.config import StorefrontSettings, load_settings
from resources.substrates.rabbitmq import (
    BrokerConnectionError,
    BrokerConnectionManager,
    resolve_rabbitmq_settings,
)
from tests.integration.helpers import real_provider_tests_enabled


@pytest.fixture(scope="session")
def env_settings() -> StorefrontSettings:
    """Return loaded settings snapshot for fixture consumers."""
    return load_settings()


@pytest.fixture(scope="function")
def real_broker(env_settings: StorefrontSettings) -> Iterator[BrokerConnectionManager]:
    """Return a connected broker manager or skip if RabbitMQ is unavailable."""
    if not real_provider_tests_enabled():
        pytest.skip("real-provider integration tests disabled")

    manager = BrokerConnectionManager(settings=resolve_rabbitmq_settings(env_settings))
    try:
        manager.connect()
    except BrokerConnectionError as exc:
        pytest.skip(f"rabbitmq unavailable for integration tests: {exc}")
    yield manager
    manager.shutdown()
