"""Broker connection construction helpers."""

from __future__ import annotations

from kombu import Connection

from resources.substrates.rabbitmq.config import RabbitMQSettings


def create_broker_connection(settings: RabbitMQSettings) -> Connection:
    """Construct an unconnected kombu connection for the configured broker."""
    return Connection(
        settings.url,
        connect_timeout=settings.connect_timeout_seconds,
        heartbeat=settings.heartbeat_seconds,
        transport_options=dict(settings.transport_options),
    )
