"""RabbitMQ transport substrate built on kombu."""

from resources.substrates.rabbitmq.config import (
    COMPONENT_ID,
    RabbitMQSettings,
    resolve_rabbitmq_settings,
)
from resources.substrates.rabbitmq.connection import BrokerConnectionManager
from resources.substrates.rabbitmq.substrate import (
    BrokerConnectionError,
    BrokerError,
    BrokerHealthStatus,
    MessageTransport,
    NotInitializedError,
)

__all__ = [
    "COMPONENT_ID",
    "BrokerConnectionError",
    "BrokerConnectionManager",
    "BrokerError",
    "BrokerHealthStatus",
    "MessageTransport",
    "NotInitializedError",
    "RabbitMQSettings",
    "resolve_rabbitmq_settings",
]
