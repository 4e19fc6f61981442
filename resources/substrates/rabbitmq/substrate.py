"""Transport contract, health payload and errors for the message broker."""

from __future__ import annotations

from typing import Mapping, Protocol

from pydantic import BaseModel, ConfigDict


class BrokerError(Exception):
    """Base error for broker transport failures."""


class BrokerConnectionError(BrokerError, ConnectionError):
    """Raised when the broker cannot be reached or the connection drops."""


class NotInitializedError(BrokerError):
    """Raised when an operation needs a channel that is not open yet."""


class BrokerHealthStatus(BaseModel):
    """Broker transport readiness payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ready: bool
    detail: str


class MessageTransport(Protocol):
    """Protocol for the publish side of the broker used by producers."""

    def publish(
        self,
        *,
        queue: str,
        body: bytes,
        headers: Mapping[str, object] | None = None,
    ) -> None:
        """Publish one persistent message to ``queue`` via the default exchange."""

    def declare_queue(self, name: str, *, durable: bool = True) -> object:
        """Declare a queue idempotently."""

    def queue_depth(self, name: str) -> int:
        """Return the number of ready messages in ``name``."""
