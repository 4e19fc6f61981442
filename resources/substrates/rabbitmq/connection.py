"""Durable broker connection owner shared by producers and the worker loop."""

from __future__ import annotations

from functools import partial
from threading import Event, RLock, Thread
from typing import Callable, Iterable, Mapping

from kombu import Connection, Exchange, Producer, Queue
from kombu.exceptions import OperationalError

from packages.storefront_shared.logging import get_logger, public_api_logged
from resources.substrates.rabbitmq.client import create_broker_connection
from resources.substrates.rabbitmq.config import COMPONENT_ID, RabbitMQSettings
from resources.substrates.rabbitmq.substrate import (
    BrokerConnectionError,
    BrokerError,
    BrokerHealthStatus,
    MessageTransport,
    NotInitializedError,
)

_LOGGER = get_logger(__name__)

PERSISTENT_DELIVERY_MODE = 2
JSON_CONTENT_TYPE = "application/json"
UTF8_ENCODING = "utf-8"
DEFAULT_EXCHANGE = Exchange("")


def transport_errors(connection: Connection) -> tuple[type[BaseException], ...]:
    """Return exception types that mean the connection or channel is unusable."""
    return (
        tuple(connection.connection_errors)
        + tuple(connection.channel_errors)
        + (OperationalError, OSError)
    )


def release_quietly(resource: object | None) -> None:
    """Close a channel or connection, logging rather than raising on failure."""
    if resource is None:
        return
    try:
        resource.close()  # type: ignore[attr-defined]
    except Exception:  # noqa: BLE001
        _LOGGER.debug("broker resource close failed", exc_info=True)


def publish_persistent(
    producer: Producer,
    *,
    queue: str,
    body: bytes,
    headers: Mapping[str, object] | None = None,
) -> None:
    """Publish one persistent UTF-8 JSON message through the default exchange."""
    producer.publish(
        body,
        exchange=DEFAULT_EXCHANGE.name,
        routing_key=queue,
        delivery_mode=PERSISTENT_DELIVERY_MODE,
        content_type=JSON_CONTENT_TYPE,
        content_encoding=UTF8_ENCODING,
        headers=dict(headers or {}),
        retry=False,
    )


class BrokerConnectionManager(MessageTransport):
    """Own one publish connection and its channel, reconnecting in background.

    The runtime creates exactly one manager and injects it into the producer
    and the worker. Publishes share one channel and are serialized with a lock
    because kombu channels are not thread-safe. The worker consumes on a
    sibling connection from :meth:`consumer_connection`.
    """

    def __init__(
        self,
        *,
        settings: RabbitMQSettings,
        connection_factory: Callable[[], Connection] | None = None,
        declared_queues: Iterable[str] = (),
    ) -> None:
        self._settings = settings
        self._connection_factory = connection_factory or partial(
            create_broker_connection, settings
        )
        self._lock = RLock()
        self._connection: Connection | None = None
        self._channel: object | None = None
        self._producer: Producer | None = None
        self._ready = Event()
        self._wake = Event()
        self._closed = False
        self._supervisor: Thread | None = None
        self._last_error = "not connected"
        self._declared_queues: list[str] = list(dict.fromkeys(declared_queues))

    @property
    def settings(self) -> RabbitMQSettings:
        """Return the transport settings this manager was built with."""
        return self._settings

    @property
    def is_ready(self) -> bool:
        """Return whether a publish channel is currently open."""
        return self._ready.is_set()

    def connect(self) -> Connection:
        """Make one connection attempt and install it as the shared connection.

        Every registered queue is declared on the new channel before it is
        marked ready, so publishes after a (re)connect are always routed.
        """
        connection = self._open_connection()
        try:
            channel = connection.channel()
        except transport_errors(connection) as exc:
            release_quietly(connection)
            self._last_error = f"{type(exc).__name__}: {exc}"
            raise BrokerConnectionError(f"broker channel open failed: {exc}") from exc

        with self._lock:
            if self._closed:
                release_quietly(channel)
                release_quietly(connection)
                raise BrokerError("broker connection manager is shut down")
            self._close_locked()
            try:
                for name in self._declared_queues:
                    _queue(name)(channel).declare()
            except transport_errors(connection) as exc:
                release_quietly(channel)
                release_quietly(connection)
                self._last_error = f"{type(exc).__name__}: {exc}"
                raise BrokerConnectionError(
                    f"queue declare on connect failed: {exc}"
                ) from exc
            self._connection = connection
            self._channel = channel
            self._producer = Producer(channel, exchange=DEFAULT_EXCHANGE)
            self._last_error = ""
            self._ready.set()
        _LOGGER.info(
            "broker connection established",
            extra={
                "broker_url": connection.as_uri(),
                "declared_queues": list(self._declared_queues),
            },
        )
        return connection

    def register_queues(self, *names: str) -> None:
        """Add queues to declare on every connect; declares now when ready."""
        with self._lock:
            added = [name for name in names if name not in self._declared_queues]
            self._declared_queues.extend(added)
            ready = self._ready.is_set()
        if ready:
            for name in added:
                self.declare_queue(name)

    def consumer_connection(self) -> Connection:
        """Return a new connected sibling connection for one consumer thread."""
        return self._open_connection()

    def open_channel(self) -> object:
        """Open a new channel on the shared connection."""
        with self._lock:
            connection = self._require_connection_locked()
            try:
                return connection.channel()
            except transport_errors(connection) as exc:
                self._mark_lost_locked(exc)
                raise BrokerConnectionError(f"channel open failed: {exc}") from exc

    def start(self) -> None:
        """Start the background supervisor that connects and keeps alive.

        Never raises on broker unavailability; failed attempts are retried
        every ``reconnect_interval_seconds`` until connected or shut down.
        """
        with self._lock:
            if self._closed:
                raise BrokerError("broker connection manager is shut down")
            self._ensure_supervisor_locked()

    def wait_until_ready(self, timeout: float | None = None) -> bool:
        """Block until a channel is open or ``timeout`` elapses."""
        return self._ready.wait(timeout)

    @public_api_logged(logger=_LOGGER, component_id=COMPONENT_ID, id_fields=("name",))
    def declare_queue(
        self,
        name: str,
        *,
        durable: bool = True,
        channel: object | None = None,
    ) -> Queue:
        """Declare a queue routed from the default exchange; idempotent.

        ``channel`` lets a consumer declare on its own connection instead of
        the shared publish channel.
        """
        queue = _queue(name, durable=durable)
        if channel is not None:
            queue(channel).declare()
            return queue

        with self._lock:
            shared = self._require_channel_locked()
            connection = self._connection
            try:
                queue(shared).declare()
            except transport_errors(connection) as exc:
                self._mark_lost_locked(exc)
                raise BrokerConnectionError(
                    f"declare of queue '{name}' failed: {exc}"
                ) from exc
        return queue

    @public_api_logged(logger=_LOGGER, component_id=COMPONENT_ID, id_fields=("queue",))
    def publish(
        self,
        *,
        queue: str,
        body: bytes,
        headers: Mapping[str, object] | None = None,
    ) -> None:
        """Publish one persistent message to ``queue`` via the default exchange.

        There is no internal buffering and no publisher confirm: a missing
        channel raises ``NotInitializedError`` and a dropped connection raises
        ``BrokerConnectionError`` after scheduling a background reconnect.
        """
        with self._lock:
            if self._producer is None or self._connection is None:
                raise NotInitializedError("broker channel not initialized")
            connection = self._connection
            try:
                publish_persistent(
                    self._producer, queue=queue, body=body, headers=headers
                )
            except transport_errors(connection) as exc:
                self._mark_lost_locked(exc)
                raise BrokerConnectionError(
                    f"publish to queue '{queue}' failed: {exc}"
                ) from exc

    def queue_depth(self, name: str) -> int:
        """Return the ready-message count of ``name`` from a passive declare.

        A throwaway channel is used because a passive declare of a missing
        queue closes the channel it runs on.
        """
        with self._lock:
            connection = self._require_connection_locked()
            channel = None
            try:
                channel = connection.channel()
                declared = channel.queue_declare(queue=name, passive=True)
            except tuple(connection.channel_errors) as exc:
                raise BrokerError(f"queue '{name}' is not declared: {exc}") from exc
            except transport_errors(connection) as exc:
                self._mark_lost_locked(exc)
                raise BrokerConnectionError(
                    f"depth query for queue '{name}' failed: {exc}"
                ) from exc
            finally:
                release_quietly(channel)
        return int(declared.message_count)

    def health(self) -> BrokerHealthStatus:
        """Return readiness, waiting briefly for an in-progress connect."""
        if self.wait_until_ready(self._settings.health_timeout_seconds):
            return BrokerHealthStatus(ready=True, detail="ok")
        return BrokerHealthStatus(
            ready=False, detail=f"broker not connected: {self._last_error}"
        )

    def shutdown(self, timeout: float | None = None) -> None:
        """Stop the supervisor and close the shared connection."""
        with self._lock:
            self._closed = True
            self._wake.set()
            supervisor = self._supervisor
            self._supervisor = None
        if supervisor is not None:
            supervisor.join(timeout)
        with self._lock:
            self._close_locked()
            self._last_error = "shut down"
        _LOGGER.info("broker connection manager shut down")

    def _open_connection(self) -> Connection:
        """Create and connect one connection, mapping transport errors."""
        connection = self._connection_factory()
        try:
            connection.connect()
        except transport_errors(connection) as exc:
            release_quietly(connection)
            self._last_error = f"{type(exc).__name__}: {exc}"
            raise BrokerConnectionError(f"broker connect failed: {exc}") from exc
        return connection

    def _require_connection_locked(self) -> Connection:
        if self._connection is None or not self._ready.is_set():
            raise NotInitializedError("broker connection not initialized")
        return self._connection

    def _require_channel_locked(self) -> object:
        self._require_connection_locked()
        if self._channel is None:
            raise NotInitializedError("broker channel not initialized")
        return self._channel

    def _mark_lost_locked(self, exc: BaseException) -> None:
        """Drop the shared connection and wake the supervisor to reconnect."""
        self._last_error = f"{type(exc).__name__}: {exc}"
        _LOGGER.warning(
            "broker connection lost; scheduling reconnect",
            extra={"error": self._last_error},
        )
        self._close_locked()
        if not self._closed:
            self._ensure_supervisor_locked()
            self._wake.set()

    def _close_locked(self) -> None:
        self._ready.clear()
        channel, connection = self._channel, self._connection
        self._producer = None
        self._channel = None
        self._connection = None
        release_quietly(channel)
        release_quietly(connection)

    def _ensure_supervisor_locked(self) -> None:
        if self._supervisor is not None and self._supervisor.is_alive():
            return
        self._wake.clear()
        self._supervisor = Thread(
            target=self._run_loop, name="broker-connection", daemon=True
        )
        self._supervisor.start()

    def _run_loop(self) -> None:
        """Connect, then keep heartbeats flowing until shut down."""
        while not self._closed:
            delay = self._run_once()
            self._wake.wait(delay)
            self._wake.clear()

    def _run_once(self) -> float:
        """Run one supervision cycle and return the next sleep delay."""
        if not self._ready.is_set():
            try:
                self.connect()
            except BrokerConnectionError as exc:
                _LOGGER.warning(
                    "broker connect failed; retrying in %.1fs: %s",
                    self._settings.reconnect_interval_seconds,
                    str(exc),
                )
                return self._settings.reconnect_interval_seconds

        with self._lock:
            connection = self._connection
            if connection is not None:
                try:
                    connection.heartbeat_check()
                except transport_errors(connection) as exc:
                    self._mark_lost_locked(exc)
                    return 0.0
        return self._heartbeat_tick()

    def _heartbeat_tick(self) -> float:
        if self._settings.heartbeat_seconds > 0:
            return self._settings.heartbeat_seconds / 2.0
        return self._settings.reconnect_interval_seconds


def _queue(name: str, *, durable: bool = True) -> Queue:
    return Queue(name, exchange=DEFAULT_EXCHANGE, routing_key=name, durable=durable)
