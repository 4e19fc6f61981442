"""Worker loop tests over kombu's in-memory transport."""

from __future__ import annotations

import threading
import time
from threading import Event
from typing import Callable, Iterator
from uuid import uuid4

import pytest
from kombu import Connection, Queue

from resources.substrates.rabbitmq.config import RabbitMQSettings
from resources.substrates.rabbitmq.connection import BrokerConnectionManager
from services.action.task_queue.config import TaskQueueSettings
from services.action.task_queue.domain import (
    Task,
    TaskContext,
    TaskExecutionError,
    WorkerState,
)
from services.action.task_queue.handlers import HandlerRegistry
from services.action.task_queue.producer import TaskProducer
import services.action.task_queue.worker as worker_module
from services.action.task_queue.worker import TaskWorker


def _memory_connection() -> Connection:
    return Connection("memory://", transport_options={"polling_interval": 0.01})


def _wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def _queue_settings(**overrides: object) -> TaskQueueSettings:
    values: dict[str, object] = {
        "queue_name": f"work-{uuid4().hex}",
        "max_attempts": 3,
        "retry_backoff_initial_seconds": 0.0,
        "handler_timeout_seconds": 2.0,
        "shutdown_grace_seconds": 5.0,
        "poll_interval_seconds": 0.05,
    }
    values.update(overrides)
    return TaskQueueSettings.model_validate(values)


def _take(queue_name: str):
    with _memory_connection() as reader:
        return Queue(queue_name)(reader.channel()).get(no_ack=True)


@pytest.fixture
def broker() -> Iterator[BrokerConnectionManager]:
    """Connected broker manager on the memory transport."""
    manager = BrokerConnectionManager(
        settings=RabbitMQSettings(
            url="memory://",
            reconnect_interval_seconds=0.05,
            heartbeat_seconds=0,
            health_timeout_seconds=0.0,
        ),
        connection_factory=_memory_connection,
    )
    manager.connect()
    yield manager
    manager.shutdown()


def _run_worker(
    broker: BrokerConnectionManager,
    registry: HandlerRegistry,
    settings: TaskQueueSettings,
) -> TaskWorker:
    worker = TaskWorker(broker=broker, registry=registry, settings=settings)
    worker.start()
    assert _wait_for(lambda: worker.state == WorkerState.CONSUMING)
    return worker


def test_successful_task_is_acked_once_and_leaves_queue_empty(
    broker: BrokerConnectionManager,
) -> None:
    """Happy path: publish, consume, handle, ack, depth returns to zero."""
    settings = _queue_settings()
    seen: list[Task] = []
    registry = HandlerRegistry()
    registry.register("notify", lambda task, context: seen.append(task))
    worker = _run_worker(broker, registry, settings)

    TaskProducer(transport=broker, settings=settings).enqueue(
        "notify", {"to": "ops@example.com"}
    )

    assert _wait_for(lambda: worker.summary().succeeded == 1)
    summary = worker.stop()
    assert [task.payload["to"] for task in seen] == ["ops@example.com"]
    assert summary.processed == 1
    assert summary.retried == 0
    assert broker.queue_depth(settings.queue_name) == 0
    assert worker.state == WorkerState.STOPPED


def test_malformed_body_goes_to_dead_letter_without_retry(
    broker: BrokerConnectionManager,
) -> None:
    """Undecodable bodies are dead-lettered on the first delivery."""
    settings = _queue_settings()
    registry = HandlerRegistry()
    registry.register("notify", lambda task, context: None)
    worker = _run_worker(broker, registry, settings)

    broker.publish(queue=settings.queue_name, body=b"this is not json")

    assert _wait_for(lambda: worker.summary().dead_lettered == 1)
    worker.stop()
    assert worker.summary().retried == 0
    message = _take(settings.dead_letter_queue)
    assert message.body == b"this is not json"
    assert message.headers["x-attempt"] == 1
    assert "malformed task body" in message.headers["x-dead-letter-reason"]
    assert broker.queue_depth(settings.queue_name) == 0


def test_unknown_kind_goes_to_dead_letter(broker: BrokerConnectionManager) -> None:
    """Tasks nobody can handle are dead-lettered immediately."""
    settings = _queue_settings()
    worker = _run_worker(broker, HandlerRegistry(), settings)

    TaskProducer(transport=broker, settings=settings).enqueue("reindex", {})

    assert _wait_for(lambda: worker.summary().dead_lettered == 1)
    worker.stop()
    message = _take(settings.dead_letter_queue)
    assert "no handler registered for kind 'reindex'" in message.headers[
        "x-dead-letter-reason"
    ]


def test_failing_task_is_retried_then_dead_lettered(
    broker: BrokerConnectionManager,
) -> None:
    """Each failure republishes with attempt+1 until ``max_attempts``."""
    settings = _queue_settings(max_attempts=3)
    attempts: list[int] = []
    registry = HandlerRegistry()

    def always_fails(task: Task, context: TaskContext) -> None:
        attempts.append(context.attempt)
        raise TaskExecutionError("smtp relay refused")

    registry.register("notify", always_fails)
    worker = _run_worker(broker, registry, settings)

    TaskProducer(transport=broker, settings=settings).enqueue("notify", {"to": "a@b.c"})

    assert _wait_for(lambda: worker.summary().dead_lettered == 1)
    summary = worker.stop()
    assert attempts == [1, 2, 3]
    assert summary.retried == 2
    assert summary.processed == 3
    message = _take(settings.dead_letter_queue)
    assert message.headers["x-attempt"] == 3
    assert "smtp relay refused" in message.headers["x-dead-letter-reason"]
    assert broker.queue_depth(settings.queue_name) == 0


def test_transient_failure_succeeds_on_retry(broker: BrokerConnectionManager) -> None:
    """A handler that recovers is acked on the retried delivery."""
    settings = _queue_settings()
    attempts: list[int] = []
    registry = HandlerRegistry()

    def flaky(task: Task, context: TaskContext) -> None:
        attempts.append(context.attempt)
        if context.attempt == 1:
            raise RuntimeError("temporary outage")

    registry.register("notify", flaky)
    worker = _run_worker(broker, registry, settings)

    TaskProducer(transport=broker, settings=settings).enqueue("notify", {"to": "a@b.c"})

    assert _wait_for(lambda: worker.summary().succeeded == 1)
    summary = worker.stop()
    assert attempts == [1, 2]
    assert summary.retried == 1
    assert summary.dead_lettered == 0


def test_handler_timeout_counts_as_failure_and_cancels_context(
    broker: BrokerConnectionManager,
) -> None:
    """Deadline overruns set the cancel event and follow the failure path."""
    settings = _queue_settings(max_attempts=1, handler_timeout_seconds=0.1)
    cancelled: list[bool] = []
    registry = HandlerRegistry()

    def slow(task: Task, context: TaskContext) -> None:
        cancelled.append(context.cancelled.wait(5.0))

    registry.register("notify", slow)
    worker = _run_worker(broker, registry, settings)

    TaskProducer(transport=broker, settings=settings).enqueue("notify", {"to": "a@b.c"})

    assert _wait_for(lambda: worker.summary().dead_lettered == 1)
    assert _wait_for(lambda: cancelled == [True])
    worker.stop()
    message = _take(settings.dead_letter_queue)
    assert "TaskTimeoutError" in message.headers["x-dead-letter-reason"]


def test_stop_drains_in_flight_delivery(broker: BrokerConnectionManager) -> None:
    """Stopping mid-task waits for the handler and acks before returning."""
    settings = _queue_settings()
    started = Event()
    registry = HandlerRegistry()

    def slow(task: Task, context: TaskContext) -> None:
        started.set()
        time.sleep(0.3)

    registry.register("notify", slow)
    worker = _run_worker(broker, registry, settings)
    TaskProducer(transport=broker, settings=settings).enqueue("notify", {"to": "a@b.c"})
    assert started.wait(5.0)

    summary = worker.stop(grace_seconds=5.0)

    assert summary.succeeded == 1
    assert worker.state == WorkerState.STOPPED
    assert broker.queue_depth(settings.queue_name) == 0


def test_worker_waits_for_broker_before_consuming() -> None:
    """Without a ready transport the worker stays in STARTING."""
    settings = _queue_settings()
    manager = BrokerConnectionManager(
        settings=RabbitMQSettings(
            url="memory://",
            reconnect_interval_seconds=0.05,
            heartbeat_seconds=0,
        ),
        connection_factory=_memory_connection,
    )
    worker = TaskWorker(broker=manager, registry=HandlerRegistry(), settings=settings)

    worker.start()
    time.sleep(0.15)
    assert worker.state == WorkerState.STARTING

    manager.connect()
    assert _wait_for(lambda: worker.state == WorkerState.CONSUMING)
    worker.stop()
    manager.shutdown()
    assert worker.state == WorkerState.STOPPED


def test_failed_republish_rejects_with_requeue_for_redelivery(
    broker: BrokerConnectionManager, monkeypatch: pytest.MonkeyPatch
) -> None:
    """When the retry copy cannot be published the broker redelivers the task."""
    settings = _queue_settings()
    calls: list[int] = []
    registry = HandlerRegistry()

    def fails_once(task: Task, context: TaskContext) -> None:
        calls.append(context.attempt)
        if len(calls) == 1:
            raise TaskExecutionError("smtp relay refused")

    registry.register("notify", fails_once)
    real_publish = worker_module.publish_persistent
    failures = [ConnectionResetError("connection reset by peer")]

    def publish_failing_once(producer, **kwargs) -> None:
        if failures:
            raise failures.pop()
        real_publish(producer, **kwargs)

    monkeypatch.setattr(worker_module, "publish_persistent", publish_failing_once)
    worker = _run_worker(broker, registry, settings)

    TaskProducer(transport=broker, settings=settings).enqueue("notify", {"to": "a@b.c"})

    assert _wait_for(lambda: worker.summary().succeeded == 1)
    summary = worker.stop()
    assert summary.requeued == 1
    assert summary.retried == 0
    assert calls == [1, 1]
    assert broker.queue_depth(settings.queue_name) == 0


def _consumer_threads() -> list[threading.Thread]:
    return [t for t in threading.enumerate() if t.name == "task-worker"]


def test_start_is_refused_while_timed_out_consumer_is_alive(
    broker: BrokerConnectionManager,
) -> None:
    """A stop that outlives its grace period never leads to two consumers."""
    settings = _queue_settings(handler_timeout_seconds=5.0)
    started = Event()
    release = Event()
    registry = HandlerRegistry()

    def blocked(task: Task, context: TaskContext) -> None:
        started.set()
        release.wait(5.0)

    registry.register("notify", blocked)
    worker = _run_worker(broker, registry, settings)
    TaskProducer(transport=broker, settings=settings).enqueue("notify", {"to": "a@b.c"})
    assert started.wait(5.0)

    worker.stop(grace_seconds=0.05)
    lingering = _consumer_threads()
    worker.start()

    assert worker.state == WorkerState.STOPPED
    assert len(_consumer_threads()) == len(lingering)

    release.set()
    assert _wait_for(lambda: not any(t.is_alive() for t in lingering))
    worker.start()
    assert _wait_for(lambda: worker.state == WorkerState.CONSUMING)
    worker.stop()
    assert worker.state == WorkerState.STOPPED
