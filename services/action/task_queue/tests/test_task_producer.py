"""Unit tests for the fire-and-forget task producer."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Mapping

import pytest

from resources.substrates.rabbitmq.substrate import NotInitializedError
from services.action.task_queue.config import TaskQueueSettings
from services.action.task_queue.domain import Task
from services.action.task_queue.producer import TaskProducer


@dataclass
class _FakeTransport:
    """In-memory transport capturing published messages."""

    ready: bool = True
    published: list[tuple[str, bytes, dict[str, object]]] = field(default_factory=list)

    def publish(
        self,
        *,
        queue: str,
        body: bytes,
        headers: Mapping[str, object] | None = None,
    ) -> None:
        if not self.ready:
            raise NotInitializedError("broker channel not initialized")
        self.published.append((queue, body, dict(headers or {})))

    def declare_queue(self, name: str, *, durable: bool = True) -> object:
        return name

    def queue_depth(self, name: str) -> int:
        return sum(1 for queue, _, _ in self.published if queue == name)


def test_enqueue_publishes_to_default_queue_with_first_attempt() -> None:
    """Enqueue should stamp the task and publish it on the configured queue."""
    transport = _FakeTransport()
    producer = TaskProducer(transport=transport, settings=TaskQueueSettings())

    task = producer.enqueue("notify", {"to": "ops@example.com"})

    queue, body, headers = transport.published[0]
    assert queue == "email_queue"
    assert headers == {"x-attempt": 1}
    decoded = json.loads(body)
    assert decoded["kind"] == "notify"
    assert decoded["payload"] == {"to": "ops@example.com"}
    assert task.enqueued_at.tzinfo is not None


def test_publish_honours_explicit_queue_name() -> None:
    """An explicit queue name overrides the configured default."""
    transport = _FakeTransport()
    producer = TaskProducer(transport=transport, settings=TaskQueueSettings())

    producer.publish("audit_queue", Task(kind="notify", payload={"to": "x"}))

    assert transport.published[0][0] == "audit_queue"


def test_publish_without_channel_raises_not_initialized() -> None:
    """The producer never buffers when the transport is not ready."""
    transport = _FakeTransport(ready=False)
    producer = TaskProducer(transport=transport, settings=TaskQueueSettings())

    with pytest.raises(NotInitializedError):
        producer.enqueue("notify", {"to": "ops@example.com"})

    assert transport.published == []
