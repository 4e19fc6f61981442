"""Fire-and-forget task publisher."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Mapping

from packages.storefront_shared.logging import get_logger, public_api_logged
from resources.substrates.rabbitmq import MessageTransport
from services.action.task_queue.codec import ATTEMPT_HEADER, FIRST_ATTEMPT, encode_task
from services.action.task_queue.config import COMPONENT_ID, TaskQueueSettings
from services.action.task_queue.domain import Task

_LOGGER = get_logger(__name__)


class TaskProducer:
    """Serialize tasks and publish them persistently without awaiting results.

    No publisher confirms are requested: once ``publish`` returns the broker
    has the message buffered, not necessarily on disk.
    """

    def __init__(self, *, transport: MessageTransport, settings: TaskQueueSettings) -> None:
        self._transport = transport
        self._settings = settings

    @public_api_logged(logger=_LOGGER, component_id=COMPONENT_ID)
    def publish(self, queue_name: str, task: Task) -> None:
        """Publish one task; raises ``NotInitializedError`` with no channel."""
        self._transport.publish(
            queue=queue_name,
            body=encode_task(task),
            headers={ATTEMPT_HEADER: FIRST_ATTEMPT},
        )
        _LOGGER.debug(
            "task published",
            extra={"queue": queue_name, "task_kind": task.kind},
        )

    def enqueue(
        self,
        kind: str,
        payload: Mapping[str, Any],
        *,
        queue_name: str | None = None,
    ) -> Task:
        """Build a task stamped with the current UTC time and publish it."""
        task = Task(kind=kind, payload=dict(payload), enqueued_at=datetime.now(UTC))
        self.publish(queue_name or self._settings.queue_name, task)
        return task
