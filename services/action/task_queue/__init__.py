"""Durable task queue: producer, worker loop and handler registry."""

from services.action.task_queue.codec import (
    ATTEMPT_HEADER,
    DEAD_LETTER_REASON_HEADER,
    decode_task,
    encode_task,
)
from services.action.task_queue.config import (
    COMPONENT_ID,
    TaskQueueSettings,
    resolve_task_queue_settings,
)
from services.action.task_queue.domain import (
    MalformedTaskError,
    Task,
    TaskContext,
    TaskExecutionError,
    TaskTimeoutError,
    WorkerRunSummary,
    WorkerState,
)
from services.action.task_queue.handlers import HandlerRegistry, TaskHandler
from services.action.task_queue.producer import TaskProducer
from services.action.task_queue.worker import TaskWorker

__all__ = [
    "ATTEMPT_HEADER",
    "COMPONENT_ID",
    "DEAD_LETTER_REASON_HEADER",
    "HandlerRegistry",
    "MalformedTaskError",
    "Task",
    "TaskContext",
    "TaskExecutionError",
    "TaskHandler",
    "TaskProducer",
    "TaskQueueSettings",
    "TaskTimeoutError",
    "TaskWorker",
    "WorkerRunSummary",
    "WorkerState",
    "decode_task",
    "encode_task",
    "resolve_task_queue_settings",
]
