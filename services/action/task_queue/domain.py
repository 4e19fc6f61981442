"""Domain models and errors for the durable task queue."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from threading import Event
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskExecutionError(Exception):
    """Raised by handlers for failures that should be retried."""


class TaskTimeoutError(TaskExecutionError):
    """Raised when a handler exceeds its execution deadline."""


class MalformedTaskError(Exception):
    """Raised for deliveries that can never succeed and skip retries."""


class Task(BaseModel):
    """Immutable unit of deferred work carried as one broker message.

    There is no deduplication key: delivery is at-least-once, so handlers
    must tolerate seeing the same task twice.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: str = Field(min_length=1)
    payload: dict[str, Any] = Field(default_factory=dict)
    enqueued_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("kind", mode="before")
    @classmethod
    def _normalize_kind(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("enqueued_at")
    @classmethod
    def _require_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class TaskContext:
    """Per-delivery execution context handed to task handlers.

    ``cancelled`` is set when the deadline passes or the worker stops;
    long-running handlers should check it between steps.
    """

    def __init__(self, *, queue: str, attempt: int, deadline_seconds: float) -> None:
        self.queue = queue
        self.attempt = attempt
        self.deadline_seconds = deadline_seconds
        self.cancelled = Event()

    @property
    def is_cancelled(self) -> bool:
        return self.cancelled.is_set()


class WorkerState(str, Enum):
    """Worker lifecycle states."""

    STOPPED = "stopped"
    STARTING = "starting"
    CONSUMING = "consuming"
    STOPPING = "stopping"


class DeliveryOutcome(str, Enum):
    """Terminal broker action taken for one delivery."""

    ACKED = "acked"
    RETRIED = "retried"
    DEAD_LETTERED = "dead_lettered"
    REQUEUED = "requeued"


class WorkerRunSummary(BaseModel):
    """Counters describing what the worker did with its deliveries."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    processed: int = 0
    succeeded: int = 0
    retried: int = 0
    dead_lettered: int = 0
    requeued: int = 0
