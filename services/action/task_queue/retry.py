"""Retry policy for failed task executions."""

from __future__ import annotations

from services.action.task_queue.config import TaskQueueSettings


def backoff_delay(*, settings: TaskQueueSettings, attempt: int) -> float:
    """Return the wait before republishing a task that failed ``attempt``."""
    exponent = max(attempt - 1, 0)
    delay = settings.retry_backoff_initial_seconds * (
        settings.retry_backoff_multiplier**exponent
    )
    return min(delay, settings.retry_backoff_max_seconds)


def attempts_exhausted(*, settings: TaskQueueSettings, attempt: int) -> bool:
    """Return whether ``attempt`` was the last one allowed."""
    return attempt >= settings.max_attempts
