"""Handler registration for task kinds."""

from __future__ import annotations

from threading import Lock
from typing import Callable

from services.action.task_queue.domain import MalformedTaskError, Task, TaskContext

TaskHandler = Callable[[Task, TaskContext], None]


class HandlerRegistry:
    """Thread-safe map of task kind to handler callable.

    Handlers run at least once per task and must be idempotent.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._handlers: dict[str, TaskHandler] = {}

    def register(self, kind: str, handler: TaskHandler) -> None:
        """Register ``handler`` for ``kind``; duplicate kinds are rejected."""
        normalized = kind.strip()
        if normalized == "":
            raise ValueError("task kind must be non-empty")
        with self._lock:
            if normalized in self._handlers:
                raise ValueError(f"handler already registered for kind '{normalized}'")
            self._handlers[normalized] = handler

    def resolve(self, kind: str) -> TaskHandler:
        """Return the handler for ``kind`` or raise ``MalformedTaskError``."""
        with self._lock:
            handler = self._handlers.get(kind)
        if handler is None:
            raise MalformedTaskError(f"no handler registered for kind '{kind}'")
        return handler

    def kinds(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._handlers)
