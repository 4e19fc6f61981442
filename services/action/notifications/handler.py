"""Task handler for the ``notify`` task kind."""

from __future__ import annotations

from packages.storefront_shared.logging import get_logger
from services.action.notifications.dispatcher import (
    Notification,
    NotificationDispatcher,
)
from services.action.task_queue.domain import (
    MalformedTaskError,
    Task,
    TaskContext,
    TaskExecutionError,
)
from services.action.task_queue.handlers import HandlerRegistry, TaskHandler

NOTIFY_KIND = "notify"

_LOGGER = get_logger(__name__)


def notification_from_task(task: Task) -> Notification:
    """Build a notification from a task payload; ``to`` is required."""
    destination = task.payload.get("to")
    if not isinstance(destination, str) or destination.strip() == "":
        raise MalformedTaskError("notify payload requires non-empty string 'to'")
    details = {key: value for key, value in task.payload.items() if key != "to"}
    return Notification(to=destination.strip(), details=details)


def build_notify_handler(dispatcher: NotificationDispatcher) -> TaskHandler:
    """Return a ``notify`` handler bound to ``dispatcher``."""

    def handle(task: Task, context: TaskContext) -> None:
        notification = notification_from_task(task)
        if context.is_cancelled:
            raise TaskExecutionError("notify cancelled before dispatch")
        try:
            dispatcher.dispatch(notification)
        except Exception as exc:  # noqa: BLE001
            raise TaskExecutionError(
                f"dispatch to {notification.to} failed: {exc}"
            ) from exc
        _LOGGER.debug("notify handled", extra={"destination": notification.to})

    return handle


def register_notify_handler(
    registry: HandlerRegistry, dispatcher: NotificationDispatcher
) -> None:
    """Register the ``notify`` handler on ``registry``."""
    registry.register(NOTIFY_KIND, build_notify_handler(dispatcher))
