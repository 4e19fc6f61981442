"""Notification dispatch for the ``notify`` task kind."""

from services.action.notifications.dispatcher import (
    LoggingNotificationDispatcher,
    Notification,
    NotificationDispatcher,
)
from services.action.notifications.handler import (
    NOTIFY_KIND,
    build_notify_handler,
    notification_from_task,
    register_notify_handler,
)

__all__ = [
    "LoggingNotificationDispatcher",
    "NOTIFY_KIND",
    "Notification",
    "NotificationDispatcher",
    "build_notify_handler",
    "notification_from_task",
    "register_notify_handler",
]
