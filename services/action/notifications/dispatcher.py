"""Notification delivery contract and the default logging dispatcher."""

from __future__ import annotations

from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

from packages.storefront_shared.logging import get_logger

_LOGGER = get_logger(__name__)


class Notification(BaseModel):
    """One outbound notification addressed to a single destination."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    to: str = Field(min_length=1)
    details: dict[str, Any] = Field(default_factory=dict)


class NotificationDispatcher(Protocol):
    """Protocol for delivering notifications to a destination."""

    def dispatch(self, notification: Notification) -> None:
        """Deliver one notification or raise on failure."""


class LoggingNotificationDispatcher(NotificationDispatcher):
    """Dispatcher that records delivery in the log instead of sending mail."""

    def dispatch(self, notification: Notification) -> None:
        _LOGGER.info(
            "notification dispatched",
            extra={
                "destination": notification.to,
                "detail_keys": sorted(notification.details),
            },
        )
