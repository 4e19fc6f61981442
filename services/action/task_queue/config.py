"""Pydantic settings for task queue producer and worker behavior."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.storefront_shared.config import (
    StorefrontSettings,
    resolve_component_settings,
)

COMPONENT_ID = "service_task_queue"


class TaskQueueSettings(BaseModel):
    """Queue naming, retry and deadline settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    queue_name: str = "email_queue"
    prefetch_count: int = Field(default=1, gt=0)
    max_attempts: int = Field(default=5, gt=0)
    retry_backoff_initial_seconds: float = Field(default=1.0, ge=0)
    retry_backoff_multiplier: float = Field(default=2.0, ge=1.0)
    retry_backoff_max_seconds: float = Field(default=60.0, ge=0)
    handler_timeout_seconds: float = Field(default=30.0, gt=0)
    shutdown_grace_seconds: float = Field(default=10.0, ge=0)
    poll_interval_seconds: float = Field(default=1.0, gt=0)
    dead_letter_suffix: str = ".dead_letter"

    @field_validator("queue_name", "dead_letter_suffix", mode="before")
    @classmethod
    def _reject_blank(cls, value: object) -> object:
        """Queue names and suffixes are used verbatim as broker queue names."""
        if isinstance(value, str):
            normalized = value.strip()
            if normalized == "":
                raise ValueError("must be non-empty")
            return normalized
        return value

    @property
    def dead_letter_queue(self) -> str:
        """Return the dead-letter queue paired with ``queue_name``."""
        return f"{self.queue_name}{self.dead_letter_suffix}"


def resolve_task_queue_settings(settings: StorefrontSettings) -> TaskQueueSettings:
    """Resolve task queue settings from ``components.service.task_queue``."""
    return resolve_component_settings(
        settings=settings,
        component_id=COMPONENT_ID,
        model=TaskQueueSettings,
    )
