"""Typed configuration models for Storefront runtime settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "storefront" / "storefront.yaml"
ENV_PREFIX = "STOREFRONT_"
CONFIG_FILE_ENV = f"{ENV_PREFIX}CONFIG_FILE"


class LoggingSettings(BaseModel):
    """Structured logging configuration shared by Storefront components."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True
    service: str = "storefront"
    environment: str = "dev"


class CoreRuntimeSettings(BaseModel):
    """Process-level startup and shutdown settings under ``core``."""

    run_worker: bool = True
    broker_ready_timeout_seconds: float = Field(default=0.0, ge=0)
    shutdown_grace_seconds: float = Field(default=10.0, ge=0)
    health_max_timeout_seconds: float = Field(default=2.0, gt=0)


COMPONENT_KINDS = ("service", "substrate")


class ComponentsSettings(BaseModel):
    """Per-component settings grouped as ``components.<kind>.<name>``.

    Entries stay untyped here; each component validates its own slice through
    :func:`resolve_component_settings`.
    """

    model_config = ConfigDict(extra="forbid")

    service: dict[str, dict[str, Any]] = Field(default_factory=dict)
    substrate: dict[str, dict[str, Any]] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _require_grouped_keys(cls, value: object) -> object:
        if isinstance(value, dict):
            for key in value:
                kind, sep, name = str(key).partition("_")
                if sep and kind in COMPONENT_KINDS:
                    raise ValueError(
                        f"components.{key} is invalid; "
                        f"use components.{kind}.{name} instead"
                    )
        return value


class StorefrontSettings(BaseSettings):
    """Root runtime settings.

    :func:`load_settings` merges the YAML, environment and CLI layers and
    passes the result as init params, so an injected ``environ`` mapping is
    the only environment this model sees.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        nested_model_default_partial_update=True,
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    core: CoreRuntimeSettings = Field(default_factory=CoreRuntimeSettings)
    components: ComponentsSettings = Field(default_factory=ComponentsSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Read init params only; layering happens in the loader."""
        return (init_settings,)


TComponentSettings = TypeVar("TComponentSettings", bound=BaseModel)


def resolve_component_settings(
    *,
    settings: StorefrontSettings,
    component_id: str,
    model: type[TComponentSettings],
) -> TComponentSettings:
    """Validate the ``components`` slice named by ``<kind>_<name>``.

    A component with no configured entry gets its model defaults.
    """
    kind, _, name = component_id.partition("_")
    if kind not in COMPONENT_KINDS or not name:
        raise ValueError(f"component id '{component_id}' has no known kind prefix")
    group: dict[str, dict[str, Any]] = getattr(settings.components, kind)
    return model.model_validate(group.get(name, {}))
