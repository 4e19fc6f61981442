"""Public API for shared Storefront configuration utilities."""

from .loader import load_settings, resolve_config_path
from .models import (
    CONFIG_FILE_ENV,
    DEFAULT_CONFIG_PATH,
    ENV_PREFIX,
    ComponentsSettings,
    CoreRuntimeSettings,
    LoggingSettings,
    StorefrontSettings,
    resolve_component_settings,
)

__all__ = [
    "CONFIG_FILE_ENV",
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "ComponentsSettings",
    "CoreRuntimeSettings",
    "LoggingSettings",
    "StorefrontSettings",
    "load_settings",
    "resolve_config_path",
    "resolve_component_settings",
]
