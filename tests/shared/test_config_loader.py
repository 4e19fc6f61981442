"""Tests for pydantic-settings-backed shared configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from packages.storefront_shared.config import (
    CONFIG_FILE_ENV,
    load_settings,
    resolve_component_settings,
    resolve_config_path,
)
from resources.substrates.rabbitmq.config import resolve_rabbitmq_settings
from resources.substrates.redis.config import RedisSettings
from services.action.task_queue.config import resolve_task_queue_settings


def test_load_settings_uses_storefront_precedence_cascade(tmp_path: Path) -> None:
    """Init params should override env, env should override YAML, then defaults."""
    config_file = tmp_path / "storefront.yaml"
    config_file.write_text(
        "\n".join(
            [
                "logging:",
                "  level: WARNING",
                "components:",
                "  substrate:",
                "    redis:",
                "      max_connections: 7",
                "  service:",
                "    task_queue:",
                "      max_attempts: 2",
            ]
        ),
        encoding="utf-8",
    )

    settings = load_settings(
        cli_params={"logging": {"level": "DEBUG"}},
        environ={
            "STOREFRONT_LOGGING__LEVEL": "ERROR",
            "STOREFRONT_CORE__RUN_WORKER": "false",
            "STOREFRONT_COMPONENTS__SUBSTRATE__REDIS__MAX_CONNECTIONS": "9",
        },
        config_path=config_file,
    )

    redis = resolve_component_settings(
        settings=settings,
        component_id="substrate_redis",
        model=RedisSettings,
    )
    task_queue = resolve_task_queue_settings(settings)

    assert settings.logging.level == "DEBUG"
    assert settings.core.run_worker is False
    assert redis.max_connections == 9
    assert task_queue.max_attempts == 2
    assert task_queue.queue_name == "email_queue"


def test_load_settings_uses_model_defaults_when_sources_missing(tmp_path: Path) -> None:
    """Settings should fall back to model defaults when env and YAML are absent."""
    settings = load_settings(config_path=tmp_path / "storefront.yaml", environ={})
    rabbitmq = resolve_rabbitmq_settings(settings)

    assert settings.logging.service == "storefront"
    assert settings.logging.level == "INFO"
    assert settings.core.shutdown_grace_seconds == 10.0
    assert rabbitmq.reconnect_interval_seconds == 5.0
    assert rabbitmq.url.startswith("amqp://")


def test_load_settings_coerces_json_env_values(tmp_path: Path) -> None:
    """JSON-looking env values become nested structures."""
    settings = load_settings(
        environ={
            "STOREFRONT_COMPONENTS__SUBSTRATE__RABBITMQ__TRANSPORT_OPTIONS": (
                '{"polling_interval": 0.5}'
            ),
        },
        config_path=tmp_path / "storefront.yaml",
    )

    assert resolve_rabbitmq_settings(settings).transport_options == {
        "polling_interval": 0.5
    }


def test_load_settings_rejects_non_mapping_yaml(tmp_path: Path) -> None:
    """Config files must hold a top-level mapping."""
    config_file = tmp_path / "storefront.yaml"
    config_file.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError, match="top-level mapping"):
        load_settings(config_path=config_file, environ={})


def test_flat_component_keys_are_rejected(tmp_path: Path) -> None:
    """Component settings must be grouped under their kind namespace."""
    with pytest.raises(ValidationError, match="components.substrate.redis"):
        load_settings(
            cli_params={"components": {"substrate_redis": {"db": 1}}},
            environ={},
            config_path=tmp_path / "storefront.yaml",
        )


def test_unknown_component_keys_are_rejected(tmp_path: Path) -> None:
    """Component models forbid extra keys so typos fail loudly."""
    settings = load_settings(
        cli_params={"components": {"service": {"task_queue": {"max_attempt": 3}}}},
        environ={},
        config_path=tmp_path / "storefront.yaml",
    )

    with pytest.raises(ValidationError):
        resolve_task_queue_settings(settings)


def test_resolve_component_settings_rejects_unknown_kind() -> None:
    """Component ids must carry a known kind prefix."""
    settings = load_settings(environ={}, config_path="/nonexistent/storefront.yaml")

    with pytest.raises(ValueError, match="no known kind prefix"):
        resolve_component_settings(
            settings=settings, component_id="adapter_x", model=RedisSettings
        )


def test_config_file_env_selects_yaml_path(tmp_path: Path) -> None:
    """The config-file variable points the loader at another YAML file."""
    config_file = tmp_path / "alt.yaml"
    config_file.write_text("core:\n  shutdown_grace_seconds: 3\n", encoding="utf-8")

    settings = load_settings(environ={CONFIG_FILE_ENV: str(config_file)})

    assert settings.core.shutdown_grace_seconds == 3.0


def test_explicit_config_path_wins_over_env(tmp_path: Path) -> None:
    """A caller-supplied path takes priority over the config-file variable."""
    explicit = tmp_path / "explicit.yaml"

    resolved = resolve_config_path(
        explicit, environ={CONFIG_FILE_ENV: str(tmp_path / "other.yaml")}
    )

    assert resolved == explicit
