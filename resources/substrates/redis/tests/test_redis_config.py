"""Unit tests for Redis cache store settings resolution and validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from packages.storefront_shared.config import load_settings
from resources.substrates.redis.config import RedisSettings, resolve_redis_settings


def test_redis_settings_rejects_ambiguous_password_sources() -> None:
    """Password cannot be supplied inline and via env reference together."""
    with pytest.raises(ValidationError, match="mutually exclusive"):
        RedisSettings(url=None, password="one", password_env="REDIS_PASSWORD")


def test_redis_settings_resolves_password_from_env(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Password should resolve from the referenced environment variable."""
    monkeypatch.setenv("REDIS_PASSWORD", "secret")

    settings = RedisSettings(url=None, password_env="REDIS_PASSWORD")

    assert settings.password == "secret"
    assert settings.url == "redis://:secret@redis:6379/0"


def test_redis_settings_builds_url_from_split_fields() -> None:
    """Blank URL should be rebuilt from host, port, db and credentials."""
    settings = RedisSettings(
        url="",
        host="localhost",
        port=6380,
        db=4,
        username="shop",
        password="pw",
        ssl=True,
    )

    assert settings.url == "rediss://shop:pw@localhost:6380/4"


def test_redis_settings_rejects_missing_password_env_when_url_unset(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Split-field mode should fail when the referenced env var is unset."""
    monkeypatch.delenv("REDIS_PASSWORD", raising=False)
    with pytest.raises(ValidationError, match="references missing env var"):
        RedisSettings(url=None, password_env="REDIS_PASSWORD")


def test_resolve_redis_settings_reads_grouped_component_namespace(
    tmp_path,
) -> None:
    """Settings should come from ``components.substrate.redis``."""
    settings = load_settings(
        cli_params={
            "components": {
                "substrate": {"redis": {"url": "redis://cache:6379/2"}}
            }
        },
        environ={},
        config_path=tmp_path / "missing.yaml",
    )

    resolved = resolve_redis_settings(settings)

    assert resolved.url == "redis://cache:6379/2"
    assert resolved.max_connections == 20
