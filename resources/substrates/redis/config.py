"""Pydantic settings for the Redis cache store component."""

from __future__ import annotations

import os
from urllib.parse import quote_plus

from pydantic import BaseModel, ConfigDict, Field, model_validator

from packages.storefront_shared.config import (
    StorefrontSettings,
    resolve_component_settings,
)

COMPONENT_ID = "substrate_redis"


class RedisSettings(BaseModel):
    """Redis connectivity and timeout defaults for the cache store."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str | None = "redis://redis:6379/0"
    host: str = "redis"
    port: int = Field(default=6379, gt=0)
    db: int = Field(default=0, ge=0)
    username: str = ""
    password: str = ""
    password_env: str = ""
    ssl: bool = False
    connect_timeout_seconds: float = Field(default=5.0, gt=0)
    socket_timeout_seconds: float = Field(default=5.0, gt=0)
    health_timeout_seconds: float = Field(default=1.0, gt=0)
    max_connections: int = Field(default=20, gt=0)

    @model_validator(mode="after")
    def _resolve_url(self) -> "RedisSettings":
        """Prefer an explicit URL, else assemble one from split fields."""
        if self.url is not None and self.url.strip() != "":
            object.__setattr__(self, "url", self.url.strip())
            return self

        password = _password_from_sources(
            inline=self.password, env_name=self.password_env
        )
        object.__setattr__(self, "password", password)
        object.__setattr__(self, "url", _url_from_parts(self))
        return self


def _password_from_sources(*, inline: str, env_name: str) -> str:
    """Return the password given inline or through an env var reference."""
    inline = inline.strip()
    env_name = env_name.strip()
    if inline and env_name:
        raise ValueError(
            "substrate.redis.password and password_env are mutually exclusive"
        )
    if inline or not env_name:
        return inline

    resolved = os.environ.get(env_name, "").strip()
    if resolved == "":
        raise ValueError(
            f"substrate.redis.password_env references missing env var '{env_name}'"
        )
    return resolved


def _url_from_parts(settings: RedisSettings) -> str:
    host = settings.host.strip()
    if host == "":
        raise ValueError("substrate.redis.host is required when url is unset")

    username = settings.username.strip()
    password = settings.password.strip()
    if username and password:
        auth = f"{quote_plus(username)}:{quote_plus(password)}@"
    elif username:
        auth = f"{quote_plus(username)}@"
    elif password:
        auth = f":{quote_plus(password)}@"
    else:
        auth = ""

    scheme = "rediss" if settings.ssl else "redis"
    return f"{scheme}://{auth}{host}:{settings.port}/{settings.db}"


def resolve_redis_settings(settings: StorefrontSettings) -> RedisSettings:
    """Resolve cache store settings from ``components.substrate.redis``."""
    return resolve_component_settings(
        settings=settings,
        component_id=COMPONENT_ID,
        model=RedisSettings,
    )
