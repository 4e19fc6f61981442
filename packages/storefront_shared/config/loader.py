"""Settings loading with a fixed layer order.

Layers, highest precedence first:
1) CLI params passed by the caller
2) ``STOREFRONT_*`` environment variables (``__`` separates nested keys,
   e.g. ``STOREFRONT_CORE__RUN_WORKER=false`` -> ``core.run_worker = False``)
3) The YAML file at ``config_path``, else ``$STOREFRONT_CONFIG_FILE``, else
   ``~/.config/storefront/storefront.yaml``
4) Model defaults
"""

from __future__ import annotations

import json
import os
from functools import reduce
from pathlib import Path
from typing import Any, Mapping

import yaml

from .models import (
    CONFIG_FILE_ENV,
    DEFAULT_CONFIG_PATH,
    ENV_PREFIX,
    StorefrontSettings,
)

_LITERALS: dict[str, Any] = {"true": True, "false": False, "null": None, "none": None}


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
) -> StorefrontSettings:
    """Merge every layer and validate the result into typed settings."""
    env = os.environ if environ is None else environ
    layers = (
        _yaml_layer(resolve_config_path(config_path, environ=env)),
        _env_layer(env),
        _plain(cli_params or {}),
    )
    return StorefrontSettings(**reduce(_overlay, layers, {}))


def resolve_config_path(
    config_path: str | Path | None, *, environ: Mapping[str, str]
) -> Path:
    """Return the YAML path to read; an explicit argument wins over the env."""
    if config_path is not None:
        return Path(config_path)
    from_env = environ.get(CONFIG_FILE_ENV, "").strip()
    return Path(from_env) if from_env else DEFAULT_CONFIG_PATH


def _yaml_layer(path: Path) -> dict[str, Any]:
    """Read one YAML mapping; a missing or empty file contributes nothing."""
    if not path.exists():
        return {}
    parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config file must contain a top-level mapping: {path}")
    return _plain(parsed)


def _env_layer(environ: Mapping[str, str]) -> dict[str, Any]:
    """Project prefixed environment variables into a nested mapping."""
    layer: dict[str, Any] = {}
    for key, raw in environ.items():
        if not key.startswith(ENV_PREFIX) or key == CONFIG_FILE_ENV:
            continue
        path = [part.strip().lower() for part in key[len(ENV_PREFIX) :].split("__")]
        path = [part for part in path if part]
        if not path:
            continue
        node = layer
        for part in path[:-1]:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        node[path[-1]] = _env_value(raw)
    return layer


def _env_value(raw: str) -> Any:
    """Interpret obvious literals, numbers and JSON; anything else stays text."""
    text = raw.strip()
    if text.lower() in _LITERALS:
        return _LITERALS[text.lower()]
    if text[:1] in ("{", "["):
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return raw
    for number in (int, float):
        try:
            return number(text)
        except ValueError:
            continue
    return raw


def _overlay(base: Mapping[str, Any], top: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``top`` merged over it, recursing into mappings."""
    merged = _plain(base)
    for key, value in top.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = _overlay(current, value)
        else:
            merged[key] = _plain(value) if isinstance(value, Mapping) else value
    return merged


def _plain(value: Mapping[str, Any]) -> dict[str, Any]:
    """Copy nested mappings into plain ``dict`` values with string keys."""
    return {
        str(key): _plain(item) if isinstance(item, Mapping) else item
        for key, item in value.items()
    }
