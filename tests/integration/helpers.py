"""Opt-in switch for tests that talk to a live RabbitMQ or Redis."""

from __future__ import annotations

import os
from typing import Mapping

import pytest

REAL_PROVIDERS_ENV = "STOREFRONT_RUN_INTEGRATION_REAL"
_ENABLED_VALUES = frozenset({"1", "true", "yes", "on"})


def real_provider_tests_enabled(environ: Mapping[str, str] | None = None) -> bool:
    """Return whether live broker and cache tests were requested."""
    source = os.environ if environ is None else environ
    return source.get(REAL_PROVIDERS_ENV, "").strip().lower() in _ENABLED_VALUES


requires_real_providers = pytest.mark.skipif(
    not real_provider_tests_enabled(),
    reason=f"set {REAL_PROVIDERS_ENV}=1 to run against live RabbitMQ and Redis",
)
