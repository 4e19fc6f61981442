"""Smoke tests for the integration harness switch."""

from __future__ import annotations

import pytest

from tests.integration.helpers import REAL_PROVIDERS_ENV, real_provider_tests_enabled


def test_real_provider_flag_defaults_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    """Live-provider tests stay off unless the flag is set."""
    monkeypatch.delenv(REAL_PROVIDERS_ENV, raising=False)
    assert real_provider_tests_enabled() is False

    monkeypatch.setenv(REAL_PROVIDERS_ENV, "yes")
    assert real_provider_tests_enabled() is True


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1", True), (" ON ", True), ("0", False), ("", False), ("maybe", False)],
)
def test_real_provider_flag_values(raw: str, expected: bool) -> None:
    assert real_provider_tests_enabled({REAL_PROVIDERS_ENV: raw}) is expected
