"""Tests for envelope metadata, model and builder behavior."""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from packages.storefront_shared.envelope import (
    EnvelopeKind,
    EnvelopeMeta,
    failure,
    new_meta,
    success,
    validate_meta,
)
from packages.storefront_shared.errors import ErrorCategory, ErrorDetail


def _meta() -> EnvelopeMeta:
    """Return deterministic metadata for envelope tests."""
    return new_meta(
        kind=EnvelopeKind.RESULT,
        source="service_product_catalog",
        principal="operator",
        timestamp=datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC),
        trace_id="trace-1",
    )


def _error(code: str = "VALIDATION_ERROR") -> ErrorDetail:
    """Return a deterministic error detail for envelope tests."""
    return ErrorDetail(
        code=code,
        message="Invalid input",
        category=ErrorCategory.VALIDATION,
        retryable=False,
    )


def test_new_meta_generates_ids_and_keeps_trace() -> None:
    """Each meta gets a fresh envelope id while honouring a given trace id."""
    first = _meta()
    second = _meta()

    assert first.trace_id == "trace-1"
    assert first.envelope_id != second.envelope_id
    assert first.timestamp == datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)


def test_new_meta_normalizes_timestamps_to_utc() -> None:
    """Naive timestamps are treated as UTC and aware ones are converted."""
    naive = new_meta(
        kind=EnvelopeKind.QUERY,
        source="test",
        principal="operator",
        timestamp=datetime(2026, 1, 1, 12, 0, 0),
    )
    offset = new_meta(
        kind=EnvelopeKind.QUERY,
        source="test",
        principal="operator",
        timestamp=datetime(2026, 1, 1, 14, 0, 0, tzinfo=timezone(timedelta(hours=2))),
    )

    assert naive.timestamp.tzinfo == UTC
    assert offset.timestamp == datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)


@pytest.mark.parametrize("field", ["envelope_id", "trace_id", "source", "principal"])
def test_validate_meta_requires_identity_fields(field: str) -> None:
    """Blank identity fields are rejected with a stable message."""
    meta = replace(_meta(), **{field: "  "})

    with pytest.raises(ValueError, match=f"metadata.{field} is required"):
        validate_meta(meta)


def test_validate_meta_rejects_unspecified_kind() -> None:
    """Every call must classify its intent."""
    meta = replace(_meta(), kind=EnvelopeKind.UNSPECIFIED)

    with pytest.raises(ValueError, match="metadata.kind must be specified"):
        validate_meta(meta)


def test_success_builder_returns_ok_envelope_with_payload() -> None:
    """success should build an ok envelope with payload and no errors."""
    envelope = success(meta=_meta(), payload={"product_id": 1})

    assert envelope.ok is True
    assert envelope.payload == {"product_id": 1}
    assert envelope.errors == []


def test_failure_builder_returns_non_ok_envelope_with_errors() -> None:
    """failure should build a non-ok envelope containing provided errors."""
    envelope = failure(meta=_meta(), errors=[_error("DEPENDENCY_UNAVAILABLE")])

    assert envelope.ok is False
    assert envelope.payload is None
    assert envelope.error_codes == ["DEPENDENCY_UNAVAILABLE"]


def test_failure_builder_rejects_empty_errors() -> None:
    """A failure with nothing to report would read as success."""
    with pytest.raises(ValueError, match="at least one error"):
        failure(meta=_meta(), errors=[])


def test_failure_builder_can_carry_partial_payload() -> None:
    """A failure may still report what was committed before the error."""
    envelope = failure(meta=_meta(), errors=[_error()], payload="committed")

    assert envelope.ok is False
    assert envelope.payload == "committed"


def test_envelope_is_immutable() -> None:
    """Envelopes are frozen once built."""
    envelope = success(meta=_meta(), payload=1)

    with pytest.raises(ValidationError):
        envelope.payload = 2  # type: ignore[misc]
