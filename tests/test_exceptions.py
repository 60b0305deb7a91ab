"""Tests for the error taxonomy."""

from __future__ import annotations

import pytest

from crosschain_ops.primitives.exceptions import (
    CrossChainOpsError,
    ErrorKind,
    FetchError,
    OperationAbortedError,
    TrackingTimeoutError,
    ValidationError,
)


@pytest.mark.parametrize(
    ("error", "kind", "retryable"),
    [
        (ValidationError("bad"), ErrorKind.VALIDATION, False),
        (FetchError("down"), ErrorKind.FETCH, True),
        (TrackingTimeoutError("resolve", 3), ErrorKind.TIMEOUT, False),
        (OperationAbortedError("resolve", 1), ErrorKind.ABORTED, False),
    ],
)
def test_every_error_carries_a_kind(
    error: CrossChainOpsError, kind: ErrorKind, retryable: bool
) -> None:
    assert isinstance(error, CrossChainOpsError)
    assert error.kind is kind
    assert error.retryable is retryable


def test_validation_error_normalizes_string_to_root() -> None:
    e = ValidationError("shard_count must be >= 1")
    assert e.errors == {"__root__": ["shard_count must be >= 1"]}


def test_validation_error_keeps_field_errors() -> None:
    e = ValidationError({"shard_count": ["must be >= 1"]})
    assert e.errors["shard_count"] == ["must be >= 1"]
    assert ValidationError().errors == {}


def test_fetch_error_has_transport_context() -> None:
    e = FetchError("HTTP 503", endpoint="https://a.example", status_code=503)
    assert e.endpoint == "https://a.example"
    assert e.status_code == 503
    assert "503" in str(e)


def test_timeout_error_is_builtin_timeout_with_attempts() -> None:
    cause = FetchError("down")
    e = TrackingTimeoutError("resolve x", 3, cause)
    assert isinstance(e, TimeoutError)
    assert e.attempts == 3
    assert e.last_error is cause
    assert "3 attempt(s)" in str(e)
    assert "down" in str(e)
