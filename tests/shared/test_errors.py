"""Tests for the shared error taxonomy."""

from __future__ import annotations

from packages.filestore_shared.errors import (
    ErrorCategory,
    codes,
    dependency_error,
    exception_to_error,
    validation_error,
)


def test_factories_set_category_and_retryable_defaults() -> None:
    """Factories should stamp category and sensible retryable defaults."""
    invalid = validation_error("bad", code=codes.INVALID_JSON, metadata={"field": "data"})
    down = dependency_error("down")

    assert invalid.category is ErrorCategory.VALIDATION
    assert invalid.retryable is False
    assert invalid.metadata == {"field": "data"}
    assert down.category is ErrorCategory.DEPENDENCY
    assert down.retryable is True
    assert down.code == codes.DEPENDENCY_FAILURE


def test_exception_to_error_maps_builtin_exceptions() -> None:
    """Common builtin exceptions should map to stable categories and codes."""
    assert exception_to_error(ValueError("x")).code == codes.INVALID_ARGUMENT
    assert exception_to_error(TimeoutError()).code == codes.DEPENDENCY_TIMEOUT
    assert exception_to_error(ConnectionRefusedError()).code == codes.DEPENDENCY_UNAVAILABLE
    assert exception_to_error(FileNotFoundError("f")).category is ErrorCategory.VALIDATION

    unexpected = exception_to_error(RuntimeError("boom"))
    assert unexpected.category is ErrorCategory.INTERNAL
    assert unexpected.code == codes.UNEXPECTED_EXCEPTION
