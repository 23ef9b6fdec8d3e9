"""Constructors for ``ErrorDetail`` values, one per category."""

from __future__ import annotations

from typing import Mapping

from . import codes
from .types import ErrorCategory, ErrorDetail


def _detail(
    category: ErrorCategory,
    message: str,
    code: str,
    *,
    retryable: bool = False,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    return ErrorDetail(
        code=code,
        message=message,
        category=category,
        retryable=retryable,
        metadata=dict(metadata or {}),
    )


def validation_error(
    message: str,
    *,
    code: str = codes.VALIDATION_ERROR,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    """Input rejected locally; nothing was sent to the store."""
    return _detail(ErrorCategory.VALIDATION, message, code, metadata=metadata)


def dependency_error(
    message: str,
    *,
    code: str = codes.DEPENDENCY_FAILURE,
    retryable: bool = True,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    """The store or an egress provider could not be reached or answered non-2xx."""
    return _detail(
        ErrorCategory.DEPENDENCY, message, code, retryable=retryable, metadata=metadata
    )


def remote_error(
    message: str,
    *,
    code: str = codes.REMOTE_REJECTED,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    """The store answered but refused the request or replied in an unknown shape."""
    return _detail(ErrorCategory.REMOTE, message, code, metadata=metadata)


def internal_error(
    message: str,
    *,
    code: str = codes.INTERNAL_ERROR,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    return _detail(ErrorCategory.INTERNAL, message, code, metadata=metadata)
