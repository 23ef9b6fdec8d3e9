"""Fallback mapping from builtin exceptions to ``ErrorDetail``."""

from __future__ import annotations

from typing import Callable

from . import codes
from .factories import dependency_error, internal_error, validation_error
from .types import ErrorDetail

# First matching entry wins, so subclasses precede their bases
# (TimeoutError and ConnectionError are both OSError).
_RULES: tuple[tuple[type[BaseException], Callable[..., ErrorDetail], str, str], ...] = (
    (ValueError, validation_error, codes.INVALID_ARGUMENT, "invalid value"),
    (TimeoutError, dependency_error, codes.DEPENDENCY_TIMEOUT, "dependency timeout"),
    (ConnectionError, dependency_error, codes.DEPENDENCY_UNAVAILABLE, "dependency unavailable"),
    (OSError, validation_error, codes.FILE_READ_FAILED, "file could not be read"),
)


def exception_to_error(exc: Exception) -> ErrorDetail:
    """Map a plain exception onto the shared taxonomy.

    SDK errors are mapped by the SDK itself; this only covers what slips past.
    Anything unrecognized is internal.
    """
    metadata = {"exception_type": type(exc).__name__}
    for kind, factory, code, fallback in _RULES:
        if isinstance(exc, kind):
            return factory(str(exc) or fallback, code=code, metadata=metadata)
    return internal_error(
        str(exc) or "unexpected exception",
        code=codes.UNEXPECTED_EXCEPTION,
        metadata=metadata,
    )
