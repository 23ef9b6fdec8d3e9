"""Error models and shared-error mapping for filestore SDK calls."""

from __future__ import annotations

from dataclasses import dataclass

from packages.filestore_shared.errors import (
    ErrorDetail,
    codes,
    dependency_error,
    exception_to_error,
    remote_error,
    validation_error,
)


@dataclass(frozen=True)
class FileStoreSdkError(Exception):
    """Base error type for filestore SDK failures."""

    message: str

    def __str__(self) -> str:
        """Return human-readable error message."""
        return self.message


@dataclass(frozen=True)
class EnvelopeValidationError(FileStoreSdkError):
    """Local failure detected before any network call is attempted."""

    code: str = codes.VALIDATION_ERROR


@dataclass(frozen=True)
class UploadReadError(FileStoreSdkError):
    """Local file chosen for upload could not be read."""

    path: str = ""


@dataclass(frozen=True)
class StoreTransportError(FileStoreSdkError):
    """Request raised, timed out, or returned a non-2xx status."""

    operation: str = ""
    status_code: int | None = None
    retryable: bool = False


@dataclass(frozen=True)
class StoreApplicationError(FileStoreSdkError):
    """2xx response whose body reports ``success: false``."""

    operation: str = ""


@dataclass(frozen=True)
class StoreResponseShapeError(FileStoreSdkError):
    """2xx response whose body is not a JSON object."""

    operation: str = ""
    raw_text: str = ""


def to_error_detail(exc: Exception) -> ErrorDetail:
    """Map one SDK exception into the shared ``ErrorDetail`` taxonomy."""
    if isinstance(exc, EnvelopeValidationError):
        return validation_error(exc.message, code=exc.code)
    if isinstance(exc, UploadReadError):
        return validation_error(
            exc.message,
            code=codes.FILE_READ_FAILED,
            metadata={"path": exc.path},
        )
    if isinstance(exc, StoreTransportError):
        metadata = {"operation": exc.operation}
        if exc.status_code is not None:
            metadata["status_code"] = str(exc.status_code)
            return dependency_error(
                exc.message,
                code=codes.HTTP_STATUS,
                retryable=exc.retryable,
                metadata=metadata,
            )
        return dependency_error(
            exc.message,
            code=codes.DEPENDENCY_UNAVAILABLE,
            retryable=exc.retryable,
            metadata=metadata,
        )
    if isinstance(exc, StoreApplicationError):
        return remote_error(exc.message, metadata={"operation": exc.operation})
    if isinstance(exc, StoreResponseShapeError):
        return remote_error(
            exc.message,
            code=codes.MALFORMED_RESPONSE,
            metadata={"operation": exc.operation, "raw_text": exc.raw_text},
        )
    return exception_to_error(exc)
