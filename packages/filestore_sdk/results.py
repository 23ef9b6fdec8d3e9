"""Normalization of store responses into a uniform result."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from packages.filestore_shared.http import is_retryable_status

from .errors import StoreApplicationError, StoreResponseShapeError, StoreTransportError


class FailureKind(str, Enum):
    """Why a store call did not succeed."""

    TRANSPORT = "transport"
    APPLICATION = "application"
    RESPONSE_SHAPE = "response_shape"


@dataclass(frozen=True)
class StoreResult:
    """Uniform outcome of one store call."""

    success: bool
    records: tuple[dict[str, Any], ...] = ()
    message: str | None = None
    status_code: int | None = None
    raw_text: str = ""
    failure: FailureKind | None = None
    body: Mapping[str, Any] | None = field(default=None, repr=False)


def normalize_response(status_code: int, text: str) -> StoreResult:
    """Classify one HTTP response.

    Non-2xx is a transport failure regardless of body. A 2xx body that is not
    a JSON object is a shape failure with the raw text kept. Otherwise the
    body's own ``success`` flag decides.
    """
    if not 200 <= status_code < 300:
        return StoreResult(
            success=False,
            status_code=status_code,
            raw_text=text,
            failure=FailureKind.TRANSPORT,
            message=f"HTTP error! status: {status_code}",
        )
    try:
        body = json.loads(text)
    except ValueError:
        body = None
    if not isinstance(body, dict):
        return StoreResult(
            success=False,
            status_code=status_code,
            raw_text=text,
            failure=FailureKind.RESPONSE_SHAPE,
        )

    success = bool(body.get("success"))
    message = body.get("message")
    return StoreResult(
        success=success,
        records=_records_of(body.get("data")),
        message=None if message is None else str(message),
        status_code=status_code,
        raw_text=text,
        failure=None if success else FailureKind.APPLICATION,
        body=body,
    )


def require_success(
    result: StoreResult,
    *,
    operation: str,
    fallback_message: str = "operation failed",
) -> StoreResult:
    """Return a successful ``result`` or raise the matching SDK error."""
    if result.success:
        return result
    if result.failure is FailureKind.TRANSPORT:
        status = result.status_code
        raise StoreTransportError(
            message=result.message or f"HTTP error! status: {status}",
            operation=operation,
            status_code=status,
            retryable=status is not None and is_retryable_status(status),
        )
    if result.failure is FailureKind.RESPONSE_SHAPE:
        raise StoreResponseShapeError(
            message=(
                f"store returned a non-JSON response: {result.raw_text}"
                if result.raw_text
                else "store returned an empty non-JSON response"
            ),
            operation=operation,
            raw_text=result.raw_text,
        )
    raise StoreApplicationError(
        message=result.message or fallback_message,
        operation=operation,
    )


def _records_of(data: Any) -> tuple[dict[str, Any], ...]:
    if data is None:
        return ()
    if isinstance(data, Mapping):
        return (dict(data),)
    if isinstance(data, list):
        return tuple(dict(item) for item in data if isinstance(item, Mapping))
    return ()
