"""Typed failures raised by ``AsyncHttpClient``."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

import httpx

# Statuses worth retrying: overload and server-side faults.
RETRYABLE_STATUS = frozenset({429})


def is_retryable_status(status_code: int) -> bool:
    return status_code >= 500 or status_code in RETRYABLE_STATUS


@dataclass(frozen=True)
class HttpError(Exception):
    """Base error for outbound HTTP calls."""

    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class HttpClientError(HttpError):
    method: str
    url: str
    retryable: bool = False


@dataclass(frozen=True)
class HttpRequestError(HttpClientError):
    """The request never produced a response (connect, read, timeout)."""

    cause: Exception | None = None

    @classmethod
    def from_httpx(cls, exc: httpx.RequestError, *, method: str, url: str) -> HttpRequestError:
        """Wrap an httpx failure, preferring the URL httpx actually tried."""
        try:
            request: httpx.Request | None = exc.request
        except RuntimeError:
            request = None
        if request is not None:
            method, url = request.method, str(request.url)
        return cls(
            message=f"{method} {url} failed: {exc}",
            method=method,
            url=url,
            retryable=True,
            cause=exc,
        )


@dataclass(frozen=True)
class HttpStatusError(HttpClientError):
    """A response arrived with a 4xx/5xx status."""

    status_code: int = 0
    response_body: str = ""
    response_headers: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_response(cls, response: httpx.Response) -> HttpStatusError:
        request = response.request
        return cls(
            message=f"HTTP {response.status_code} for {request.method} {request.url}",
            method=request.method,
            url=str(request.url),
            retryable=is_retryable_status(response.status_code),
            status_code=response.status_code,
            response_body=safe_text(response),
            response_headers=dict(response.headers.items()),
        )


def safe_text(response: httpx.Response) -> str:
    """Decode the body, or return ``""`` when the declared charset is bogus."""
    try:
        return response.text
    except (LookupError, UnicodeDecodeError):
        return ""
