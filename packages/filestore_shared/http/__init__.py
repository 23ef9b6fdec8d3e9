"""Shared async HTTP client and its typed errors."""

from .client import AsyncHttpClient
from .errors import (
    HttpClientError,
    HttpError,
    HttpRequestError,
    HttpStatusError,
    is_retryable_status,
)

__all__ = [
    "AsyncHttpClient",
    "HttpClientError",
    "HttpError",
    "HttpRequestError",
    "HttpStatusError",
    "is_retryable_status",
]
