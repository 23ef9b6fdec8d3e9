"""Unit tests for the shared async HTTP client wrapper."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from packages.filestore_shared.http import (
    AsyncHttpClient,
    HttpRequestError,
    HttpStatusError,
)


def test_async_http_client_post_returns_response() -> None:
    """AsyncHttpClient.post should return the raw response on success."""

    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        return httpx.Response(200, json={"created": True}, request=request)

    client = AsyncHttpClient(
        base_url="https://example.test",
        transport=httpx.MockTransport(handler),
    )

    async def _run() -> httpx.Response:
        try:
            return await client.post("/items", json={"name": "demo"})
        finally:
            await client.aclose()

    response = asyncio.run(_run())
    assert response.json() == {"created": True}


def test_async_http_client_maps_status_failure_to_typed_error() -> None:
    """Non-2xx responses should raise HttpStatusError by default."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable", request=request)

    client = AsyncHttpClient(
        base_url="https://example.test",
        transport=httpx.MockTransport(handler),
    )

    async def _run() -> None:
        try:
            await client.get("/health")
        finally:
            await client.aclose()

    with pytest.raises(HttpStatusError) as exc_info:
        asyncio.run(_run())

    error = exc_info.value
    assert error.method == "GET"
    assert error.status_code == 503
    assert error.retryable is True
    assert error.response_body == "unavailable"


def test_async_http_client_returns_error_status_when_not_raising() -> None:
    """raise_for_status=False should hand back non-2xx responses unchanged."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="missing", request=request)

    client = AsyncHttpClient(
        base_url="https://example.test",
        transport=httpx.MockTransport(handler),
    )

    async def _run() -> httpx.Response:
        try:
            return await client.post("/check", json={}, raise_for_status=False)
        finally:
            await client.aclose()

    response = asyncio.run(_run())
    assert response.status_code == 404
    assert response.text == "missing"


def test_async_http_client_maps_transport_failure_to_typed_error() -> None:
    """Connection failures should raise retryable HttpRequestError."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection failed", request=request)

    client = AsyncHttpClient(
        base_url="https://example.test",
        transport=httpx.MockTransport(handler),
    )

    async def _run() -> None:
        try:
            await client.get("/health")
        finally:
            await client.aclose()

    with pytest.raises(HttpRequestError) as exc_info:
        asyncio.run(_run())

    error = exc_info.value
    assert error.method == "GET"
    assert error.url == "https://example.test/health"
    assert error.retryable is True
    assert isinstance(error.cause, httpx.ConnectError)


def test_async_http_client_does_not_close_injected_client() -> None:
    """An injected httpx client stays open after the wrapper closes."""
    inner = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200))
    )

    async def _run() -> bool:
        async with AsyncHttpClient(client=inner):
            pass
        closed = inner.is_closed
        await inner.aclose()
        return closed

    assert asyncio.run(_run()) is False
