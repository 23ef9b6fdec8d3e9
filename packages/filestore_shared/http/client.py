"""Async HTTP wrapper shared by the store client and egress lookups."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from .errors import HttpRequestError, HttpStatusError


class AsyncHttpClient:
    """``httpx.AsyncClient`` with failures mapped onto ``HttpError`` types.

    One instance is shared by every request in a CLI run. An injected
    ``client`` is borrowed and left open on ``aclose``.
    """

    def __init__(
        self,
        *,
        base_url: str = "",
        timeout_seconds: float = 10.0,
        headers: Mapping[str, str] | None = None,
        follow_redirects: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._borrowed = client is not None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            headers=dict(headers or {}),
            follow_redirects=follow_redirects,
            transport=transport,
        )

    async def aclose(self) -> None:
        if not self._borrowed:
            await self._client.aclose()

    async def __aenter__(self) -> AsyncHttpClient:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        url: str,
        *,
        raise_for_status: bool = True,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send one request.

        Raises ``HttpRequestError`` when no response arrives and, unless
        ``raise_for_status`` is false, ``HttpStatusError`` for 4xx/5xx.
        """
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.RequestError as exc:
            raise HttpRequestError.from_httpx(exc, method=method.upper(), url=url) from exc
        if raise_for_status and response.is_error:
            raise HttpStatusError.from_response(response)
        return response

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)
