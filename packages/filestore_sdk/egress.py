"""Egress-address resolution across ranked lookup providers."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from packages.filestore_shared.config import EgressSettings
from packages.filestore_shared.http import AsyncHttpClient, HttpError
from packages.filestore_shared.logging import fields, get_logger

logger = get_logger(__name__)

DEFAULT_EGRESS_ADDRESS = "127.0.0.1"
DEFAULT_TIMEOUT_SECONDS = 5.0

T = TypeVar("T")


def parse_text(body: str) -> str:
    """Plain-text providers return the address alone, maybe newline-padded."""
    address = body.strip()
    if address == "":
        raise ValueError("empty response")
    return address


def parse_json_ip(body: str) -> str:
    """ipify-style providers return ``{"ip": "..."}``."""
    parsed = json.loads(body)
    if not isinstance(parsed, dict) or not parsed.get("ip"):
        raise ValueError("response has no ip member")
    return parse_text(str(parsed["ip"]))


PARSERS: dict[str, Callable[[str], str]] = {
    "text": parse_text,
    "json": parse_json_ip,
}


@dataclass(frozen=True, slots=True)
class EgressProvider:
    """One lookup URL plus the parser for its response body."""

    url: str
    parse: Callable[[str], str] = parse_text


async def first_successful(
    attempts: Iterable[Callable[[], Awaitable[T]]],
    *,
    timeout_seconds: float,
    on_failure: Callable[[int, BaseException], None] | None = None,
) -> T | None:
    """Await attempts in order and return the first that completes in time.

    Each attempt gets its own timeout. Failures are reported through
    ``on_failure`` and never raised; ``None`` means every attempt failed.
    """
    for index, attempt in enumerate(attempts):
        try:
            return await asyncio.wait_for(attempt(), timeout=timeout_seconds)
        except (asyncio.TimeoutError, HttpError, ValueError) as exc:
            if on_failure is not None:
                on_failure(index, exc)
    return None


class EgressAddressResolver:
    """Resolve the caller's public address for upload metadata."""

    def __init__(
        self,
        http: AsyncHttpClient,
        providers: Sequence[EgressProvider],
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        fallback_address: str = DEFAULT_EGRESS_ADDRESS,
    ) -> None:
        self._http = http
        self._providers = tuple(providers)
        self._timeout_seconds = timeout_seconds
        self._fallback_address = fallback_address

    @classmethod
    def from_settings(
        cls, http: AsyncHttpClient, settings: EgressSettings
    ) -> EgressAddressResolver:
        return cls(
            http,
            [
                EgressProvider(url=provider.url, parse=PARSERS[provider.format])
                for provider in settings.providers
            ],
            timeout_seconds=settings.timeout_seconds,
            fallback_address=settings.fallback_address,
        )

    @property
    def providers(self) -> tuple[EgressProvider, ...]:
        return self._providers

    async def resolve(self) -> str:
        """Return the first provider's answer, or the fallback address."""
        address = await first_successful(
            [self._lookup(provider) for provider in self._providers],
            timeout_seconds=self._timeout_seconds,
            on_failure=self._log_failure,
        )
        if address is not None:
            return address
        logger.warning(
            "no egress provider answered; using %s",
            self._fallback_address,
            extra={fields.EVENT: fields.EGRESS_DEFAULT_USED_EVENT},
        )
        return self._fallback_address

    def _lookup(self, provider: EgressProvider) -> Callable[[], Awaitable[str]]:
        async def attempt() -> str:
            response = await self._http.get(provider.url)
            return provider.parse(response.text)

        return attempt

    def _log_failure(self, index: int, exc: BaseException) -> None:
        provider = self._providers[index]
        logger.warning(
            "egress provider %s failed: %s",
            provider.url,
            str(exc) or type(exc).__name__,
            extra={fields.EVENT: fields.EGRESS_PROVIDER_FAILED_EVENT},
        )
