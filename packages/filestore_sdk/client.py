"""Asynchronous store client: validates, sends and normalizes envelopes."""

from __future__ import annotations

from packages.filestore_shared.http import AsyncHttpClient, HttpRequestError
from packages.filestore_shared.logging import fields, get_logger

from .config import FileStoreSdkConfig
from .envelope import OperationEnvelope
from .errors import StoreTransportError
from .results import StoreResult, normalize_response
from .validate import ensure_valid

logger = get_logger(__name__)


class StoreClient:
    """Thin HTTP client for the four store operations."""

    def __init__(
        self,
        *,
        config: FileStoreSdkConfig | None = None,
        http: AsyncHttpClient | None = None,
    ) -> None:
        """Create one store client with injected or config-built HTTP client."""
        self._config = FileStoreSdkConfig() if config is None else config
        self._owns_http = http is None
        self._http = (
            AsyncHttpClient(timeout_seconds=self._config.timeout_seconds)
            if http is None
            else http
        )

    @property
    def config(self) -> FileStoreSdkConfig:
        return self._config

    @property
    def http(self) -> AsyncHttpClient:
        return self._http

    async def aclose(self) -> None:
        """Close the HTTP client when owned."""
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> StoreClient:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    def url_for(self, envelope: OperationEnvelope) -> str:
        return self._config.operation_url(envelope.path)

    async def send(self, envelope: OperationEnvelope) -> StoreResult:
        """Validate and post one envelope, then normalize the response.

        Non-2xx, non-JSON and ``success: false`` responses come back as an
        unsuccessful ``StoreResult``; only a failed request raises.
        """
        ensure_valid(envelope)
        url = self.url_for(envelope)
        logger.debug(
            "sending %s to %s",
            envelope.operation.value,
            url,
            extra={
                fields.EVENT: fields.ENVELOPE_SENT_EVENT,
                fields.OPERATION: envelope.operation.value,
                fields.TYPE_CLASSIFIER: envelope.type_classifier,
                fields.PREDICATE_COUNT: len(envelope.predicates or ()),
            },
        )
        try:
            response = await self._http.post(
                url,
                json=envelope.to_wire(),
                raise_for_status=False,
            )
        except HttpRequestError as exc:
            raise StoreTransportError(
                message=f"request to store failed: {exc.cause or exc}",
                operation=envelope.operation.value,
                retryable=exc.retryable,
            ) from exc
        return normalize_response(response.status_code, response.text)
