"""Runtime configuration primitives for filestore SDK clients."""

from __future__ import annotations

from dataclasses import dataclass, field

from packages.filestore_shared.config import EgressSettings, FileStoreSettings

from .builders import RecordDefaults

DEFAULT_BASE_URL = "http://127.0.0.1:8000"
DEFAULT_API_PREFIX = "/api/v1"
DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class FileStoreSdkConfig:
    """Connection and record defaults for one filestore SDK client."""

    base_url: str = DEFAULT_BASE_URL
    api_prefix: str = DEFAULT_API_PREFIX
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    record_defaults: RecordDefaults = field(default_factory=RecordDefaults)
    egress: EgressSettings = field(default_factory=EgressSettings)

    @property
    def api_root(self) -> str:
        """Base URL joined with the API prefix, without a trailing slash."""
        prefix = self.api_prefix.strip("/")
        root = self.base_url.rstrip("/")
        return f"{root}/{prefix}" if prefix else root

    def operation_url(self, path: str) -> str:
        return f"{self.api_root}/{path.lstrip('/')}"

    @classmethod
    def from_settings(cls, settings: FileStoreSettings) -> FileStoreSdkConfig:
        """Build SDK config from resolved runtime settings.

        A blank ``store.base_url`` falls back to the local default.
        """
        return cls(
            base_url=settings.store.base_url.strip() or DEFAULT_BASE_URL,
            api_prefix=settings.store.api_prefix,
            timeout_seconds=settings.store.timeout_seconds,
            record_defaults=RecordDefaults(
                upload_user=settings.upload.user,
                roles=tuple(settings.upload.roles),
                status=settings.upload.status,
            ),
            egress=settings.egress,
        )
