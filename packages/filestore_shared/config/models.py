"""Typed configuration models for filestore runtime settings."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LoggingSettings(BaseModel):
    """Structured logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    json_output: bool = False
    service: str = "filestore"
    environment: str = "dev"

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, value: object) -> object:
        """Accept lowercase level names from env and CLI."""
        return value.upper() if isinstance(value, str) else value


class StoreSettings(BaseModel):
    """Location of the record store HTTP API."""

    base_url: str = "http://127.0.0.1:8000"
    api_prefix: str = "/api/v1"
    timeout_seconds: float = Field(default=30.0, gt=0)


class EgressProviderSettings(BaseModel):
    """One egress-IP lookup service and its response format."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(min_length=1)
    format: Literal["text", "json"] = "text"


def _default_providers() -> list[EgressProviderSettings]:
    return [
        EgressProviderSettings(url="https://checkip.amazonaws.com/", format="text"),
        EgressProviderSettings(url="https://ifconfig.me/ip", format="text"),
    ]


class EgressSettings(BaseModel):
    """Ranked egress-IP providers with per-attempt timeout and final default."""

    providers: list[EgressProviderSettings] = Field(default_factory=_default_providers)
    timeout_seconds: float = Field(default=5.0, gt=0)
    fallback_address: str = "127.0.0.1"


class UploadSettings(BaseModel):
    """Default role/status tags stamped on uploaded records."""

    user: str = "current_user"
    roles: list[str] = Field(default_factory=lambda: ["user"])
    status: str = "active"


class FileStoreSettings(BaseModel):
    """Root runtime settings resolved from cli/env/yaml/default sources."""

    model_config = ConfigDict(extra="ignore")

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    egress: EgressSettings = Field(default_factory=EgressSettings)
    upload: UploadSettings = Field(default_factory=UploadSettings)
