"""Public API for shared filestore configuration utilities."""

from .loader import DEFAULT_CONFIG_PATH, load_config, load_settings
from .models import (
    EgressProviderSettings,
    EgressSettings,
    FileStoreSettings,
    LoggingSettings,
    StoreSettings,
    UploadSettings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "EgressProviderSettings",
    "EgressSettings",
    "FileStoreSettings",
    "LoggingSettings",
    "StoreSettings",
    "UploadSettings",
    "load_config",
    "load_settings",
]
