"""Built-in default configuration values for filestore components.

These defaults are the final fallback in the configuration cascade:
CLI params > ENV vars > config file > built-in defaults.
"""

from __future__ import annotations

from typing import Any

BUILTIN_DEFAULTS: dict[str, Any] = {
    "logging": {
        "level": "WARNING",
        "json_output": False,
        "service": "filestore",
        "environment": "dev",
    },
    "store": {
        "base_url": "http://127.0.0.1:8000",
        "api_prefix": "/api/v1",
        "timeout_seconds": 30.0,
    },
    "egress": {
        "providers": [
            {"url": "https://checkip.amazonaws.com/", "format": "text"},
            {"url": "https://ifconfig.me/ip", "format": "text"},
        ],
        "timeout_seconds": 5.0,
        "fallback_address": "127.0.0.1",
    },
    "upload": {
        "user": "current_user",
        "roles": ["user"],
        "status": "active",
    },
}
